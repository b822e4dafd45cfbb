"""Public catalog and agent detail routes, plus the detail page's admin edits.

Route overview:
  GET   /                          : active agents, newest first
  WS    /live                      : pushes the catalog on every change
  GET   /{agent_id}                : detail page (can_edit for admins)
  PATCH /{agent_id}/description    : admin
  PUT   /{agent_id}/features       : admin, replaces the feature cards
  PUT   /{agent_id}/comparison     : admin, replaces the comparison table
  PUT   /{agent_id}/comparison/enabled : admin
"""

import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from aibotclip.auth.deps import Viewer, get_viewer, require_admin
from aibotclip.middleware.exceptions import ResourceNotFoundError
from aibotclip.schemas.agent import (
    AgentDetail,
    AgentSummary,
    ComparisonTable,
    ComparisonToggle,
    DescriptionUpdate,
    FeatureListSave,
)
from aibotclip.services.agent_content import comparison_editor, feature_editor
from aibotclip.services.catalog import build_detail, get_agent, list_catalog
from aibotclip.services.catalog_feed import CatalogFeed
from aibotclip.store.rows import RowStore, get_store

logger = logging.getLogger(__name__)

router = APIRouter()


def _summaries(agents: list[dict]) -> list[dict]:
    return [AgentSummary.model_validate(a).model_dump(mode="json") for a in agents]


# ── Catalog ──────────────────────────────────────────────────

@router.get("/", response_model=list[AgentSummary])
async def list_agents(store: RowStore = Depends(get_store)):
    return [AgentSummary.model_validate(a) for a in await list_catalog(store)]


@router.websocket("/live")
async def catalog_live(websocket: WebSocket, store: RowStore = Depends(get_store)):
    """Send the catalog on connect and again after every change to agents."""
    await websocket.accept()

    async def push(agents: list[dict]) -> None:
        await websocket.send_json(_summaries(agents))

    async with CatalogFeed(store, on_refresh=push):
        try:
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            logger.debug("Catalog listener disconnected")


# ── Detail ───────────────────────────────────────────────────

@router.get("/{agent_id}", response_model=AgentDetail)
async def agent_detail(
    agent_id: str,
    store: RowStore = Depends(get_store),
    viewer: Viewer = Depends(get_viewer),
):
    agent = await get_agent(store, agent_id)
    return build_detail(agent, can_edit=viewer.is_admin)


# ── Admin edits ──────────────────────────────────────────────

@router.patch("/{agent_id}/description", response_model=AgentDetail)
async def update_description(
    agent_id: str,
    body: DescriptionUpdate,
    store: RowStore = Depends(get_store),
    _admin: Viewer = Depends(require_admin),
):
    agent = await store.update("agents", agent_id, {"description": body.description})
    if agent is None:
        raise ResourceNotFoundError("Agent", agent_id)
    return build_detail(agent, can_edit=True)


@router.put("/{agent_id}/features", response_model=AgentDetail)
async def save_feature_cards(
    agent_id: str,
    body: FeatureListSave,
    store: RowStore = Depends(get_store),
    _admin: Viewer = Depends(require_admin),
):
    """Replace the feature cards. List position decides the stored order."""
    editor = feature_editor(store, agent_id, body.features)
    await editor.save()
    return build_detail(await get_agent(store, agent_id), can_edit=True)


@router.put("/{agent_id}/comparison", response_model=AgentDetail)
async def save_comparison_table(
    agent_id: str,
    body: ComparisonTable,
    store: RowStore = Depends(get_store),
    _admin: Viewer = Depends(require_admin),
):
    """Replace the comparison table. Row position decides the stored order."""
    editor = comparison_editor(store, agent_id, body)
    await editor.save()
    return build_detail(await get_agent(store, agent_id), can_edit=True)


@router.put("/{agent_id}/comparison/enabled", response_model=AgentDetail)
async def toggle_comparison(
    agent_id: str,
    body: ComparisonToggle,
    store: RowStore = Depends(get_store),
    _admin: Viewer = Depends(require_admin),
):
    agent = await store.update("agents", agent_id, {"comparison_enabled": body.enabled})
    if agent is None:
        raise ResourceNotFoundError("Agent", agent_id)
    return build_detail(agent, can_edit=True)
