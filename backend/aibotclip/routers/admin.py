"""Admin console: dashboard counts and agent CRUD.

Every route requires an admin viewer (401 signed out, 403 otherwise).
"""

import logging

from fastapi import APIRouter, Depends, status

from aibotclip.auth.deps import Viewer, require_admin
from aibotclip.middleware.exceptions import ResourceNotFoundError
from aibotclip.schemas.agent import AgentCreate, AgentOut, AgentUpdate
from aibotclip.store.rows import RowStore, get_store

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_admin)])


@router.get("/dashboard")
async def dashboard(
    store: RowStore = Depends(get_store),
    viewer: Viewer = Depends(require_admin),
):
    return {
        "email": viewer.session.email,
        "agents": await store.count("agents"),
        "active_agents": await store.count("agents", {"is_active": True}),
        "key_features": await store.count("key_features"),
    }


# ── Agents ───────────────────────────────────────────────────

@router.get("/agents/", response_model=list[AgentOut])
async def list_all_agents(store: RowStore = Depends(get_store)):
    """Every agent, inactive included, newest first."""
    return await store.select("agents", order="created_at", descending=True)


@router.post("/agents/", response_model=AgentOut, status_code=status.HTTP_201_CREATED)
async def create_agent(body: AgentCreate, store: RowStore = Depends(get_store)):
    agent = await store.insert("agents", body.model_dump())
    logger.info("Agent %s created", agent["id"])
    return agent


@router.get("/agents/{agent_id}", response_model=AgentOut)
async def get_agent_admin(agent_id: str, store: RowStore = Depends(get_store)):
    agent = await store.select_one("agents", {"id": agent_id})
    if agent is None:
        raise ResourceNotFoundError("Agent", agent_id)
    return agent


@router.patch("/agents/{agent_id}", response_model=AgentOut)
async def update_agent(
    agent_id: str,
    body: AgentUpdate,
    store: RowStore = Depends(get_store),
):
    agent = await store.update("agents", agent_id, body.model_dump(exclude_unset=True))
    if agent is None:
        raise ResourceNotFoundError("Agent", agent_id)
    return agent


@router.delete("/agents/{agent_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_agent(agent_id: str, store: RowStore = Depends(get_store)):
    if not await store.delete("agents", agent_id):
        raise ResourceNotFoundError("Agent", agent_id)
    logger.info("Agent %s deleted", agent_id)
