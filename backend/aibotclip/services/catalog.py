"""Catalog reads: the public agent list and the agent detail page."""

from aibotclip.middleware.exceptions import ResourceNotFoundError
from aibotclip.schemas.agent import (
    POPULAR_TIER,
    PRICING_TIERS,
    AgentDetail,
    ComparisonTable,
    FeatureCard,
    PricingTier,
)
from aibotclip.store.rows import RowStore


async def list_catalog(store: RowStore) -> list[dict]:
    """Active agents, newest first."""
    return await store.select(
        "agents", {"is_active": True}, order="created_at", descending=True
    )


def pricing_tiers(agent: dict) -> list[PricingTier]:
    tiers = []
    for name in PRICING_TIERS:
        key = name.lower()
        tiers.append(PricingTier(
            name=name,
            price=agent[f"{key}_price"],
            features=agent[f"{key}_features"] or [],
            popular=name == POPULAR_TIER,
        ))
    return tiers


def build_detail(agent: dict, can_edit: bool = False) -> AgentDetail:
    features = [FeatureCard.model_validate(f) for f in agent["features"] or []]
    visible = sorted((f for f in features if f.visible), key=lambda f: f.order)

    table = ComparisonTable.model_validate(agent["comparison_table"] or {})
    table.rows.sort(key=lambda r: r.order)
    show_table = agent["comparison_enabled"] and bool(table.rows)

    return AgentDetail(
        id=agent["id"],
        name=agent["name"],
        short_description=agent["short_description"],
        description=agent["description"],
        image=agent["image"],
        pricing=pricing_tiers(agent),
        # Admins edit the whole list, hidden cards included
        features=sorted(features, key=lambda f: f.order) if can_edit else visible,
        comparison_enabled=agent["comparison_enabled"],
        comparison_table=table if show_table or can_edit else None,
        can_edit=can_edit,
    )


async def get_agent(store: RowStore, agent_id: str) -> dict:
    agent = await store.select_one("agents", {"id": agent_id})
    if agent is None:
        raise ResourceNotFoundError("Agent", agent_id)
    return agent

