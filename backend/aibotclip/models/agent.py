"""Agent: one purchasable AI agent in the catalog.

Pricing is four fixed tiers (starter / pro / business / enterprise), each
with a price in INR and a bullet list of included features.

`features` and `comparison_table` are JSON documents edited as whole
collections from the agent detail page:

  features          → [{id, icon, title, description, order, visible}, …]
  comparison_table  → {"headers": [...], "rows": [{id, type, label, values, order}, …]}
"""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from aibotclip.database import Base


def _empty_comparison() -> dict:
    return {"headers": [], "rows": []}


class Agent(Base):
    __tablename__ = "agents"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    short_description: Mapped[str] = mapped_column(String(500), default="")
    description: Mapped[str] = mapped_column(Text, default="")
    # Emoji shown on the catalog card
    image: Mapped[str] = mapped_column(String(32), default="🤖")

    starter_price: Mapped[int] = mapped_column(Integer, default=499)
    starter_features: Mapped[list] = mapped_column(JSON, default=list)
    pro_price: Mapped[int] = mapped_column(Integer, default=999)
    pro_features: Mapped[list] = mapped_column(JSON, default=list)
    business_price: Mapped[int] = mapped_column(Integer, default=1999)
    business_features: Mapped[list] = mapped_column(JSON, default=list)
    enterprise_price: Mapped[int] = mapped_column(Integer, default=4999)
    enterprise_features: Mapped[list] = mapped_column(JSON, default=list)

    features: Mapped[list] = mapped_column(JSON, default=list)
    comparison_table: Mapped[dict] = mapped_column(JSON, default=_empty_comparison)
    comparison_enabled: Mapped[bool] = mapped_column(Boolean, default=False)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )
