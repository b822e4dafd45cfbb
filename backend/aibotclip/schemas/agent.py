"""Pydantic schemas for agents, their feature cards and comparison table."""

from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, BeforeValidator, Field, field_validator

# Column order of the pricing grid and the comparison table
PRICING_TIERS = ("Starter", "Pro", "Business", "Enterprise")
POPULAR_TIER = "Pro"


def _blank_values() -> list[str]:
    return ["" for _ in PRICING_TIERS]


def split_lines(value):
    """Accept a list or a newline-separated string; drop blank lines."""
    if value is None:
        return value
    if isinstance(value, str):
        value = value.split("\n")
    return [line.strip() for line in value if line and line.strip()]


TierFeatures = Annotated[list[str], BeforeValidator(split_lines)]


# ── Editable collections ────────────────────────────────────

class FeatureCard(BaseModel):
    id: str
    order: int
    icon: str = "✨"
    title: str = ""
    description: str = ""
    visible: bool = True


class ComparisonRow(BaseModel):
    id: str
    order: int
    type: Literal["section", "feature"] = "feature"
    label: str = ""
    # One cell per pricing tier: "check", "cross" or free text
    values: list[str] = Field(default_factory=_blank_values)


class ComparisonTable(BaseModel):
    headers: list[str] = Field(default_factory=list)
    rows: list[ComparisonRow] = Field(default_factory=list)


# ── Agent CRUD ───────────────────────────────────────────────

class AgentCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    short_description: str = Field("", max_length=500)
    description: str = ""
    image: str = Field("🤖", max_length=32)

    starter_price: int = Field(499, ge=0)
    starter_features: TierFeatures = Field(default_factory=list)
    pro_price: int = Field(999, ge=0)
    pro_features: TierFeatures = Field(default_factory=list)
    business_price: int = Field(1999, ge=0)
    business_features: TierFeatures = Field(default_factory=list)
    enterprise_price: int = Field(4999, ge=0)
    enterprise_features: TierFeatures = Field(default_factory=list)

    is_active: bool = True

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Agent name is required")
        return v


class AgentUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    short_description: str | None = Field(None, max_length=500)
    description: str | None = None
    image: str | None = Field(None, max_length=32)

    starter_price: int | None = Field(None, ge=0)
    starter_features: TierFeatures | None = None
    pro_price: int | None = Field(None, ge=0)
    pro_features: TierFeatures | None = None
    business_price: int | None = Field(None, ge=0)
    business_features: TierFeatures | None = None
    enterprise_price: int | None = Field(None, ge=0)
    enterprise_features: TierFeatures | None = None

    is_active: bool | None = None


class AgentOut(BaseModel):
    id: str
    name: str
    short_description: str
    description: str
    image: str
    starter_price: int
    starter_features: list[str]
    pro_price: int
    pro_features: list[str]
    business_price: int
    business_features: list[str]
    enterprise_price: int
    enterprise_features: list[str]
    features: list[FeatureCard]
    comparison_table: ComparisonTable
    comparison_enabled: bool
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class AgentSummary(BaseModel):
    """Catalog card."""
    id: str
    name: str
    short_description: str
    image: str
    starter_price: int
    created_at: datetime


# ── Agent detail page ───────────────────────────────────────

class PricingTier(BaseModel):
    name: str
    price: int
    features: list[str]
    popular: bool = False


class AgentDetail(BaseModel):
    id: str
    name: str
    short_description: str
    description: str
    image: str
    pricing: list[PricingTier]
    features: list[FeatureCard]
    comparison_enabled: bool
    # Present only when enabled and non-empty
    comparison_table: ComparisonTable | None = None
    can_edit: bool = False


class DescriptionUpdate(BaseModel):
    description: str


class FeatureListSave(BaseModel):
    features: list[FeatureCard]


class ComparisonToggle(BaseModel):
    enabled: bool
