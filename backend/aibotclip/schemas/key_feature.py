"""Pydantic schemas for home-page key features."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator


class KeyFeatureCreate(BaseModel):
    title: str = Field(..., max_length=255)
    description: str
    icon: str = Field("🤖", max_length=16)
    icon_bg_color: str = Field("#6366f1", pattern=r"^#[0-9a-fA-F]{6}$")
    display_order: int = Field(0, ge=0)
    is_active: bool = True

    @field_validator("title", "description", "icon")
    @classmethod
    def required_text(cls, v: str, info) -> str:
        v = v.strip()
        if not v:
            raise ValueError(f"{info.field_name.capitalize()} is required")
        return v


class KeyFeatureUpdate(BaseModel):
    title: str | None = Field(None, max_length=255)
    description: str | None = None
    icon: str | None = Field(None, max_length=16)
    icon_bg_color: str | None = Field(None, pattern=r"^#[0-9a-fA-F]{6}$")
    display_order: int | None = Field(None, ge=0)
    is_active: bool | None = None

    @field_validator("title", "description", "icon")
    @classmethod
    def required_text(cls, v: str | None, info) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError(f"{info.field_name.capitalize()} is required")
        return v


class KeyFeatureOut(BaseModel):
    id: str
    title: str
    description: str
    icon: str
    icon_bg_color: str
    display_order: int
    is_active: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class KeyFeatureMove(BaseModel):
    direction: Literal["up", "down"]
