"""Wire shapes for the lead request wizard.

The wizard is stateless on the server: the client posts its draft and
state with every step and gets the next draft and state back.
"""

from typing import Literal

from pydantic import BaseModel, Field, field_validator

from aibotclip.services.lead_wizard import LeadDraft, WizardState


class WizardRequest(BaseModel):
    draft: LeadDraft = Field(default_factory=LeadDraft)
    state: WizardState = Field(default_factory=WizardState)

    @field_validator("state")
    @classmethod
    def not_in_flight(cls, v: WizardState) -> WizardState:
        # A submit is only in flight inside one request
        if v.submitting:
            return v.model_copy(update={"submitting": False})
        return v


class NotificationOut(BaseModel):
    level: Literal["success", "error"]
    title: str
    message: str


class WizardResponse(BaseModel):
    draft: LeadDraft
    state: WizardState
    shake: bool = False
    notification: NotificationOut | None = None
    progress: float
    minutes_left: int


class Option(BaseModel):
    value: str
    label: str


class WizardOptions(BaseModel):
    service_types: list[Option]
    country_codes: list[Option]
    default_country_code: str
    total_steps: int


class PhoneFormatRequest(BaseModel):
    value: str


class PhoneFormatResponse(BaseModel):
    formatted: str
    digits: str
