"""Six-step lead capture wizard.

Steps (one field each):
  0 company name   1 agent name   2 service type
  3 email          4 phone        5 description
followed by the terminal `submitted` state.

`LeadWizard` is a plain state machine over a `LeadDraft` and a
`WizardState`. Validation only looks at the current step. The final
`next()` hands the draft to the submitter (one webhook POST); nothing
else leaves the process.
"""

import logging
import math
import re
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Literal

from pydantic import BaseModel, Field, field_validator

from aibotclip.middleware.exceptions import RemoteCallError

logger = logging.getLogger(__name__)

TOTAL_STEPS = 6
LAST_STEP = TOTAL_STEPS - 1

SERVICE_TYPES = {
    "buy": "Buy an AI Agent",
    "support": "Support",
    "inquiries": "Inquiries",
    "request": "Request a custom agent",
}

COUNTRY_CODES = {
    "+1": "US/CA",
    "+44": "UK",
    "+91": "IN",
    "+86": "CN",
    "+81": "JP",
    "+49": "DE",
    "+33": "FR",
    "+61": "AU",
    "+55": "BR",
    "+52": "MX",
}
DEFAULT_COUNTRY_CODE = "+1"

STEP_FIELDS = ("company_name", "agent_name", "service_type", "email", "phone", "description")

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_GROUPS_RE = re.compile(r"^(\d{0,3})(\d{0,3})(\d{0,4})$")
MIN_DESCRIPTION_LENGTH = 20


class Direction(str, Enum):
    FORWARD = "forward"
    BACKWARD = "backward"


def new_submission_id() -> str:
    return uuid.uuid4().hex


class LeadDraft(BaseModel):
    company_name: str = ""
    agent_name: str = ""
    service_type: str = ""
    email: str = ""
    country_code: str = DEFAULT_COUNTRY_CODE
    phone: str = ""
    description: str = ""
    # Idempotency key for the webhook; new per form session
    submission_id: str = Field(default_factory=new_submission_id)

    @field_validator("country_code")
    @classmethod
    def known_country_code(cls, v: str) -> str:
        if v not in COUNTRY_CODES:
            raise ValueError(f"Unsupported country code: {v}")
        return v


class WizardState(BaseModel):
    current_step: int = Field(0, ge=0, le=LAST_STEP)
    direction: Direction = Direction.FORWARD
    field_errors: dict[str, str] = Field(default_factory=dict)
    submitted: bool = False
    submitting: bool = False


@dataclass
class Notification:
    level: Literal["success", "error"]
    title: str
    message: str


SUBMIT_SUCCESS = Notification(
    "success", "Form submitted successfully!", "Your AI Agent request has been received."
)
SUBMIT_FAILURE = Notification(
    "error", "Submission failed", "Please try again or contact support."
)


@dataclass
class StepResult:
    draft: LeadDraft
    state: WizardState
    # The client shakes the form when a step is rejected
    shake: bool = False
    notification: Notification | None = None


# ── Field rules ──────────────────────────────────────────────

def phone_digits(value: str) -> str:
    return re.sub(r"\D", "", value)


def format_phone(value: str) -> str:
    """Progressive display form: "555" → "555", "555123" → "(555) 123", up to "(555) 123-4567"."""
    cleaned = phone_digits(value)[:10]
    match = PHONE_GROUPS_RE.match(cleaned)
    if not match:
        return value
    area, exchange, line = match.groups()
    if not exchange:
        return area
    return f"({area}) {exchange}" + (f"-{line}" if line else "")


def validate_step(step: int, draft: LeadDraft) -> dict[str, str]:
    """Errors for the one field owned by `step`; empty when it passes."""
    errors: dict[str, str] = {}
    if step == 0:
        if not draft.company_name.strip():
            errors["company_name"] = "Company name is required"
    elif step == 1:
        if not draft.agent_name.strip():
            errors["agent_name"] = "AI Agent name is required"
    elif step == 2:
        if draft.service_type not in SERVICE_TYPES:
            errors["service_type"] = "Please select a service type"
    elif step == 3:
        if not draft.email.strip():
            errors["email"] = "Email is required"
        elif not EMAIL_RE.match(draft.email):
            errors["email"] = "Please enter a valid email"
    elif step == 4:
        if not draft.phone.strip():
            errors["phone"] = "Phone number is required"
        elif len(phone_digits(draft.phone)) != 10:
            errors["phone"] = "Phone number must be exactly 10 digits"
    elif step == 5:
        description = draft.description.strip()
        if not description:
            errors["description"] = "Description is required"
        elif len(description) < MIN_DESCRIPTION_LENGTH:
            errors["description"] = "Please provide more details (at least 20 characters)"
    else:
        raise ValueError(f"No such step: {step}")
    return errors


# ── State machine ────────────────────────────────────────────

Submitter = Callable[[LeadDraft], Awaitable[None]]


class LeadWizard:
    def __init__(
        self,
        draft: LeadDraft | None = None,
        state: WizardState | None = None,
        submitter: Submitter | None = None,
    ):
        self.draft = draft or LeadDraft()
        self.state = state or WizardState()
        self._submitter = submitter

    def _result(self, **kwargs) -> StepResult:
        return StepResult(draft=self.draft, state=self.state, **kwargs)

    @property
    def progress(self) -> float:
        return (self.state.current_step + 1) / TOTAL_STEPS * 100

    @property
    def minutes_left(self) -> int:
        return math.ceil((TOTAL_STEPS - self.state.current_step) * 0.5)

    def set_field(self, name: str, value: str) -> None:
        if name not in LeadDraft.model_fields or name == "submission_id":
            raise ValueError(f"Unknown field: {name}")
        if name == "phone":
            value = format_phone(value)
        elif name == "country_code" and value not in COUNTRY_CODES:
            raise ValueError(f"Unsupported country code: {value}")
        self.draft = self.draft.model_copy(update={name: value})

    async def next(self) -> StepResult:
        if self.state.submitted:
            return self._result()

        step = self.state.current_step
        errors = validate_step(step, self.draft)
        self.state.field_errors = errors
        if errors:
            return self._result(shake=True)

        if step < LAST_STEP:
            self.state.direction = Direction.FORWARD
            self.state.current_step = step + 1
            return self._result()
        return await self.submit()

    def previous(self) -> StepResult:
        if self.state.current_step > 0 and not self.state.submitted:
            self.state.direction = Direction.BACKWARD
            self.state.current_step -= 1
            self.state.field_errors = {}
        return self._result()

    async def submit(self) -> StepResult:
        """Deliver the draft once. A failure leaves the wizard on the last step."""
        if self.state.submitted or self.state.submitting:
            logger.info("Ignoring submit for %s: already %s", self.draft.submission_id,
                        "submitted" if self.state.submitted else "in flight")
            return self._result()
        if self._submitter is None:
            raise RuntimeError("LeadWizard has no submitter")

        self.state.submitting = True
        try:
            await self._submitter(self.draft)
        except RemoteCallError as exc:
            logger.warning("Lead submission %s failed: %s", self.draft.submission_id, exc.reason)
            return self._result(notification=SUBMIT_FAILURE)
        finally:
            self.state.submitting = False

        self.state.submitted = True
        return self._result(notification=SUBMIT_SUCCESS)

    def reset(self) -> StepResult:
        """Start a new form session. Only valid from the submitted state."""
        if not self.state.submitted:
            return self._result()
        self.draft = LeadDraft()
        self.state = WizardState()
        return self._result()
