"""Lead request wizard routes.

Route overview:
  GET  /options       : service types and country codes
  POST /next          : validate the current step; advance or submit
  POST /previous      : go back one step
  POST /reset         : start over after a submission
  POST /format-phone  : phone display transform
"""

from dataclasses import asdict

import redis.asyncio as redis
from fastapi import APIRouter, Depends, Request

from aibotclip.schemas.lead import (
    Option,
    PhoneFormatRequest,
    PhoneFormatResponse,
    WizardOptions,
    WizardRequest,
    WizardResponse,
)
from aibotclip.services.lead_webhook import (
    ClientInfo,
    LeadSubmitter,
    LeadWebhookClient,
    SubmissionGuard,
)
from aibotclip.services.lead_wizard import (
    COUNTRY_CODES,
    DEFAULT_COUNTRY_CODE,
    SERVICE_TYPES,
    TOTAL_STEPS,
    LeadWizard,
    StepResult,
    format_phone,
    phone_digits,
)
from aibotclip.utils.redis_client import get_redis

router = APIRouter()


def get_lead_webhook() -> LeadWebhookClient:
    return LeadWebhookClient()


def _client_info(request: Request) -> ClientInfo:
    return ClientInfo(
        user_agent=request.headers.get("user-agent", ""),
        ip_address=request.client.host if request.client else "",
    )


def _response(wizard: LeadWizard, result: StepResult) -> WizardResponse:
    return WizardResponse(
        draft=result.draft,
        state=result.state,
        shake=result.shake,
        notification=asdict(result.notification) if result.notification else None,
        progress=wizard.progress,
        minutes_left=wizard.minutes_left,
    )


@router.get("/options", response_model=WizardOptions)
async def options():
    return WizardOptions(
        service_types=[Option(value=k, label=v) for k, v in SERVICE_TYPES.items()],
        country_codes=[Option(value=k, label=v) for k, v in COUNTRY_CODES.items()],
        default_country_code=DEFAULT_COUNTRY_CODE,
        total_steps=TOTAL_STEPS,
    )


@router.post("/next", response_model=WizardResponse)
async def next_step(
    body: WizardRequest,
    request: Request,
    webhook: LeadWebhookClient = Depends(get_lead_webhook),
    redis_client: redis.Redis = Depends(get_redis),
):
    submitter = LeadSubmitter(webhook, SubmissionGuard(redis_client), _client_info(request))
    wizard = LeadWizard(body.draft, body.state, submitter=submitter)
    # Phone goes through the display transform, as when typed. Input with
    # more than 10 digits is kept as sent so the step check rejects it.
    if len(phone_digits(body.draft.phone)) <= 10:
        wizard.set_field("phone", body.draft.phone)
    result = await wizard.next()
    return _response(wizard, result)


@router.post("/previous", response_model=WizardResponse)
async def previous_step(body: WizardRequest):
    wizard = LeadWizard(body.draft, body.state)
    return _response(wizard, wizard.previous())


@router.post("/reset", response_model=WizardResponse)
async def reset(body: WizardRequest):
    wizard = LeadWizard(body.draft, body.state)
    return _response(wizard, wizard.reset())


@router.post("/format-phone", response_model=PhoneFormatResponse)
async def format_phone_number(body: PhoneFormatRequest):
    formatted = format_phone(body.value)
    return PhoneFormatResponse(formatted=formatted, digits=phone_digits(formatted))
