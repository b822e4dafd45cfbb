"""Outbound delivery of a finished lead to the contact webhook.

One submission is one JSON POST. Any 2xx answer is success; a non-2xx
status or a transport error raises `RemoteCallError`. Nothing is retried.

`SubmissionGuard` claims the draft's submission id in Redis before the
POST so a second delivery of the same form session (double click, client
retry) is answered as already submitted instead of posting twice. A
failed POST releases the claim so the user can try again.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import httpx
import redis.asyncio as redis

from aibotclip.config import settings
from aibotclip.middleware.exceptions import RemoteCallError
from aibotclip.services.lead_wizard import LeadDraft

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClientInfo:
    """Request metadata attached to a lead."""
    user_agent: str = ""
    ip_address: str = ""


def build_payload(
    draft: LeadDraft,
    client: ClientInfo,
    submitted_at: datetime | None = None,
) -> dict[str, Any]:
    submitted_at = submitted_at or datetime.now(timezone.utc)
    return {
        "formData": {
            "name": draft.company_name,
            "aiAgentName": draft.agent_name,
            "optionBase": draft.service_type,
            "email": draft.email,
            "phone": f"{draft.country_code}-{draft.phone}",
            "description": draft.description,
        },
        "metadata": {
            "submittedAt": submitted_at.isoformat().replace("+00:00", "Z"),
            "source": settings.lead_source,
            "formVersion": settings.lead_form_version,
            "userAgent": client.user_agent,
            "ipAddress": client.ip_address,
        },
    }


class LeadWebhookClient:
    def __init__(
        self,
        url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = url or settings.lead_webhook_url
        self.timeout = timeout if timeout is not None else settings.lead_webhook_timeout_seconds
        self._transport = transport

    async def post(self, payload: dict[str, Any]) -> None:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.url, json=payload)
        except httpx.HTTPError as exc:
            logger.error("Lead webhook unreachable: %s", exc)
            raise RemoteCallError("POST", "lead webhook", str(exc)) from exc

        if not response.is_success:
            logger.error("Lead webhook answered %s", response.status_code)
            raise RemoteCallError("POST", "lead webhook", f"HTTP {response.status_code}")


class SubmissionGuard:
    """Redis claim on a submission id: SET NX with a TTL."""

    prefix = "lead:submitted:"

    def __init__(self, redis_client: redis.Redis, ttl_seconds: int | None = None):
        self._redis = redis_client
        self.ttl = ttl_seconds or settings.lead_dedupe_ttl_seconds

    async def claim(self, submission_id: str) -> bool:
        """True if this call owns the submission; False if it was already claimed."""
        try:
            claimed = await self._redis.set(
                f"{self.prefix}{submission_id}", "1", nx=True, ex=self.ttl
            )
        except redis.RedisError as exc:
            logger.error("Submission claim failed for %s: %s", submission_id, exc)
            raise RemoteCallError("claim", "redis", str(exc)) from exc
        return bool(claimed)

    async def release(self, submission_id: str) -> None:
        try:
            await self._redis.delete(f"{self.prefix}{submission_id}")
        except redis.RedisError as exc:
            logger.warning("Submission release failed for %s: %s", submission_id, exc)


class LeadSubmitter:
    """The wizard's submitter: dedupe, build the payload, POST once."""

    def __init__(
        self,
        webhook: LeadWebhookClient,
        guard: SubmissionGuard,
        client: ClientInfo,
    ):
        self.webhook = webhook
        self.guard = guard
        self.client = client
        self.duplicate = False

    async def __call__(self, draft: LeadDraft) -> None:
        if not await self.guard.claim(draft.submission_id):
            self.duplicate = True
            logger.info("Lead %s already submitted; not posting again", draft.submission_id)
            return

        try:
            await self.webhook.post(build_payload(draft, self.client))
        except RemoteCallError:
            await self.guard.release(draft.submission_id)
            raise
        logger.info("Lead %s delivered", draft.submission_id)
