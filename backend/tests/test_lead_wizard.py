"""Lead wizard state machine tests."""

import asyncio

import pytest
from pydantic import ValidationError

from aibotclip.middleware.exceptions import RemoteCallError
from aibotclip.services.lead_wizard import (
    Direction,
    LeadDraft,
    LeadWizard,
    WizardState,
    format_phone,
    validate_step,
)

COMPLETE = {
    "company_name": "Acme",
    "agent_name": "SalesAssistant",
    "service_type": "buy",
    "email": "a@b.co",
    "phone": "(555) 123-4567",
    "description": "Qualify inbound leads and book demos.",
}


def _at_last_step(submitter=None) -> LeadWizard:
    return LeadWizard(LeadDraft(**COMPLETE), WizardState(current_step=5), submitter=submitter)


@pytest.mark.unit
class TestStepRules:
    def test_company_name(self):
        assert validate_step(0, LeadDraft(company_name="  ")) == {
            "company_name": "Company name is required"
        }
        assert validate_step(0, LeadDraft(company_name="Acme")) == {}

    def test_agent_name(self):
        assert validate_step(1, LeadDraft()) == {"agent_name": "AI Agent name is required"}

    def test_service_type(self):
        assert validate_step(2, LeadDraft(service_type="")) == {
            "service_type": "Please select a service type"
        }
        assert validate_step(2, LeadDraft(service_type="rent")) != {}
        for kind in ("buy", "support", "inquiries", "request"):
            assert validate_step(2, LeadDraft(service_type=kind)) == {}

    def test_email(self):
        assert validate_step(3, LeadDraft(email="")) == {"email": "Email is required"}
        assert validate_step(3, LeadDraft(email="not-an-email")) == {
            "email": "Please enter a valid email"
        }
        assert validate_step(3, LeadDraft(email="a@b.co")) == {}

    def test_phone(self):
        assert validate_step(4, LeadDraft(phone="")) == {"phone": "Phone number is required"}
        assert validate_step(4, LeadDraft(phone="12345")) == {
            "phone": "Phone number must be exactly 10 digits"
        }
        assert validate_step(4, LeadDraft(phone="555-123-4567")) == {}

    def test_description_length(self):
        assert validate_step(5, LeadDraft(description="")) == {
            "description": "Description is required"
        }
        assert validate_step(5, LeadDraft(description="x" * 19)) == {
            "description": "Please provide more details (at least 20 characters)"
        }
        assert validate_step(5, LeadDraft(description="x" * 20)) == {}
        # Surrounding whitespace does not count
        assert validate_step(5, LeadDraft(description="  " + "x" * 19 + "  ")) != {}


@pytest.mark.unit
class TestFormatPhone:
    @pytest.mark.parametrize("raw,expected", [
        ("", ""),
        ("5", "5"),
        ("555", "555"),
        ("5551", "(555) 1"),
        ("555123", "(555) 123"),
        ("5551234", "(555) 123-4"),
        ("555-123-4567", "(555) 123-4567"),
        ("555123456789", "(555) 123-4567"),
    ])
    def test_progressive_format(self, raw, expected):
        assert format_phone(raw) == expected


@pytest.mark.unit
@pytest.mark.asyncio
class TestNavigation:
    async def test_invalid_step_blocks_and_shakes(self):
        wizard = LeadWizard()
        result = await wizard.next()

        assert result.shake is True
        assert result.state.current_step == 0
        assert result.state.field_errors == {"company_name": "Company name is required"}

    async def test_valid_step_advances(self):
        wizard = LeadWizard()
        wizard.set_field("company_name", "Acme")
        result = await wizard.next()

        assert result.shake is False
        assert result.state.current_step == 1
        assert result.state.direction == Direction.FORWARD
        assert result.state.field_errors == {}

    async def test_previous_never_validates(self):
        wizard = LeadWizard(LeadDraft(), WizardState(current_step=3, field_errors={"email": "x"}))
        result = wizard.previous()

        assert result.state.current_step == 2
        assert result.state.direction == Direction.BACKWARD
        assert result.state.field_errors == {}

    async def test_previous_at_first_step(self):
        wizard = LeadWizard()
        assert wizard.previous().state.current_step == 0

    async def test_set_field_formats_phone(self):
        wizard = LeadWizard()
        wizard.set_field("phone", "5551234567")
        assert wizard.draft.phone == "(555) 123-4567"

    async def test_set_field_rejects_unknown(self):
        wizard = LeadWizard()
        with pytest.raises(ValueError):
            wizard.set_field("submission_id", "x")
        with pytest.raises(ValueError):
            wizard.set_field("country_code", "+999")

    async def test_draft_rejects_unknown_country_code(self):
        with pytest.raises(ValidationError):
            LeadDraft(country_code="+999")
        assert LeadDraft(country_code="+44").country_code == "+44"

    async def test_progress_and_minutes_left(self):
        wizard = LeadWizard()
        assert wizard.minutes_left == 3
        assert wizard.progress == pytest.approx(100 / 6)

        wizard.state.current_step = 5
        assert wizard.minutes_left == 1
        assert wizard.progress == pytest.approx(100)


@pytest.mark.unit
@pytest.mark.asyncio
class TestSubmit:
    async def test_last_step_submits_once(self):
        delivered = []

        async def submitter(draft):
            delivered.append(draft)

        wizard = _at_last_step(submitter)
        result = await wizard.next()

        assert result.state.submitted is True
        assert result.notification.title == "Form submitted successfully!"
        assert len(delivered) == 1

        # Terminal: further next() calls do nothing
        await wizard.next()
        assert len(delivered) == 1

    async def test_failed_submit_stays_on_last_step(self):
        async def submitter(draft):
            raise RemoteCallError("POST", "lead webhook", "HTTP 500")

        wizard = _at_last_step(submitter)
        result = await wizard.next()

        assert result.state.submitted is False
        assert result.state.current_step == 5
        assert result.state.field_errors == {}
        assert result.notification.level == "error"
        assert result.notification.title == "Submission failed"

    async def test_concurrent_submit_is_refused(self):
        started = asyncio.Event()
        release = asyncio.Event()
        calls = []

        async def submitter(draft):
            calls.append(draft)
            started.set()
            await release.wait()

        wizard = _at_last_step(submitter)
        first = asyncio.create_task(wizard.submit())
        await started.wait()

        second = await wizard.submit()
        assert second.state.submitted is False
        assert second.notification is None

        release.set()
        assert (await first).state.submitted is True
        assert len(calls) == 1

    async def test_reset_after_submit(self):
        async def submitter(draft):
            return None

        wizard = _at_last_step(submitter)
        old_id = wizard.draft.submission_id
        await wizard.next()
        result = wizard.reset()

        assert result.state.current_step == 0
        assert result.state.submitted is False
        assert result.draft.company_name == ""
        assert result.draft.country_code == "+1"
        assert result.draft.submission_id != old_id

    async def test_reset_before_submit_is_ignored(self):
        wizard = LeadWizard(LeadDraft(company_name="Acme"), WizardState(current_step=2))
        result = wizard.reset()
        assert result.state.current_step == 2
        assert result.draft.company_name == "Acme"
