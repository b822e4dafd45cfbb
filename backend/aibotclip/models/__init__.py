"""Aggregate model imports for Alembic auto-detection."""

from aibotclip.models.agent import Agent  # noqa: F401
from aibotclip.models.key_feature import KeyFeature  # noqa: F401
from aibotclip.models.user import User, UserRoleGrant  # noqa: F401
