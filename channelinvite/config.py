"""Configuration and simple helper utilities for the channel inviter."""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

APP_DIR = Path(__file__).resolve().parent
DEFAULT_AGENT_API_URL = "https://agent-prod.studio.lyzr.ai/v3/inference/chat/"
DEFAULT_AGENT_ID = "696e7c1de1e4c42b224b2a06"
DEFAULT_AGENT_USER_ID = "channel-inviter"
DEFAULT_AGENT_TIMEOUT_SECONDS = 120.0
DEFAULT_CHANNEL = "made-with-architect"
DEFAULT_CONTEXT = "I'd like to invite you to join our community"

INITIAL_EMAIL_INPUT = "alice@company.com, bob@company.com, charlie@example.com"
INITIAL_CONTEXT = "Great chatting at the hackathon!"

NO_VALID_EMAILS_ERROR = "Please enter at least one valid email address"
UNEXPECTED_ERROR = "An unexpected error occurred"
SUBMISSION_IN_PROGRESS_MESSAGE = "Invites are already being sent. Please wait."

ERROR_CODE_MISSING_SCOPE = "missing_scope"
ERROR_CODE_NO_VALID_EMAILS = "no_valid_emails"
ERROR_CODE_HTTP = "http_error"
ERROR_CODE_TRANSPORT = "transport_error"
ERROR_CODE_INVALID_RESPONSE = "invalid_response"
ERROR_CODE_NOT_CONFIGURED = "not_configured"
ERROR_CODE_AGENT = "agent_error"
ERROR_CODE_UNEXPECTED = "unexpected_error"

REQUIRED_SCOPES = ("users:read", "users:read.email", "chat:write")


def get_agent_api_url() -> str:
    return (os.environ.get("AGENT_API_URL") or "").strip() or DEFAULT_AGENT_API_URL


def get_agent_api_key() -> str | None:
    return (os.environ.get("AGENT_API_KEY") or "").strip() or None


def get_agent_id() -> str:
    return (os.environ.get("AGENT_ID") or "").strip() or DEFAULT_AGENT_ID


def get_agent_user_id() -> str:
    return (os.environ.get("AGENT_USER_ID") or "").strip() or DEFAULT_AGENT_USER_ID


def get_agent_timeout() -> float:
    """Return the HTTP timeout for agent calls, falling back on bad values."""
    raw = (os.environ.get("AGENT_TIMEOUT_SECONDS") or "").strip()
    try:
        value = float(raw)
    except ValueError:
        return DEFAULT_AGENT_TIMEOUT_SECONDS
    return value if value > 0 else DEFAULT_AGENT_TIMEOUT_SECONDS


def get_channel() -> str:
    """Return the target channel name without a leading ``#``."""
    raw = (os.environ.get("INVITE_CHANNEL") or "").strip().lstrip("#")
    return raw or DEFAULT_CHANNEL
