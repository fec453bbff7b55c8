"""Classification helpers for agent invite results."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from .models import (
    FAILED,
    AgentResponse,
    AgentResult,
    FailedInvite,
    InviteOutcome,
    InviteSummary,
)

USER_NOT_FOUND = "user_not_found"


def failure_label(outcome: FailedInvite) -> str:
    """Return the badge text for a failed invite."""
    return "Not Found" if outcome.reason == USER_NOT_FOUND else "Failed"


def outcome_label(outcome: InviteOutcome) -> str:
    """Return the badge text for any invite outcome."""
    if outcome.kind == FAILED:
        return failure_label(outcome)
    return "Sent"


def result_of(response: Optional[AgentResponse]) -> Optional[AgentResult]:
    return response.result if response is not None else None


def summary_counts(response: Optional[AgentResponse]) -> InviteSummary:
    """Return the response summary, or an all-zero summary when absent."""
    result = result_of(response)
    return result.summary if result is not None else InviteSummary()


def agent_error_details(response: Optional[AgentResponse]) -> str:
    """Join the details of every failed invite, one per line."""
    result = result_of(response)
    if result is None:
        return ""
    return "\n".join(item.error_details for item in result.invites_failed)


def emails_outside(response: Optional[AgentResponse], emails: list[str]) -> list[str]:
    """Return outcome emails that were not part of the submitted list."""
    result = result_of(response)
    if result is None:
        return []
    submitted = set(emails)
    return [item.email for item in result.outcomes if item.email not in submitted]


def format_timestamp(value: str | None) -> str:
    """Format an ISO-8601 timestamp for display, keeping unparsable text as-is."""
    text = (value or "").strip()
    if not text:
        return "Unknown time"
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return text
    return f"{parsed:%Y-%m-%d %H:%M:%S} {parsed:%Z}".strip()
