from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Optional, Union

SENT = "sent"
FAILED = "failed"


@dataclass(frozen=True)
class EmailClassification:
    valid: tuple[str, ...] = ()
    invalid: tuple[str, ...] = ()

    @property
    def emails(self) -> list[str]:
        """Return every classified email, valid entries first."""
        return [*self.valid, *self.invalid]

    def summary(self) -> str:
        """Return a compact summary of the partition sizes."""
        return f"{len(self.valid)} valid, {len(self.invalid)} invalid"


@dataclass(frozen=True)
class SentInvite:
    email: str
    user_id: str = ""
    user_name: str = ""
    message_sent: bool = False
    timestamp: str = ""
    kind: Literal["sent"] = field(default=SENT, init=False)


@dataclass(frozen=True)
class FailedInvite:
    email: str
    reason: str = ""
    error_details: str = ""
    kind: Literal["failed"] = field(default=FAILED, init=False)


InviteOutcome = Union[SentInvite, FailedInvite]


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return value is True


def _count(value: Any) -> int:
    """Return a non-negative count, or 0 for anything that is not a number."""
    if isinstance(value, bool):
        return 0
    try:
        return max(0, int(value))
    except (TypeError, ValueError):
        return 0


@dataclass(frozen=True)
class InviteSummary:
    total_emails: int = 0
    successful_count: int = 0
    failed_count: int = 0

    @classmethod
    def from_payload(cls, payload: Any) -> "InviteSummary":
        """Build a summary from the agent's ``summary`` object.

        Missing or malformed fields degrade to zero.
        """
        if not isinstance(payload, dict):
            return cls()
        successful = payload.get("successful", payload.get("successful_count"))
        failed = payload.get("failed", payload.get("failed_count"))
        return cls(
            total_emails=_count(payload.get("total_emails")),
            successful_count=_count(successful),
            failed_count=_count(failed),
        )

    @property
    def is_consistent(self) -> bool:
        return self.successful_count + self.failed_count == self.total_emails


@dataclass(frozen=True)
class AgentResult:
    invites_sent: tuple[SentInvite, ...] = ()
    invites_failed: tuple[FailedInvite, ...] = ()
    summary: InviteSummary = field(default_factory=InviteSummary)

    @property
    def outcomes(self) -> list[InviteOutcome]:
        return [*self.invites_sent, *self.invites_failed]

    @classmethod
    def from_payload(cls, payload: Any) -> "AgentResult":
        """Parse a result payload, tagging each outcome by the list it came from.

        Args:
            payload: The ``result`` object of an agent response.

        Returns:
            Parsed result. Non-dict entries are skipped.
        """
        if not isinstance(payload, dict):
            return cls()
        sent = tuple(
            SentInvite(
                email=_text(item.get("email")),
                user_id=_text(item.get("user_id")),
                user_name=_text(item.get("user_name")),
                message_sent=_flag(item.get("message_sent")),
                timestamp=_text(item.get("timestamp")),
            )
            for item in payload.get("invites_sent") or []
            if isinstance(item, dict)
        )
        failed = tuple(
            FailedInvite(
                email=_text(item.get("email")),
                reason=_text(item.get("reason")),
                error_details=_text(item.get("error_details")),
            )
            for item in payload.get("invites_failed") or []
            if isinstance(item, dict)
        )
        return cls(
            invites_sent=sent,
            invites_failed=failed,
            summary=InviteSummary.from_payload(payload.get("summary")),
        )


@dataclass(frozen=True)
class AgentResponse:
    status: str = "other"
    message: Optional[str] = None
    result: Optional[AgentResult] = None

    @property
    def is_error(self) -> bool:
        return self.status == "error"

    @property
    def is_success(self) -> bool:
        return self.status == "success"


def parse_agent_response(payload: Any) -> AgentResponse:
    """Build an AgentResponse from a decoded agent payload.

    A dict carrying ``status`` is taken as-is. A dict without it is treated
    as a successful response, reading its nested ``result`` when present and
    otherwise the dict itself as the result.

    Args:
        payload: Decoded JSON value returned by the agent.

    Returns:
        Parsed response.
    """
    if not isinstance(payload, dict):
        return AgentResponse(status="success", message=_text(payload) or None)
    if "status" not in payload:
        nested = payload.get("result")
        message = payload.get("message")
        return AgentResponse(
            status="success",
            message=_text(message) if message is not None else None,
            result=AgentResult.from_payload(nested if isinstance(nested, dict) else payload),
        )
    status = _text(payload.get("status")).strip().lower()
    if status not in ("success", "error"):
        status = "other"
    message = payload.get("message")
    result = payload.get("result")
    return AgentResponse(
        status=status,
        message=_text(message) if message is not None else None,
        result=AgentResult.from_payload(result) if isinstance(result, dict) else None,
    )


@dataclass(frozen=True)
class AgentCallResult:
    success: bool
    response: Optional[AgentResponse] = None
    error: Optional[str] = None
    details: Optional[str] = None
    raw_response: Optional[str] = None
    error_code: Optional[str] = None

    def error_text(self) -> str:
        """Return the most specific failure text available."""
        return self.details or self.raw_response or self.error or "Failed to send invites"
