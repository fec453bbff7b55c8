"""Session state for the invite form and its request lifecycle.

The session is a single immutable ``SessionState`` value. It only changes
through the transition functions below, and ``InviteSession`` is the one
place that stores it.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Optional

from .config import (
    ERROR_CODE_NO_VALID_EMAILS,
    ERROR_CODE_UNEXPECTED,
    INITIAL_CONTEXT,
    INITIAL_EMAIL_INPUT,
    NO_VALID_EMAILS_ERROR,
    UNEXPECTED_ERROR,
    get_agent_id,
    get_channel,
)
from .email_utils import classify_emails, join_emails, remove_email
from .models import AgentCallResult, AgentResponse, EmailClassification
from .prompt import build_invite_message
from .results import agent_error_details, emails_outside, summary_counts

logger = logging.getLogger(__name__)

AgentCaller = Callable[[str, str], AgentCallResult]


class Phase(str, Enum):
    IDLE = "idle"
    SENDING = "sending"
    SUCCEEDED = "succeeded"
    FAILED_TRANSPORT = "failed_transport"
    FAILED_AGENT = "failed_agent"


TERMINAL_PHASES = frozenset(
    {Phase.SUCCEEDED, Phase.FAILED_TRANSPORT, Phase.FAILED_AGENT}
)


class SubmissionInProgressError(RuntimeError):
    """Raised when a submission starts while another one is outstanding."""


@dataclass(frozen=True)
class SessionState:
    email_input: str = INITIAL_EMAIL_INPUT
    context: str = INITIAL_CONTEXT
    include_description: bool = True
    phase: Phase = Phase.IDLE
    response: Optional[AgentResponse] = None
    error: Optional[str] = None
    error_code: Optional[str] = None

    @property
    def busy(self) -> bool:
        return self.phase is Phase.SENDING

    @property
    def classification(self) -> EmailClassification:
        return classify_emails(self.email_input)


def edit_input(
    state: SessionState,
    email_input: str | None = None,
    context: str | None = None,
    include_description: bool | None = None,
) -> SessionState:
    """Apply user edits; a finished submission drops back to idle.

    A previously displayed response or error stays visible until the next
    submission completes.
    """
    changes: dict = {}
    if email_input is not None:
        changes["email_input"] = email_input
    if context is not None:
        changes["context"] = context
    if include_description is not None:
        changes["include_description"] = include_description
    if state.phase in TERMINAL_PHASES:
        changes["phase"] = Phase.IDLE
    return replace(state, **changes)


def remove_recipient(state: SessionState, email: str) -> SessionState:
    """Remove one recipient and rewrite the raw input from what remains."""
    remaining = remove_email(state.email_input, email)
    return edit_input(state, email_input=join_emails(remaining))


def start_submission(state: SessionState) -> SessionState:
    """Move to ``sending``, or record an input error when nothing is sendable.

    Raises:
        SubmissionInProgressError: If a submission is already outstanding.
    """
    if state.busy:
        raise SubmissionInProgressError("a submission is already in progress")
    if not state.classification.valid:
        return replace(
            state,
            phase=Phase.IDLE,
            error=NO_VALID_EMAILS_ERROR,
            error_code=ERROR_CODE_NO_VALID_EMAILS,
        )
    return replace(
        state,
        phase=Phase.SENDING,
        response=None,
        error=None,
        error_code=None,
    )


def complete_submission(state: SessionState, result: AgentCallResult) -> SessionState:
    """Record the outcome of the agent call."""
    if not result.success or result.response is None:
        return replace(
            state,
            phase=Phase.FAILED_TRANSPORT,
            response=None,
            error=result.error_text(),
            error_code=result.error_code,
        )
    response = result.response
    if response.is_error:
        return replace(
            state,
            phase=Phase.FAILED_AGENT,
            response=response,
            error=agent_error_details(response) or None,
            error_code=result.error_code,
        )
    return replace(
        state,
        phase=Phase.SUCCEEDED,
        response=response,
        error=None,
        error_code=None,
    )


def fail_submission(state: SessionState, exc: BaseException) -> SessionState:
    """Record an unexpected exception raised while calling the agent."""
    return replace(
        state,
        phase=Phase.FAILED_TRANSPORT,
        response=None,
        error=str(exc) or UNEXPECTED_ERROR,
        error_code=ERROR_CODE_UNEXPECTED,
    )


class InviteSession:
    """In-memory holder for the single form session.

    At most one agent call is outstanding at a time; the call itself runs
    without holding the lock.
    """

    def __init__(self, state: SessionState | None = None):
        self._lock = threading.Lock()
        self._state = state or SessionState()

    @property
    def state(self) -> SessionState:
        with self._lock:
            return self._state

    def update(
        self,
        email_input: str | None = None,
        context: str | None = None,
        include_description: bool | None = None,
    ) -> SessionState:
        with self._lock:
            self._state = edit_input(
                self._state,
                email_input=email_input,
                context=context,
                include_description=include_description,
            )
            return self._state

    def remove(self, email: str) -> SessionState:
        with self._lock:
            self._state = remove_recipient(self._state, email)
            return self._state

    def submit(self, call: AgentCaller, channel: str | None = None) -> SessionState:
        """Run one submission from start to finish.

        Args:
            call: Agent caller taking ``(message, agent_id)``.
            channel: Target channel; defaults to the configured one.

        Returns:
            The state after the submission settles.

        Raises:
            SubmissionInProgressError: If another submission is outstanding.
        """
        with self._lock:
            self._state = start_submission(self._state)
            snapshot = self._state
        if snapshot.phase is not Phase.SENDING:
            logger.info("Submission blocked: no valid email addresses.")
            return snapshot

        valid = list(snapshot.classification.valid)
        message = build_invite_message(
            channel or get_channel(),
            valid,
            snapshot.context,
            snapshot.include_description,
        )
        logger.info(
            f"Sending invites to {len(valid)} recipient(s) "
            f"({snapshot.classification.summary()})."
        )
        try:
            result = call(message, get_agent_id())
        except Exception as exc:
            logger.warning(f"Invite submission raised: {exc}")
            with self._lock:
                self._state = fail_submission(self._state, exc)
                return self._state

        with self._lock:
            self._state = complete_submission(self._state, result)
            state = self._state
        unexpected = emails_outside(state.response, valid)
        if unexpected:
            logger.warning(f"Agent reported outcomes for unsubmitted emails: {unexpected}")
        if state.phase is Phase.SUCCEEDED:
            summary = summary_counts(state.response)
            logger.info(
                f"Invites finished: sent={summary.successful_count} "
                f"failed={summary.failed_count}"
            )
        else:
            logger.warning(f"Invite submission ended in {state.phase.value}: {state.error}")
        return state
