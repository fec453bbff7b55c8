"""Client for the hosted agent API that performs the channel invites."""

from __future__ import annotations

import json
import logging
import re
import uuid
from typing import Any, Optional

import requests

from .config import (
    ERROR_CODE_AGENT,
    ERROR_CODE_HTTP,
    ERROR_CODE_INVALID_RESPONSE,
    ERROR_CODE_MISSING_SCOPE,
    ERROR_CODE_NOT_CONFIGURED,
    ERROR_CODE_TRANSPORT,
    get_agent_api_key,
    get_agent_api_url,
    get_agent_id,
    get_agent_timeout,
    get_agent_user_id,
)
from .models import AgentCallResult, AgentResponse, parse_agent_response
from .results import agent_error_details

logger = logging.getLogger(__name__)

CODE_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


def detect_error_code(text: str | None, default: Optional[str] = None) -> Optional[str]:
    """Map free error text onto a structured error code.

    Args:
        text: Error text reported by the API or the agent.
        default: Code to return when nothing more specific matches.

    Returns:
        The detected code, or ``default``.
    """
    if text and ERROR_CODE_MISSING_SCOPE in text:
        return ERROR_CODE_MISSING_SCOPE
    return default


def _strip_code_fence(text: str) -> str:
    match = CODE_FENCE_RE.match(text.strip())
    return match.group(1) if match else text.strip()


def normalize_agent_reply(body: Any) -> AgentResponse:
    """Turn the raw API body into an AgentResponse.

    The agent's answer lives in the ``response`` field and is usually a JSON
    document serialized as a string, sometimes wrapped in a Markdown code
    fence. Plain text answers become a message-only success.

    Args:
        body: Decoded JSON body returned by the API.

    Returns:
        Normalized agent response.
    """
    reply = body.get("response", body) if isinstance(body, dict) else body
    if isinstance(reply, str):
        try:
            reply = json.loads(_strip_code_fence(reply))
        except json.JSONDecodeError:
            return AgentResponse(status="success", message=reply)
    return parse_agent_response(reply)


def call_agent(
    message: str,
    agent_id: str | None = None,
    session_id: str | None = None,
) -> AgentCallResult:
    """Send one instruction to the agent and return a structured result.

    Network, HTTP and decoding problems are reported through the returned
    value; this function does not raise for them.

    Args:
        message: Natural-language instruction for the agent.
        agent_id: Agent identifier; defaults to the configured agent.
        session_id: Optional conversation id; a fresh one is generated when omitted.

    Returns:
        Result carrying either the normalized response or error details.
    """
    api_key = get_agent_api_key()
    if not api_key:
        logger.warning("AGENT_API_KEY is not configured; skipping agent call.")
        return AgentCallResult(
            success=False,
            error="AGENT_API_KEY is not configured",
            error_code=ERROR_CODE_NOT_CONFIGURED,
        )

    agent_id = agent_id or get_agent_id()
    payload = {
        "user_id": get_agent_user_id(),
        "agent_id": agent_id,
        "session_id": session_id or f"{agent_id}-{uuid.uuid4().hex[:12]}",
        "message": message,
    }
    headers = {
        "Content-Type": "application/json",
        "Accept": "application/json",
        "x-api-key": api_key,
        "User-Agent": "channel-inviter/1.0",
    }
    url = get_agent_api_url()
    logger.info(f"Calling agent {agent_id} at {url}")
    try:
        r = requests.post(url, json=payload, headers=headers, timeout=get_agent_timeout())
    except requests.RequestException as exc:
        logger.warning(f"Agent call failed: {exc}")
        details = str(exc)
        return AgentCallResult(
            success=False,
            error="Agent request failed",
            details=details,
            error_code=detect_error_code(details, ERROR_CODE_TRANSPORT),
        )

    raw = r.text or ""
    if not r.ok:
        logger.warning(
            f"Agent call returned status={r.status_code} body={raw[:800]}"
        )
        return AgentCallResult(
            success=False,
            error=f"Agent API returned HTTP {r.status_code}",
            raw_response=raw or None,
            error_code=detect_error_code(raw, ERROR_CODE_HTTP),
        )

    try:
        body = r.json()
    except ValueError:
        logger.warning(f"Agent call returned a non-JSON body: {raw[:800]}")
        return AgentCallResult(
            success=False,
            error="Agent API returned a non-JSON response",
            raw_response=raw or None,
            error_code=detect_error_code(raw, ERROR_CODE_INVALID_RESPONSE),
        )

    response = normalize_agent_reply(body)
    error_code = None
    if response.is_error:
        error_code = detect_error_code(agent_error_details(response), ERROR_CODE_AGENT)
    return AgentCallResult(
        success=True,
        response=response,
        raw_response=raw,
        error_code=error_code,
    )
