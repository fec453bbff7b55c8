"""Server-rendered channel inviter application.

This module provides a minimal HTTP server for collecting invite
recipients, submitting them to the invite agent, and showing the results,
plus a small JSON API over the same session.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
from dataclasses import asdict
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from urllib.parse import parse_qs, urlencode, urlparse

from .agent_client import call_agent
from .config import (
    APP_DIR,
    ERROR_CODE_NO_VALID_EMAILS,
    SUBMISSION_IN_PROGRESS_MESSAGE,
    get_agent_api_key,
    get_channel,
)
from .email_utils import classify_emails, join_emails
from .pages import render_page
from .session import InviteSession, SessionState, SubmissionInProgressError

logger = logging.getLogger(__name__)

SESSION = InviteSession()
TRUE_VALUES = {"1", "true", "yes", "on"}
STATIC_PATHS = {"/styles.css"}


def _first(form: dict, key: str) -> str | None:
    """Return the first submitted value for a form key, if present."""
    values = form.get(key)
    if not values:
        return None
    return values[0]


def _parse_flag(value) -> bool | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in TRUE_VALUES


def _form_inputs(form: dict) -> dict:
    """Extract session input edits from a parsed urlencoded form.

    The page posts a hidden ``include_description=0`` ahead of the checkbox,
    so the flag is on when any submitted value is truthy.
    """
    flags = form.get("include_description")
    return {
        "email_input": _first(form, "emails"),
        "context": _first(form, "context"),
        "include_description": (
            any(_parse_flag(value) for value in flags) if flags else None
        ),
    }


def _json_inputs(payload: dict) -> dict:
    """Extract session input edits from a JSON request body."""
    emails = payload.get("emails")
    if isinstance(emails, list):
        emails = join_emails(str(item) for item in emails)
    elif emails is not None:
        emails = str(emails)
    context = payload.get("context")
    return {
        "email_input": emails,
        "context": str(context) if context is not None else None,
        "include_description": _parse_flag(payload.get("include_description")),
    }


def _session_payload(state: SessionState) -> dict:
    """Serialize session state for the JSON API."""
    classification = state.classification
    return {
        "phase": state.phase.value,
        "busy": state.busy,
        "email_input": state.email_input,
        "context": state.context,
        "include_description": state.include_description,
        "valid": list(classification.valid),
        "invalid": list(classification.invalid),
        "error": state.error,
        "error_code": state.error_code,
        "response": asdict(state.response) if state.response is not None else None,
    }


class AppHandler(SimpleHTTPRequestHandler):
    """HTTP handler for the invite form, its JSON API, and static assets."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, directory=str(APP_DIR), **kwargs)

    def _send_json(self, status: int, payload: dict) -> None:
        """Write a JSON response.

        Args:
            status: HTTP status code.
            payload: JSON-serializable response payload.
        """
        data = json.dumps(payload).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Cache-Control", "no-store, no-cache, must-revalidate, max-age=0")
        self.send_header("Content-Length", str(len(data)))
        self.end_headers()
        self.wfile.write(data)

    def _send_html(self, status: int, body: bytes) -> None:
        """Write an HTML response."""
        self.send_response(status)
        self.send_header("Content-Type", "text/html; charset=utf-8")
        self.send_header("Cache-Control", "no-store, no-cache, must-revalidate, max-age=0")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _redirect_home(self, message: str | None = None) -> None:
        location = f"/?{urlencode({'msg': message})}" if message else "/"
        self.send_response(303)
        self.send_header("Location", location)
        self.end_headers()

    def _read_body(self) -> bytes:
        length = int(self.headers.get("Content-Length", 0))
        return self.rfile.read(length) if length else b""

    def _read_form(self) -> dict:
        body = self._read_body().decode("utf-8")
        return parse_qs(body, keep_blank_values=True)

    def do_GET(self):
        """Handle GET requests for the page, APIs, and static assets."""
        parsed = urlparse(self.path)
        query = parse_qs(parsed.query)

        if parsed.path == "/api/health":
            return self._send_json(
                200, {"ok": True, "configured": get_agent_api_key() is not None}
            )

        if parsed.path == "/api/emails":
            classification = classify_emails(query.get("text", [""])[0])
            return self._send_json(
                200,
                {
                    "emails": classification.emails,
                    "valid": list(classification.valid),
                    "invalid": list(classification.invalid),
                },
            )

        if parsed.path == "/api/session":
            return self._send_json(200, _session_payload(SESSION.state))

        if parsed.path == "/" or parsed.path == "/index.html":
            msg = query.get("msg", [None])[0]
            body = render_page(SESSION.state, get_channel(), message=msg)
            return self._send_html(200, body)

        if parsed.path in STATIC_PATHS:
            return super().do_GET()

        self.send_error(404, "Not Found")

    def do_POST(self):
        """Handle form posts and JSON invite submissions."""
        parsed = urlparse(self.path)

        if parsed.path == "/emails":
            SESSION.update(**_form_inputs(self._read_form()))
            return self._redirect_home()

        if parsed.path == "/remove":
            email = _first(self._read_form(), "email")
            if email is None:
                return self._redirect_home("Choose an email to remove.")
            SESSION.remove(email)
            return self._redirect_home()

        if parsed.path == "/send":
            SESSION.update(**_form_inputs(self._read_form()))
            try:
                SESSION.submit(call_agent)
            except SubmissionInProgressError:
                return self._redirect_home(SUBMISSION_IN_PROGRESS_MESSAGE)
            return self._redirect_home()

        if parsed.path != "/api/invites":
            self.send_error(404, "Not Found")
            return

        try:
            payload = json.loads(self._read_body().decode("utf-8") or "{}")
        except (json.JSONDecodeError, UnicodeDecodeError):
            return self._send_json(400, {"error": "invalid json"})
        if not isinstance(payload, dict):
            return self._send_json(400, {"error": "body must be a JSON object"})

        try:
            SESSION.update(**_json_inputs(payload))
            state = SESSION.submit(call_agent)
        except SubmissionInProgressError:
            return self._send_json(409, {"error": SUBMISSION_IN_PROGRESS_MESSAGE})
        if state.error_code == ERROR_CODE_NO_VALID_EMAILS:
            return self._send_json(400, _session_payload(state))
        return self._send_json(200, _session_payload(state))

    def log_message(self, fmt, *args):
        """Suppress default HTTP request logging output."""
        return


def main() -> None:
    """Run the channel inviter HTTP server from CLI arguments."""
    log_level = (os.environ.get("LOG_LEVEL") or "INFO").upper()
    logging.basicConfig(
        level=log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    parser = argparse.ArgumentParser(description="Serve the Slack channel inviter")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    args = parser.parse_args()

    if get_agent_api_key() is None:
        logger.warning("AGENT_API_KEY is not set; invite submissions will fail.")

    server = ThreadingHTTPServer((args.host, args.port), AppHandler)
    print(f"Channel inviter running at http://{args.host}:{args.port}")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
