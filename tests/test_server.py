import threading
from http.server import ThreadingHTTPServer

import pytest
import requests

import channelinvite.server as server
from channelinvite.models import (
    AgentCallResult,
    AgentResponse,
    AgentResult,
    FailedInvite,
    InviteSummary,
    SentInvite,
)
from channelinvite.session import InviteSession, Phase, SessionState


def _agent_result():
    return AgentCallResult(
        success=True,
        response=AgentResponse(
            status="success",
            result=AgentResult(
                invites_sent=(SentInvite(email="a@b.com", user_id="U1", user_name="A"),),
                invites_failed=(),
                summary=InviteSummary(total_emails=1, successful_count=1),
            ),
        ),
    )


class FakeAgent:
    def __init__(self, result=None):
        self.result = result or _agent_result()
        self.calls = []

    def __call__(self, message, agent_id):
        self.calls.append((message, agent_id))
        return self.result


@pytest.fixture
def fake_agent(monkeypatch):
    agent = FakeAgent()
    monkeypatch.setattr(server, "call_agent", agent)
    return agent


@pytest.fixture
def live_server(monkeypatch):
    monkeypatch.setattr(
        server, "SESSION", InviteSession(SessionState(email_input="a@b.com, bad"))
    )
    monkeypatch.delenv("AGENT_API_KEY", raising=False)
    httpd = ThreadingHTTPServer(("127.0.0.1", 0), server.AppHandler)
    thread = threading.Thread(target=httpd.serve_forever, daemon=True)
    thread.start()
    try:
        yield f"http://127.0.0.1:{httpd.server_address[1]}"
    finally:
        httpd.shutdown()
        httpd.server_close()
        thread.join(5)


def test_form_inputs_reads_checkbox_after_hidden_default():
    assert server._form_inputs({"include_description": ["0", "1"]})["include_description"] is True
    assert server._form_inputs({"include_description": ["0"]})["include_description"] is False
    assert server._form_inputs({})["include_description"] is None
    assert server._form_inputs({"emails": [""]})["email_input"] == ""


def test_json_inputs_accepts_email_lists():
    inputs = server._json_inputs(
        {"emails": ["a@b.com", "c@d.com"], "context": "hi", "include_description": "yes"}
    )
    assert inputs == {
        "email_input": "a@b.com, c@d.com",
        "context": "hi",
        "include_description": True,
    }
    assert server._json_inputs({}) == {
        "email_input": None,
        "context": None,
        "include_description": None,
    }


def test_get_root_renders_page(live_server):
    r = requests.get(f"{live_server}/", timeout=5)
    assert r.status_code == 200
    assert "text/html" in r.headers["Content-Type"]
    assert "Slack Channel Inviter" in r.text
    assert "Valid Emails (1)" in r.text
    assert "Invalid Emails (1)" in r.text


def test_get_root_shows_flash_message(live_server):
    r = requests.get(f"{live_server}/", params={"msg": "Hello there"}, timeout=5)
    assert "Hello there" in r.text


def test_static_stylesheet_is_served_and_sources_are_not(live_server):
    assert requests.get(f"{live_server}/styles.css", timeout=5).status_code == 200
    assert requests.get(f"{live_server}/server.py", timeout=5).status_code == 404


def test_api_health_and_emails(live_server):
    health = requests.get(f"{live_server}/api/health", timeout=5).json()
    assert health == {"ok": True, "configured": False}

    emails = requests.get(
        f"{live_server}/api/emails",
        params={"text": "bad-email, good@x.com\ngood@x.com"},
        timeout=5,
    ).json()
    assert emails == {
        "emails": ["good@x.com", "bad-email"],
        "valid": ["good@x.com"],
        "invalid": ["bad-email"],
    }


def test_post_emails_updates_session_and_redirects(live_server):
    r = requests.post(
        f"{live_server}/emails",
        data={"emails": "x@y.com\nx@y.com, z", "context": "", "include_description": "0"},
        allow_redirects=False,
        timeout=5,
    )
    assert r.status_code == 303
    assert r.headers["Location"] == "/"
    state = server.SESSION.state
    assert state.email_input == "x@y.com\nx@y.com, z"
    assert state.context == ""
    assert state.include_description is False
    assert state.classification.valid == ("x@y.com",)


def test_post_remove_drops_email(live_server):
    r = requests.post(
        f"{live_server}/remove", data={"email": "bad"}, allow_redirects=False, timeout=5
    )
    assert r.status_code == 303
    assert server.SESSION.state.email_input == "a@b.com"


def test_post_send_submits_valid_emails(live_server, fake_agent):
    r = requests.post(
        f"{live_server}/send",
        data={"emails": "a@b.com, nope", "context": "Hi", "include_description": ["0", "1"]},
        allow_redirects=False,
        timeout=5,
    )
    assert r.status_code == 303
    assert len(fake_agent.calls) == 1
    assert "Emails to invite: a@b.com\n" in fake_agent.calls[0][0]
    assert server.SESSION.state.phase is Phase.SUCCEEDED

    page = requests.get(f"{live_server}/", timeout=5).text
    assert "Invite Results" in page
    assert "Successfully Sent (1)" in page


def test_post_send_without_valid_emails_blocks_call(live_server, fake_agent):
    requests.post(
        f"{live_server}/send",
        data={"emails": "nope"},
        allow_redirects=False,
        timeout=5,
    )
    assert fake_agent.calls == []
    page = requests.get(f"{live_server}/", timeout=5).text
    assert "Please enter at least one valid email address" in page


def test_post_send_while_busy_redirects_with_message(live_server, fake_agent, monkeypatch):
    monkeypatch.setattr(
        server, "SESSION", InviteSession(SessionState(email_input="a@b.com", phase=Phase.SENDING))
    )
    r = requests.post(f"{live_server}/send", data={}, allow_redirects=False, timeout=5)
    assert r.status_code == 303
    assert r.headers["Location"].startswith("/?msg=")
    assert fake_agent.calls == []


def test_api_invites_returns_session_snapshot(live_server, fake_agent):
    r = requests.post(
        f"{live_server}/api/invites",
        json={"emails": ["a@b.com", "oops"], "context": "Hey", "include_description": False},
        timeout=5,
    )
    assert r.status_code == 200
    payload = r.json()
    assert payload["phase"] == "succeeded"
    assert payload["valid"] == ["a@b.com"]
    assert payload["invalid"] == ["oops"]
    assert payload["response"]["result"]["invites_sent"][0]["kind"] == "sent"
    assert payload["response"]["result"]["summary"]["successful_count"] == 1
    assert "Do not include the channel description." in fake_agent.calls[0][0]

    snapshot = requests.get(f"{live_server}/api/session", timeout=5).json()
    assert snapshot["phase"] == "succeeded"


def test_api_invites_agent_error_payload(live_server, monkeypatch):
    failed = AgentCallResult(
        success=True,
        response=AgentResponse(
            status="error",
            result=AgentResult(
                invites_failed=(
                    FailedInvite(email="a@b.com", reason="api_error", error_details="missing_scope"),
                )
            ),
        ),
        error_code="missing_scope",
    )
    monkeypatch.setattr(server, "call_agent", FakeAgent(failed))
    payload = requests.post(
        f"{live_server}/api/invites", json={"emails": "a@b.com"}, timeout=5
    ).json()
    assert payload["phase"] == "failed_agent"
    assert payload["error"] == "missing_scope"
    assert payload["error_code"] == "missing_scope"
    assert payload["response"]["result"]["invites_failed"][0]["kind"] == "failed"

    page = requests.get(f"{live_server}/", timeout=5).text
    assert "Slack Permission Issue" in page


def test_api_invites_rejects_bad_input(live_server, fake_agent):
    r = requests.post(
        f"{live_server}/api/invites",
        data="{not json",
        headers={"Content-Type": "application/json"},
        timeout=5,
    )
    assert r.status_code == 400
    assert r.json() == {"error": "invalid json"}

    r = requests.post(f"{live_server}/api/invites", json=["a@b.com"], timeout=5)
    assert r.status_code == 400

    r = requests.post(f"{live_server}/api/invites", json={"emails": "nope"}, timeout=5)
    assert r.status_code == 400
    assert r.json()["error_code"] == "no_valid_emails"
    assert fake_agent.calls == []


def test_api_invites_conflict_while_busy(live_server, fake_agent, monkeypatch):
    monkeypatch.setattr(
        server, "SESSION", InviteSession(SessionState(email_input="a@b.com", phase=Phase.SENDING))
    )
    r = requests.post(f"{live_server}/api/invites", json={}, timeout=5)
    assert r.status_code == 409
    assert fake_agent.calls == []


def test_unknown_paths_return_404(live_server):
    assert requests.get(f"{live_server}/nope", timeout=5).status_code == 404
    assert requests.post(f"{live_server}/nope", data={}, timeout=5).status_code == 404
