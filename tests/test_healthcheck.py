import pytest

import channelinvite.healthcheck as healthcheck


def test_healthcheck_ok(monkeypatch, capsys):
    monkeypatch.setenv("AGENT_API_KEY", "k")
    monkeypatch.setenv("AGENT_ID", "agent-7")
    monkeypatch.setenv("INVITE_CHANNEL", "#builders")

    healthcheck.main()

    out = capsys.readouterr().out
    assert out.startswith("OK agent=agent-7 channel=#builders")


def test_healthcheck_fails_without_key(monkeypatch):
    monkeypatch.delenv("AGENT_API_KEY", raising=False)
    with pytest.raises(SystemExit) as exc:
        healthcheck.main()
    assert exc.value.code == 1
