"""HTML rendering helpers for the channel inviter."""

from __future__ import annotations

from html import escape

from .config import ERROR_CODE_MISSING_SCOPE, REQUIRED_SCOPES
from .models import SENT, AgentResponse, InviteOutcome
from .prompt import build_preview_lines
from .results import format_timestamp, outcome_label, summary_counts
from .session import SessionState


def _render_chip(email: str, valid: bool) -> str:
    """Render one removable email chip."""
    css_class = "chip" if valid else "chip chip-invalid"
    escaped = escape(email)
    return f"""
              <form class="{css_class}" method="post" action="/remove">
                <input type="hidden" name="email" value="{escaped}" />
                <span>{escaped}</span>
                <button class="chip-remove" type="submit" aria-label="Remove {escaped}">&times;</button>
              </form>"""


def _render_chips(state: SessionState) -> str:
    classification = state.classification
    sections: list[str] = []
    if classification.valid:
        chips = "".join(_render_chip(email, True) for email in classification.valid)
        sections.append(
            f"""
            <div class="chip-group">
              <p class="chip-heading">Valid Emails ({len(classification.valid)})</p>
              <div class="chips">{chips}</div>
            </div>"""
        )
    if classification.invalid:
        chips = "".join(_render_chip(email, False) for email in classification.invalid)
        sections.append(
            f"""
            <div class="chip-group">
              <p class="chip-heading chip-heading-invalid">Invalid Emails ({len(classification.invalid)})</p>
              <div class="chips">{chips}</div>
            </div>"""
        )
    return "".join(sections)


def _render_preview(state: SessionState, channel: str) -> str:
    """Render the sample message card, or nothing when no email is valid."""
    if not state.classification.valid:
        return ""
    paragraphs = "".join(
        f"<p>{escape(line)}</p>"
        for line in build_preview_lines(channel, state.context, state.include_description)
    )
    return f"""
        <section class="card card-preview">
          <h2>Preview</h2>
          <p class="card-copy">Sample message that will be sent</p>
          <div class="preview">{paragraphs}</div>
        </section>"""


def _render_error(state: SessionState) -> str:
    """Render the error block and, for permission problems, the remediation hint."""
    if not state.error:
        return ""
    hint_html = ""
    if state.error_code == ERROR_CODE_MISSING_SCOPE:
        scopes = ", ".join(REQUIRED_SCOPES)
        hint_html = f"""
          <div class="hint" role="note">
            <strong>Slack Permission Issue:</strong> The Slack integration needs additional permissions.
            The agent needs to reconnect to Slack with the following scopes: {escape(scopes)}
          </div>"""
    return f"""
        <section class="card card-error" role="alert">
          <h2>Error</h2>
          <pre class="error-text">{escape(state.error)}</pre>{hint_html}
        </section>"""


def _render_outcome(outcome: InviteOutcome) -> str:
    """Render one invite outcome.

    Sent invites get a collapsed details block; failures show their details
    inline.
    """
    label = escape(outcome_label(outcome))
    email = escape(outcome.email or "Unknown email")
    if outcome.kind == SENT:
        return f"""
            <details class="outcome outcome-sent">
              <summary>
                <span class="outcome-email">{email}</span>
                <span class="badge badge-sent">{label}</span>
                <span class="outcome-meta">{escape(outcome.user_name)}</span>
              </summary>
              <div class="outcome-details">
                <p class="detail-heading">Message details:</p>
                <p>User ID: <code>{escape(outcome.user_id)}</code></p>
                <p>Timestamp: {escape(format_timestamp(outcome.timestamp))}</p>
              </div>
            </details>"""
    return f"""
            <div class="outcome outcome-failed">
              <div class="outcome-head">
                <span class="outcome-email">{email}</span>
                <span class="badge badge-failed">{label}</span>
              </div>
              <p class="outcome-error">{escape(outcome.error_details)}</p>
            </div>"""


def _render_results(response: AgentResponse | None) -> str:
    """Render the summary card and per-invite outcomes."""
    if response is None or response.result is None:
        return ""
    result = response.result
    summary = summary_counts(response)
    if response.is_success:
        title_class = "results-title results-ok"
        description = "Summary of sent invitations"
    else:
        title_class = "results-title results-warn"
        description = "Some invites encountered issues"

    sections: list[str] = []
    if result.invites_sent:
        items = "".join(_render_outcome(item) for item in result.invites_sent)
        sections.append(
            f'<h3 class="group-sent">Successfully Sent ({len(result.invites_sent)})</h3>{items}'
        )
    if result.invites_failed:
        items = "".join(_render_outcome(item) for item in result.invites_failed)
        sections.append(
            f'<h3 class="group-failed">Failed ({len(result.invites_failed)})</h3>{items}'
        )
    if not sections:
        sections.append('<div class="state state-empty">No invite results to display</div>')

    return f"""
        <section class="card card-results">
          <h2 class="{title_class}">Invite Results</h2>
          <p class="card-copy">{description}</p>
          <div class="stats-grid">
            <div class="stat"><strong>{summary.total_emails}</strong><span>Total</span></div>
            <div class="stat stat-sent"><strong>{summary.successful_count}</strong><span>Sent</span></div>
            <div class="stat stat-failed"><strong>{summary.failed_count}</strong><span>Failed</span></div>
          </div>
          <div class="outcomes">{"<hr />".join(sections)}</div>
        </section>"""


def _render_agent_error(response: AgentResponse | None) -> str:
    if response is None or not response.is_error:
        return ""
    message = response.message or "The agent encountered an error processing your request"
    return f"""
        <section class="card card-error">
          <h2>Agent Error</h2>
          <p>{escape(message)}</p>
        </section>"""


def render_page(
    state: SessionState,
    channel: str,
    message: str | None = None,
) -> bytes:
    """Render the main form page for the current session.

    Args:
        state: Current session state.
        channel: Target channel name without ``#``.
        message: Optional flash message.

    Returns:
        UTF-8 encoded HTML document bytes.
    """
    escaped_channel = escape(channel)
    classification = state.classification
    info_msg = f'<div class="flash" role="status">{escape(message)}</div>' if message else ""
    checked_attr = " checked" if state.include_description else ""
    send_disabled = " disabled" if state.busy else ""
    if state.busy:
        send_label = "Sending..."
    elif classification.valid:
        send_label = f'Send Invites <span class="count">{len(classification.valid)}</span>'
    else:
        send_label = "Send Invites"

    page_html = f"""<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <title>Slack Channel Inviter</title>
    <link rel="stylesheet" href="/styles.css" />
  </head>
  <body>
    <header class="topbar">
      <div class="topbar-inner">
        <h1>Slack Channel Inviter</h1>
        <span class="channel-badge">#{escaped_channel}</span>
      </div>
      <p>Send personalized invites to your Slack channel</p>
    </header>
    {info_msg}
    <main class="app">
      <form id="invite-form" method="post" action="/send"></form>
      <section class="card">
        <h2>Email Recipients</h2>
        <p class="card-copy">Enter email addresses separated by commas or new lines</p>
        <label for="email-input">Email Addresses</label>
        <textarea
          id="email-input"
          name="emails"
          form="invite-form"
          rows="4"
          placeholder="Enter emails, one per line or comma-separated&#10;e.g., alice@company.com, bob@company.com"
        >{escape(state.email_input)}</textarea>
        <button class="btn subtle" type="submit" form="invite-form" formaction="/emails">Update list</button>
        {_render_chips(state)}
      </section>
      <section class="card">
        <h2>Personalization</h2>
        <p class="card-copy">Add context to make your invite more personal</p>
        <label for="context">Why are you inviting them?</label>
        <input
          id="context"
          name="context"
          type="text"
          form="invite-form"
          placeholder="e.g., 'Loved your demo at the meetup'"
          value="{escape(state.context)}"
        />
        <input type="hidden" name="include_description" value="0" form="invite-form" />
        <label class="toggle" for="include-desc">
          <input id="include-desc" name="include_description" type="checkbox" value="1" form="invite-form"{checked_attr} />
          Include channel description
        </label>
        <p class="card-copy">Add context about the #{escaped_channel} channel</p>
      </section>
      {_render_preview(state, channel)}
      <div class="actions">
        <button class="btn primary" type="submit" form="invite-form"{send_disabled}>{send_label}</button>
      </div>
      {_render_error(state)}
      {_render_results(state.response)}
      {_render_agent_error(state.response)}
    </main>
    <footer class="footer">Powered by Lyzr Agent API</footer>
  </body>
</html>"""
    return page_html.encode("utf-8")
