from __future__ import annotations

from collections.abc import Sequence

from .config import DEFAULT_CONTEXT

CHANNEL_DESCRIPTION = (
    "This is our space to share projects, ideas, and collaborate on amazing builds."
)


def build_invite_message(
    channel: str,
    emails: Sequence[str],
    context: str | None,
    include_description: bool,
) -> str:
    """Build the natural-language instruction sent to the invite agent.

    Args:
        channel: Channel name without the leading ``#``.
        emails: Valid recipient emails.
        context: Personalization text; a generic invitation is used when empty.
        include_description: Whether the agent should describe the channel.

    Returns:
        Instruction text.
    """
    description_clause = (
        f"Include a description of the #{channel} channel in the invite message."
        if include_description
        else "Do not include the channel description."
    )
    personalization = (context or "").strip() or DEFAULT_CONTEXT
    return f"""Please send Slack channel invites to #{channel} for the following emails:

Emails to invite: {", ".join(emails)}

Personalization context: "{personalization}"

{description_clause}

For each email:
1. Look up the Slack user using their email address
2. Generate a personalized invite message with a greeting, the personalization context, and invitation to join #{channel}
3. Send the DM to the user
4. Return results showing which invites were sent successfully and which failed (with reasons)"""


def build_preview_lines(
    channel: str,
    context: str | None,
    include_description: bool,
) -> list[str]:
    """Return the paragraphs of the sample invite shown before sending."""
    invitation = f"I'd like to invite you to join the #{channel} channel."
    if include_description:
        invitation = f"{invitation} {CHANNEL_DESCRIPTION}"
    lines = ["Hi there!"]
    if (context or "").strip():
        lines.append(context.strip())
    lines.append(invitation)
    lines.append("Looking forward to seeing you there!")
    return lines
