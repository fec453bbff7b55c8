from __future__ import annotations

import re
from collections.abc import Iterable

from .models import EmailClassification

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
SEPARATOR_PATTERN = re.compile(r"[,\n]")


def is_valid_email(email: str | None) -> bool:
    """Return True when an email passes the lenient syntactic check."""
    return bool(EMAIL_PATTERN.match((email or "").strip()))


def dedupe_emails(emails: Iterable[str]) -> list[str]:
    """Drop repeated values while preserving first-occurrence order."""
    return list(dict.fromkeys(emails))


def parse_email_list(raw: str | None) -> list[str]:
    """Split raw recipient text on commas and newlines into distinct values."""
    if not raw:
        return []
    return dedupe_emails(
        item.strip() for item in SEPARATOR_PATTERN.split(raw) if item.strip()
    )


def classify_emails(raw: str | Iterable[str] | None) -> EmailClassification:
    """Partition normalized recipients into valid and invalid entries.

    Args:
        raw: Raw input text, or an already split sequence of candidates.

    Returns:
        Classification whose two lists keep the relative input order.
    """
    if raw is None or isinstance(raw, str):
        emails = parse_email_list(raw)
    else:
        emails = dedupe_emails(item.strip() for item in raw if item and item.strip())
    valid: list[str] = []
    invalid: list[str] = []
    for email in emails:
        (valid if is_valid_email(email) else invalid).append(email)
    return EmailClassification(valid=tuple(valid), invalid=tuple(invalid))


def join_emails(emails: Iterable[str]) -> str:
    """Join recipients back into input text."""
    return ", ".join(emails)


def remove_email(raw: str | None, target: str) -> list[str]:
    """Return the normalized recipients without any exact match of target."""
    return [email for email in parse_email_list(raw) if email != target]
