"""Ticket references and request types derived from merge request titles.

Titles such as ``"feature/ABC-123: add login"`` carry an issue-tracker
reference and, by branch-style convention, a type prefix. Both are
best-effort tags: version strings like ``"v1.20"`` can match too, and a
title without a match simply yields ``""``.

Examples
--------
>>> ticket_id("Fix abc/1234: crash on save")
'ABC-1234'
>>> classify_type("bugfix/ABC-77 null check")
'BUGFIX'

"""

from __future__ import annotations

import re

_TICKET_TOKEN = re.compile(r"[a-zA-Z]+\W\d{2,5}", re.ASCII)
_TYPED_TICKET = re.compile(r"^[a-zA-Z]+\W[a-zA-Z]+\W\d{2,5}", re.ASCII)
_SEPARATORS = str.maketrans({"/": "-", " ": "-", ":": "-"})


def extract_ticket_token(title: str) -> str:
    """Return the first ``LETTERS<sep>DIGITS`` token in ``title``, or ``""``."""
    match = _TICKET_TOKEN.search(title)
    return match.group(0) if match else ""


def normalize_ticket_id(token: str) -> str:
    """Map ``/``, space and ``:`` separators to ``-`` and uppercase."""
    return token.translate(_SEPARATORS).upper()


def ticket_id(title: str) -> str:
    """Return the normalized ticket reference found in ``title``."""
    return normalize_ticket_id(extract_ticket_token(title))


def classify_type(title: str) -> str:
    """Return the leading type label of a ``type/KEY-123`` style title."""
    match = _TYPED_TICKET.match(title)
    if match is None:
        return ""
    return normalize_ticket_id(match.group(0)).split("-", 1)[0]


__all__ = ["classify_type", "extract_ticket_token", "normalize_ticket_id", "ticket_id"]
