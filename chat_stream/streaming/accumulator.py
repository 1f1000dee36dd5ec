"""
Token spacing for the cumulative response.

Fragments are joined with a single space unless punctuation or an opening
bracket/quote makes the join natural without one. This approximates word
boundaries; it is not a tokenizer.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from .models import StreamSession

NO_SPACE_BEFORE = re.compile(r"^[.,!?;:)}\]\"']")
NO_SPACE_AFTER = re.compile(r"[(\[{\"'\s]$")


def needs_space(cumulative: str, fragment: str) -> bool:
    return (
        bool(cumulative)
        and not NO_SPACE_BEFORE.match(fragment)
        and not NO_SPACE_AFTER.search(cumulative)
    )


def append_with_spacing(cumulative: str, fragment: str) -> str:
    if needs_space(cumulative, fragment):
        return f"{cumulative} {fragment}"
    return cumulative + fragment


def join_with_spacing(fragments: Iterable[str]) -> str:
    """Spaced reconstruction of a whole fragment sequence."""
    result = ""
    for fragment in fragments:
        if fragment:
            result = append_with_spacing(result, fragment)
    return result


def accumulate(session: StreamSession, fragment: str) -> str:
    """Append a fragment to the session's response and return the new text."""
    session.cumulative = append_with_spacing(session.cumulative, fragment)
    return session.cumulative
