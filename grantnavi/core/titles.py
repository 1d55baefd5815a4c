"""
Title normalization.

Titles are the natural key of a grant. Upstream CSV escaping leaves stray
double quotes around some of them, so every comparison goes through
``normalize_title`` (or ``title_key`` when a run collapses whitespace too).
"""

import re
from enum import Enum
from typing import Optional

_WHITESPACE_RE = re.compile(r"\s+")


class TitleStrategy(str, Enum):
    """
    How titles are keyed for duplicate detection.

    STRIP: strip wrapping quotes and surrounding whitespace only.
    COLLAPSE: additionally drop every internal whitespace run, so
        "観光 支援金" and "観光支援金" share one key.
    """
    STRIP = "strip"
    COLLAPSE = "collapse"


def normalize_title(title: Optional[str]) -> str:
    """
    Strip leading/trailing double quotes and whitespace.

    Repeats until stable so that ``normalize_title(normalize_title(s)) ==
    normalize_title(s)`` holds even for inputs like ``' " A " '``.

    Examples:
        >>> normalize_title('"Grant X"')
        'Grant X'
        >>> normalize_title('  Grant X  ')
        'Grant X'
    """
    if not title:
        return ""

    current = title
    while True:
        stripped = current.strip().strip('"')
        if stripped == current:
            return current
        current = stripped


def title_key(title: Optional[str], strategy: TitleStrategy = TitleStrategy.STRIP) -> str:
    """Comparison key for ``title`` under the given strategy."""
    normalized = normalize_title(title)
    if TitleStrategy(strategy) is TitleStrategy.COLLAPSE:
        return _WHITESPACE_RE.sub("", normalized)
    return normalized
