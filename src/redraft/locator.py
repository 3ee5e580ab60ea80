import re
from typing import Optional

import structlog

from redraft.models import TextSpan

logger = structlog.get_logger(__name__)

_WHITESPACE_RUN = re.compile(r"\s+")


def normalize_whitespace(text: str) -> str:
    """Collapses whitespace runs to a single space and trims."""
    return _WHITESPACE_RUN.sub(" ", text).strip()


def _make_whitespace_regex(target: str) -> str:
    """
    Escapes the normalized target and lets every space match any run of
    whitespace (spaces, tabs, newlines, non-breaking spaces).
    """
    words = normalize_whitespace(target).split(" ")
    return r"\s+".join(re.escape(w) for w in words)


def locate(plain_text: str, target: str) -> Optional[TextSpan]:
    """
    Finds the first occurrence of target in plain_text.

    1. Exact substring match.
    2. Whitespace-tolerant regex over the raw plain text.

    Returns None when neither finds the target. No approximate
    matching: a near miss must never edit unrelated text.
    """
    if not target or not target.strip():
        return None

    # 1. Exact match
    idx = plain_text.find(target)
    if idx != -1:
        return TextSpan(idx, idx + len(target))

    # 2. Whitespace drift
    pattern = _make_whitespace_regex(target)
    match = re.search(pattern, plain_text)
    if match:
        logger.debug(f"Whitespace-tolerant match for '{target[:30]}' at [{match.start()}:{match.end()}]")
        return TextSpan(match.start(), match.end())

    return None
