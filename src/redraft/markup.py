"""
Preview rendering: marks where suggestions would land without applying them.
"""

from typing import List, Optional, Sequence, Tuple

import structlog

from redraft.config import EngineConfig
from redraft.locator import locate
from redraft.models import Suggestion, SuggestionType
from redraft.projector import project

logger = structlog.get_logger(__name__)


def preview_target(suggestion: Suggestion) -> str:
    """The excerpt a preview highlights: the anchor for 'add', else the original."""
    if suggestion.type == SuggestionType.ADD:
        return suggestion.anchor
    return suggestion.original or suggestion.anchor


def render_preview(markup: str, suggestions: Sequence[Suggestion], config: Optional[EngineConfig] = None) -> str:
    """
    Wraps the located target of each suggestion in the marker tag.

    Targets that cannot be located are skipped. When two targets overlap the
    one earlier in the list wins. The marker wraps the whole markup range, so
    a target straddling an inline tag can produce crossed tags; the result is
    for display only.
    """
    config = config or EngineConfig()
    if not suggestions:
        return markup

    projection = project(markup)

    # Step 1: locate targets as markup ranges
    matched: List[Tuple[int, int, Suggestion, int]] = []
    for idx, suggestion in enumerate(suggestions):
        target = preview_target(suggestion)
        if not target:
            logger.debug(f"Skipping preview of {suggestion.id}: nothing to highlight")
            continue

        span = locate(projection.plain_text, target)
        if span is None:
            logger.warning(f"Skipping preview of {suggestion.id}: target not found: '{target[:50]}'")
            continue

        start, end = projection.markup_range(span)
        matched.append((start, end, suggestion, idx))

    # Step 2: first-in-list wins on overlap
    kept: List[Tuple[int, int, Suggestion, int]] = []
    for start, end, suggestion, idx in matched:
        if any(start < k_end and end > k_start for k_start, k_end, _, _ in kept):
            logger.warning(f"Skipping preview of {suggestion.id}: overlaps an earlier suggestion")
            continue
        kept.append((start, end, suggestion, idx))

    # Step 3: wrap from the end so earlier offsets stay valid
    kept.sort(key=lambda x: x[0], reverse=True)
    result = markup
    for start, end, suggestion, _ in kept:
        result = (
            result[:start]
            + config.marker_open(suggestion.id)
            + result[start:end]
            + config.marker_close()
            + result[end:]
        )
    return result
