"""
Turns a located plain-text span plus a suggestion into new markup.

All splice points come from the projection's character map, so a patch never
cuts through a tag or an entity. Tags that fall inside a replaced span are
dropped with it; the engine does not try to rebalance them.
"""

import html
from typing import Optional

import structlog

from redraft.config import EngineConfig
from redraft.locator import locate
from redraft.models import PatchResult, Suggestion, SuggestionType, TextSpan
from redraft.projector import Projection, project

logger = structlog.get_logger(__name__)

SOURCE_NOT_FOUND = "source text not found"
ANCHOR_NOT_FOUND = "anchor not found; appended at document end"


def _prepare_text(text: str, config: EngineConfig) -> str:
    if config.escape_suggested:
        return html.escape(text, quote=False)
    return text


def _splice(markup: str, start: int, end: int, replacement: str) -> str:
    return markup[:start] + replacement + markup[end:]


def patch(
    markup: str,
    projection: Projection,
    span: Optional[TextSpan],
    suggestion: Suggestion,
    config: Optional[EngineConfig] = None,
) -> PatchResult:
    """
    Applies one suggestion at an already located span.

    `span` is the match of `suggestion.source_text` in `projection.plain_text`
    (the anchor for 'add', the original otherwise), or None if it was not found.
    """
    config = config or EngineConfig()
    op = suggestion.type

    if op == SuggestionType.REORDER:
        # Moving structure around is left to a human
        logger.info(f"Suggestion {suggestion.id}: reorder requires manual action")
        return PatchResult(markup=None, applied=False, reason=suggestion.note)

    text = _prepare_text(suggestion.suggested, config)

    if op == SuggestionType.ADD:
        addition = config.add_separator + text
        if span is None:
            logger.warning(f"Suggestion {suggestion.id}: anchor '{suggestion.anchor[:30]}' not found, appending")
            return PatchResult(markup=markup + addition, applied=True, reason=ANCHOR_NOT_FOUND)

        _, insert_at = projection.markup_range(span)
        logger.debug(f"Suggestion {suggestion.id}: inserting at markup offset {insert_at}")
        return PatchResult(markup=_splice(markup, insert_at, insert_at, addition), applied=True)

    if span is None:
        logger.warning(f"Suggestion {suggestion.id}: original '{suggestion.original[:30]}...' not found")
        return PatchResult(markup=None, applied=False, reason=SOURCE_NOT_FOUND)

    start, end = projection.markup_range(span)
    logger.debug(f"Suggestion {suggestion.id}: op={op.value} markup=[{start}:{end}]")

    if op == SuggestionType.REMOVE:
        return PatchResult(markup=_splice(markup, start, end, ""), applied=True)

    if op in (SuggestionType.REWRITE, SuggestionType.REPLACE):
        wrapped = config.marker_open(suggestion.id) + text + config.marker_close()
        return PatchResult(
            markup=_splice(markup, start, end, wrapped),
            applied=True,
            highlight=(start, start + len(wrapped)),
        )

    raise ValueError(f"Unhandled suggestion type: {op}")


def apply_suggestion(markup: str, suggestion: Suggestion, config: Optional[EngineConfig] = None) -> PatchResult:
    """
    Projects the live markup, locates the suggestion's source text and
    patches it. The projection is always rebuilt from `markup`.
    """
    projection = project(markup)
    span = None
    if suggestion.type != SuggestionType.REORDER:
        span = locate(projection.plain_text, suggestion.source_text)
    return patch(markup, projection, span, suggestion, config)
