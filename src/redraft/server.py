import json
import logging
import sys
from pathlib import Path
from typing import Optional

import structlog
from mcp.server.fastmcp import FastMCP

from redraft.config import EngineConfig
from redraft.diff import describe_changes, format_changes
from redraft.document import Document
from redraft.highlight import HighlightScheduler
from redraft.models import SuggestionStatus
from redraft.persistence import StatusLog
from redraft.store import SuggestionStore
from redraft.utils.html import markup_warnings

# --- LOGGING CONFIGURATION ---
# MCP communicates over stdio.
# All logs must go to stderr. Any print to stdout will break the JSON-RPC protocol.
logging.basicConfig(stream=sys.stderr, level=logging.INFO, force=True)

structlog.configure(
    processors=[
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer(),
    ],
    logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
)

mcp = FastMCP("Redraft Suggestion Service")

# One review session per server process
_store: Optional[SuggestionStore] = None
_scheduler: Optional[HighlightScheduler] = None
_source_path: Optional[Path] = None


def _require_session() -> SuggestionStore:
    if _store is None:
        raise RuntimeError("No review is open. Call open_review first.")
    return _store


def _read_text(path: str) -> str:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"File not found: {path}")
    with open(p, "r", encoding="utf-8") as f:
        return f.read()


@mcp.tool()
def open_review(markup_path: str, feedback_path: str, status_log_path: Optional[str] = None) -> str:
    """
    Starts a review session for an HTML document and its AI feedback.

    Args:
        markup_path: Absolute path to the HTML document.
        feedback_path: Absolute path to the feedback JSON ({"summary": ..., "suggestions": [...]}).
        status_log_path: Optional JSON-lines file. Decisions are appended to it, and decisions
                         already recorded there are restored into the new session.
    """
    global _store, _scheduler, _source_path
    try:
        config = EngineConfig.from_env()
        if _scheduler is not None:
            _scheduler.cancel_all()
        status_log = StatusLog(status_log_path) if status_log_path else None
        scheduler = HighlightScheduler(config)
        store = SuggestionStore.from_feedback(
            Document(_read_text(markup_path)),
            _read_text(feedback_path),
            skip_invalid=True,
            config=config,
            scheduler=scheduler,
            persistence=status_log,
        )
        merged = store.merge_persisted(status_log.load()) if status_log else 0

        _store, _scheduler, _source_path = store, scheduler, Path(markup_path)

        summary = store.summary
        lines = [f"Opened {Path(markup_path).name} with {len(store)} suggestions."]
        if merged:
            lines.append(f"Restored {merged} earlier decisions.")
        if summary.score is not None:
            lines.append(f"Score: {summary.score}/100")
        if summary.overall:
            lines.append(summary.overall)
        return "\n".join(lines)
    except Exception as e:
        return f"Error opening review: {str(e)}"


@mcp.tool()
def list_suggestions(status: Optional[str] = None) -> str:
    """
    Lists suggestions of the open review as JSON.

    Args:
        status: Optional filter: 'pending', 'accepted' or 'rejected'.
    """
    try:
        store = _require_session()
        wanted = SuggestionStatus(status) if status else None
        items = [s.model_dump(mode="json") for s in store.suggestions() if wanted is None or s.status == wanted]
        return json.dumps(items, indent=2)
    except Exception as e:
        return f"Error listing suggestions: {str(e)}"


@mcp.tool()
def accept_suggestion(suggestion_id: str) -> str:
    """
    Accepts a pending suggestion and applies it to the document.

    If its text can no longer be found (or it is a 'reorder'), the suggestion is still
    accepted but nothing changes; the reason is returned so it can be applied by hand.
    """
    try:
        store = _require_session()
        before = store.document.markup
        result = store.accept(suggestion_id)
        if not result.applied:
            return f"Accepted {suggestion_id} but could not apply it: {result.reason}"

        lines = [f"Accepted and applied {suggestion_id}."]
        changes = format_changes(describe_changes(before, store.document.markup))
        if changes:
            lines.append(changes)
        for warning in markup_warnings(store.document.markup):
            lines.append(f"Markup warning: {warning}")
        return "\n".join(lines)
    except Exception as e:
        return f"Error accepting suggestion: {str(e)}"


@mcp.tool()
def reject_suggestion(suggestion_id: str) -> str:
    """Rejects a pending suggestion. The document is not changed."""
    try:
        _require_session().reject(suggestion_id)
        return f"Rejected {suggestion_id}."
    except Exception as e:
        return f"Error rejecting suggestion: {str(e)}"


@mcp.tool()
def preview_suggestion(suggestion_id: str) -> str:
    """
    Returns the document HTML with the suggestion's target wrapped in a <mark> highlight,
    without changing anything.
    """
    try:
        preview = _require_session().preview(suggestion_id)
        if preview is None:
            return f"Could not locate the text of {suggestion_id} in the document."
        return preview
    except Exception as e:
        return f"Error previewing suggestion: {str(e)}"


@mcp.tool()
def get_markup() -> str:
    """Returns the current document HTML (freshly applied edits may still carry highlights)."""
    try:
        return _require_session().document.markup
    except Exception as e:
        return f"Error reading markup: {str(e)}"


@mcp.tool()
def save_markup(output_path: Optional[str] = None) -> str:
    """
    Writes the current document HTML, with highlights removed.

    Args:
        output_path: Optional. Defaults to '<source>_revised.html' next to the source file.
    """
    try:
        store = _require_session()
        if _scheduler is not None:
            _scheduler.flush(store.document)

        if not output_path:
            p = _source_path
            output_path = str(p.parent / f"{p.stem}_revised{p.suffix}")

        with open(output_path, "w", encoding="utf-8") as f:
            f.write(store.document.markup)

        stats = store.stats()
        return (
            f"Saved to: {output_path} "
            f"({stats['accepted']} accepted, {stats['rejected']} rejected, {stats['pending']} pending)"
        )
    except Exception as e:
        return f"Error saving markup: {str(e)}"


def main():
    mcp.run()


if __name__ == "__main__":
    main()
