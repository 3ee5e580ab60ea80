"""
Transient highlighting of freshly patched text.

After a rewrite/replace the new text sits inside a marker tag. The scheduler
arms one timer per suggestion; when it fires the marker is stripped and the
substituted text stays. Cleanup tolerates edits made in between: if the exact
marker cannot be found any more, every marker in the document is stripped
instead. Cleaning up twice changes nothing the second time.
"""

import re
import threading
import time
from typing import Any, Callable, Dict, List, Optional

import structlog

from redraft.config import EngineConfig
from redraft.document import Document
from redraft.models import HighlightSpan

logger = structlog.get_logger(__name__)

# (delay_seconds, callback) -> object with start() and cancel()
TimerFactory = Callable[[float, Callable[[], None]], Any]


def _thread_timer(delay: float, callback: Callable[[], None]):
    timer = threading.Timer(delay, callback)
    timer.daemon = True
    return timer


def strip_marker(markup: str, suggestion_id: str, config: EngineConfig, hint: Optional[int] = None) -> Optional[str]:
    """
    Removes the marker of one suggestion, keeping its content.
    Returns None if that marker is not present.
    """
    open_token = config.marker_open(suggestion_id)
    close_token = config.marker_close()

    if hint is not None and markup.startswith(open_token, hint):
        pos = hint
    else:
        pos = markup.find(open_token)
    if pos == -1:
        return None

    content_start = pos + len(open_token)
    close = markup.find(close_token, content_start)
    if close == -1:
        # Closing tag was edited away; drop the orphan opener
        return markup[:pos] + markup[content_start:]
    return markup[:pos] + markup[content_start:close] + markup[close + len(close_token) :]


def strip_all_markers(markup: str, config: EngineConfig) -> str:
    """Strips every marker the engine inserted, whatever its suggestion id."""
    open_re = re.compile(rf'<{re.escape(config.marker_tag)} {re.escape(config.marker_attribute)}="[^"]*">')
    close_token = config.marker_close()

    result = markup
    while True:
        m = open_re.search(result)
        if not m:
            return result
        close = result.find(close_token, m.end())
        if close == -1:
            result = result[: m.start()] + result[m.end() :]
        else:
            result = result[: m.start()] + result[m.end() : close] + result[close + len(close_token) :]


class HighlightScheduler:
    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        timer_factory: Optional[TimerFactory] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config or EngineConfig()
        self.timer_factory = timer_factory or _thread_timer
        self.clock = clock
        self._spans: Dict[str, HighlightSpan] = {}
        self._timers: Dict[str, Any] = {}
        self._lock = threading.Lock()

    @property
    def pending(self) -> List[HighlightSpan]:
        with self._lock:
            return list(self._spans.values())

    def arm(self, document: Document, suggestion_id: str, markup_start: int, markup_end: int) -> HighlightSpan:
        """Schedules the marker of `suggestion_id` for removal."""
        delay = self.config.highlight_seconds
        span = HighlightSpan(
            suggestion_id=suggestion_id,
            markup_start=markup_start,
            markup_end=markup_end,
            expiry=self.clock() + delay,
        )

        def _fire():
            try:
                self.cleanup(document, suggestion_id)
            except Exception as e:
                logger.error(f"Highlight cleanup failed for {suggestion_id}: {e}", exc_info=True)

        with self._lock:
            previous = self._timers.pop(suggestion_id, None)
            if previous is not None:
                previous.cancel()
            timer = self.timer_factory(delay, _fire)
            self._spans[suggestion_id] = span
            self._timers[suggestion_id] = timer

        timer.start()
        logger.debug(f"Armed highlight for {suggestion_id}, expires in {delay}s")
        return span

    def cleanup(self, document: Document, suggestion_id: str) -> bool:
        """
        Strips the marker of one suggestion. When an armed marker cannot be
        found any more, falls back to stripping all markers. A suggestion that
        is no longer armed only has its own marker removed, so a repeated
        cleanup leaves other highlights alone. Returns True if the markup changed.
        """
        with self._lock:
            span = self._spans.pop(suggestion_id, None)
            timer = self._timers.pop(suggestion_id, None)
        if timer is not None:
            timer.cancel()

        with document.lock:
            markup = document.markup
            hint = span.markup_start if span else None
            result = strip_marker(markup, suggestion_id, self.config, hint=hint)
            if result is None:
                if span is None:
                    return False
                logger.debug(f"Marker for {suggestion_id} not found, stripping all markers")
                result = strip_all_markers(markup, self.config)
            changed = result != markup
            if changed:
                document.update(result)
        return changed

    def run_due(self, document: Document) -> int:
        """Cleans up every highlight whose expiry has passed. Returns how many were due."""
        now = self.clock()
        with self._lock:
            due = [sid for sid, span in self._spans.items() if span.expiry <= now]
        for sid in due:
            self.cleanup(document, sid)
        return len(due)

    def flush(self, document: Document) -> bool:
        """Cleans up every highlight immediately, armed or not."""
        with self._lock:
            ids = list(self._spans)
        changed = False
        for sid in ids:
            changed = self.cleanup(document, sid) or changed
        with document.lock:
            markup = document.markup
            result = strip_all_markers(markup, self.config)
            if result != markup:
                document.update(result)
                changed = True
        return changed

    def cancel_all(self):
        with self._lock:
            timers = list(self._timers.values())
            self._timers.clear()
            self._spans.clear()
        for timer in timers:
            timer.cancel()
