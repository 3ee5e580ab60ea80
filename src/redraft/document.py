import threading
from typing import Callable, Optional

import structlog

logger = structlog.get_logger(__name__)


class Document:
    """
    Handle on the markup being edited.

    Passed explicitly to the store and the highlight scheduler. The lock
    serializes accepted edits with deferred marker cleanup.
    """

    def __init__(self, markup: str = "", on_change: Optional[Callable[[str], None]] = None):
        self._markup = markup
        self.on_change = on_change
        self.lock = threading.RLock()
        self.revision = 0

    @property
    def markup(self) -> str:
        return self._markup

    def update(self, markup: str):
        with self.lock:
            if markup == self._markup:
                return
            self._markup = markup
            self.revision += 1
        logger.debug(f"Document updated to revision {self.revision} ({len(markup)} chars)")
        if self.on_change:
            self.on_change(markup)
