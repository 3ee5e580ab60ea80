"""
Persistence boundary for suggestion statuses.

The store reports every transition as a (suggestion_id, status) pair and never
reads statuses back during a session. Notification is fire-and-forget: a
failing sink is logged and the in-memory edit stands.
"""

import asyncio
import datetime
import inspect
import json
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

import structlog

from redraft.models import SuggestionStatus

logger = structlog.get_logger(__name__)

# Sync callable or coroutine function taking (suggestion_id, status)
StatusSink = Callable[[str, str], Any]

# Keeps scheduled notifications alive until they finish
_background_tasks: set = set()


def _log_task_failure(task: "asyncio.Task"):
    _background_tasks.discard(task)
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.warning(f"Status notification failed (non-fatal): {exc}")


def notify(sink: Optional[StatusSink], suggestion_id: str, status: Union[SuggestionStatus, str]) -> bool:
    """
    Hands a status change to the sink without letting it affect the caller.
    Returns False if the sink failed synchronously or could not be scheduled.
    """
    if sink is None:
        return True

    value = status.value if isinstance(status, SuggestionStatus) else str(status)
    try:
        result = sink(suggestion_id, value)
    except Exception as e:
        logger.warning(f"Status notification failed for {suggestion_id} (non-fatal): {e}")
        return False

    if inspect.isawaitable(result):
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(f"No running event loop; dropping async status notification for {suggestion_id}")
            if inspect.iscoroutine(result):
                result.close()
            return False
        task = loop.create_task(result) if inspect.iscoroutine(result) else asyncio.ensure_future(result)
        _background_tasks.add(task)
        task.add_done_callback(_log_task_failure)
    return True


class StatusLog:
    """
    Appends status changes to a JSON-lines file.
    `load()` replays it as {suggestion_id: status}, last write wins.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def __call__(self, suggestion_id: str, status: str):
        record = {
            "id": suggestion_id,
            "status": status,
            "at": datetime.datetime.now(datetime.timezone.utc).replace(microsecond=0).strftime("%Y-%m-%dT%H:%M:%SZ"),
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(json.dumps(record) + "\n")

    def load(self) -> Dict[str, str]:
        statuses: Dict[str, str] = {}
        if not self.path.exists():
            return statuses
        with open(self.path, "r", encoding="utf-8") as f:
            for line_no, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    record = json.loads(line)
                    statuses[str(record["id"])] = str(record["status"])
                except (json.JSONDecodeError, KeyError, TypeError):
                    logger.warning(f"Skipping unreadable status record at {self.path}:{line_no}")
        return statuses
