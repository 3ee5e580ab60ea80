from importlib.metadata import PackageNotFoundError, version

from redraft.config import EngineConfig
from redraft.document import Document
from redraft.highlight import HighlightScheduler
from redraft.locator import locate
from redraft.models import Suggestion, SuggestionStatus, SuggestionType, parse_feedback
from redraft.patch import apply_suggestion
from redraft.projector import project
from redraft.store import SuggestionStore

try:
    __version__ = version("redraft")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"

__all__ = [
    "Document",
    "EngineConfig",
    "HighlightScheduler",
    "Suggestion",
    "SuggestionStatus",
    "SuggestionStore",
    "SuggestionType",
    "apply_suggestion",
    "locate",
    "parse_feedback",
    "project",
    "__version__",
]
