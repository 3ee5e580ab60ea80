import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

from redraft.exceptions import MalformedFeedback, MalformedSuggestion


class SuggestionType(str, Enum):
    REWRITE = "rewrite"
    REMOVE = "remove"
    ADD = "add"
    REPLACE = "replace"
    REORDER = "reorder"


class SuggestionStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


# Fields that must be non-empty for each edit type
REQUIRED_FIELDS: Dict[SuggestionType, tuple] = {
    SuggestionType.REWRITE: ("original", "suggested"),
    SuggestionType.REPLACE: ("original", "suggested"),
    SuggestionType.REMOVE: ("original",),
    SuggestionType.ADD: ("suggested",),
    SuggestionType.REORDER: ("note",),
}


class Suggestion(BaseModel):
    """
    A single proposed edit produced by the feedback generator.
    The engine only checks structure, never the quality of the proposal.
    """

    id: str = Field(..., description="Unique within the batch (e.g. 's1').")
    category: str = Field("other", description="summary, experience, projects, skills, education, formatting, other.")
    type: SuggestionType = Field(..., description="rewrite, remove, add, replace or reorder.")
    anchor: str = Field("", description="Short excerpt locating the insertion point for 'add'.")
    original: str = Field("", description="Text being changed. Empty for 'add'.")
    suggested: str = Field("", description="Replacement or added text. Empty for 'remove'.")
    severity: str = Field("medium", description="low, medium or high.")
    note: str = Field("", description="Why the change helps; the instructions for 'reorder'.")

    status: SuggestionStatus = SuggestionStatus.PENDING
    applied: bool = False

    @field_validator("category", "anchor", "original", "suggested", "severity", "note", mode="before")
    @classmethod
    def _none_as_empty(cls, value):
        # Generators emit null where an empty string is expected
        return "" if value is None else value

    @property
    def source_text(self) -> str:
        """The excerpt that has to be located before patching."""
        if self.type == SuggestionType.ADD:
            return self.anchor
        return self.original

    def missing_fields(self) -> List[str]:
        missing = [] if self.id.strip() else ["id"]
        for name in REQUIRED_FIELDS[self.type]:
            if not getattr(self, name).strip():
                missing.append(name)
        return missing


class Summary(BaseModel):
    overall: str = ""
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    score: Optional[int] = Field(None, ge=0, le=100)


class Feedback(BaseModel):
    """Payload of the AI feedback step: an overall summary plus the suggestion batch."""

    summary: Summary = Field(default_factory=Summary)
    suggestions: List[Dict[str, Any]] = Field(default_factory=list)


@dataclass(frozen=True)
class TextSpan:
    """Half-open [start, end) range over a plain-text projection."""

    start: int
    end: int

    def __len__(self) -> int:
        return self.end - self.start


@dataclass
class PatchResult:
    markup: Optional[str]
    applied: bool
    reason: str = ""
    # (start, end) of the marker-wrapped region in the new markup
    highlight: Optional[tuple] = None


@dataclass
class HighlightSpan:
    suggestion_id: str
    markup_start: int
    markup_end: int
    expiry: float


def _describe_validation_error(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(x) for x in err.get("loc", ()))
        parts.append(f"{loc}: {err.get('msg')}" if loc else err.get("msg", ""))
    return "; ".join(parts)


def parse_suggestion(record: Union[Suggestion, Dict[str, Any]]) -> Suggestion:
    """
    Validates one raw record into a pending Suggestion.
    Raises MalformedSuggestion on unknown types or empty required fields.
    """
    if isinstance(record, Suggestion):
        suggestion = record
    else:
        if not isinstance(record, dict):
            raise MalformedSuggestion(f"Suggestion must be an object, got {type(record).__name__}")
        raw_id = str(record.get("id") or "")
        try:
            suggestion = Suggestion.model_validate(record)
        except ValidationError as e:
            raise MalformedSuggestion(
                f"Invalid suggestion '{raw_id}': {_describe_validation_error(e)}", suggestion_id=raw_id
            ) from e

    missing = suggestion.missing_fields()
    if missing:
        raise MalformedSuggestion(
            f"Suggestion '{suggestion.id}' of type '{suggestion.type.value}' has empty required field(s): "
            f"{', '.join(missing)}",
            suggestion_id=suggestion.id,
        )
    # Lifecycle state is never taken from the payload; reloads go through merge_persisted
    return suggestion.model_copy(update={"status": SuggestionStatus.PENDING, "applied": False})


def parse_feedback(payload: Union[str, bytes, Dict[str, Any]]) -> Feedback:
    """
    Reads the feedback payload (JSON text or an already decoded object).
    Suggestions are left as raw records; the store validates them at intake.
    """
    if isinstance(payload, (str, bytes)):
        try:
            payload = json.loads(payload)
        except json.JSONDecodeError as e:
            raise MalformedFeedback(f"Feedback is not valid JSON: {e}") from e

    # A bare list is accepted as a batch without summary
    if isinstance(payload, list):
        payload = {"suggestions": payload}

    try:
        return Feedback.model_validate(payload)
    except ValidationError as e:
        raise MalformedFeedback(f"Invalid feedback payload: {_describe_validation_error(e)}") from e
