from typing import Any, Dict, Iterable, List, Optional, Union

import structlog

from redraft.config import EngineConfig
from redraft.document import Document
from redraft.exceptions import DuplicateId, InvalidTransition, MalformedFeedback, RedraftError, SuggestionNotFound
from redraft.highlight import HighlightScheduler
from redraft.markup import render_preview
from redraft.models import PatchResult, Suggestion, SuggestionStatus, Summary, parse_feedback, parse_suggestion
from redraft.patch import apply_suggestion
from redraft.persistence import StatusSink, notify

logger = structlog.get_logger(__name__)

SuggestionRecord = Union[Suggestion, Dict[str, Any]]


class SuggestionStore:
    """
    Holds one review session's suggestion batch and drives accept/reject.

    Accepting patches the Document in place; rejecting never touches it.
    Both transitions are one-way and reported to the persistence sink.
    """

    def __init__(
        self,
        document: Document,
        config: Optional[EngineConfig] = None,
        scheduler: Optional[HighlightScheduler] = None,
        persistence: Optional[StatusSink] = None,
        summary: Optional[Summary] = None,
    ):
        self.document = document
        self.config = config or EngineConfig()
        self.scheduler = scheduler
        self.persistence = persistence
        self.summary = summary or Summary()
        self._suggestions: Dict[str, Suggestion] = {}

    @classmethod
    def from_feedback(
        cls,
        document: Document,
        payload: Union[str, bytes, Dict[str, Any], list],
        skip_invalid: bool = False,
        **kwargs,
    ) -> "SuggestionStore":
        feedback = parse_feedback(payload)
        store = cls(document, summary=feedback.summary, **kwargs)
        store.intake(feedback.suggestions, skip_invalid=skip_invalid)
        return store

    # -- intake ------------------------------------------------------------

    def intake(self, records: Iterable[SuggestionRecord], skip_invalid: bool = False) -> List[RedraftError]:
        """
        Validates and admits a batch.

        By default the first bad record raises (MalformedSuggestion or
        DuplicateId) and nothing from the batch is admitted. With
        skip_invalid=True, valid records are admitted and the errors for the
        rest are returned.
        """
        admitted: Dict[str, Suggestion] = {}
        errors: List[RedraftError] = []

        for record in records:
            try:
                suggestion = parse_suggestion(record)
                if suggestion.id in self._suggestions or suggestion.id in admitted:
                    raise DuplicateId(suggestion.id)
            except (MalformedFeedback, DuplicateId) as e:
                if not skip_invalid:
                    raise
                logger.warning(f"Rejected suggestion at intake: {e}")
                errors.append(e)
                continue
            admitted[suggestion.id] = suggestion

        self._suggestions.update(admitted)
        logger.info(f"Admitted {len(admitted)} suggestions ({len(errors)} rejected)")
        return errors

    def merge_persisted(self, statuses: Dict[str, str]) -> int:
        """
        Restores terminal statuses recorded in an earlier session.
        Unknown ids and non-terminal statuses are ignored. Returns how many were merged.
        """
        merged = 0
        for suggestion_id, status in statuses.items():
            suggestion = self._suggestions.get(suggestion_id)
            if suggestion is None:
                logger.debug(f"Ignoring persisted status for unknown suggestion {suggestion_id}")
                continue
            try:
                value = SuggestionStatus(status)
            except ValueError:
                logger.warning(f"Ignoring unknown persisted status '{status}' for {suggestion_id}")
                continue
            if value == SuggestionStatus.PENDING or suggestion.status != SuggestionStatus.PENDING:
                continue
            suggestion.status = value
            merged += 1
        return merged

    # -- queries -----------------------------------------------------------

    def get(self, suggestion_id: str) -> Suggestion:
        suggestion = self._suggestions.get(suggestion_id)
        if suggestion is None:
            raise SuggestionNotFound(suggestion_id)
        return suggestion

    def suggestions(self) -> List[Suggestion]:
        return list(self._suggestions.values())

    def pending(self) -> List[Suggestion]:
        return [s for s in self._suggestions.values() if s.status == SuggestionStatus.PENDING]

    def stats(self) -> Dict[str, int]:
        counts = {status.value: 0 for status in SuggestionStatus}
        unapplied = 0
        for s in self._suggestions.values():
            counts[s.status.value] += 1
            if s.status == SuggestionStatus.ACCEPTED and not s.applied:
                unapplied += 1
        counts["unapplied"] = unapplied
        return counts

    def __len__(self) -> int:
        return len(self._suggestions)

    def __contains__(self, suggestion_id: object) -> bool:
        return suggestion_id in self._suggestions

    def preview(self, suggestion_id: str) -> Optional[str]:
        """
        Returns the live markup with the suggestion's target wrapped in the
        marker, or None if the target cannot be located. State is unchanged.
        """
        suggestion = self.get(suggestion_id)
        markup = self.document.markup
        preview = render_preview(markup, [suggestion], self.config)
        return None if preview == markup else preview

    # -- transitions -------------------------------------------------------

    def _require_pending(self, suggestion_id: str, action: str) -> Suggestion:
        suggestion = self.get(suggestion_id)
        if suggestion.status != SuggestionStatus.PENDING:
            raise InvalidTransition(suggestion_id, suggestion.status.value, action)
        return suggestion

    def accept(self, suggestion_id: str) -> PatchResult:
        """
        Applies the suggestion to the live markup and marks it accepted.

        A source text that cannot be located is not an error: the suggestion
        is still accepted, with applied=False and the reason on the result.
        """
        suggestion = self._require_pending(suggestion_id, "accept")

        with self.document.lock:
            result = apply_suggestion(self.document.markup, suggestion, self.config)
            suggestion.status = SuggestionStatus.ACCEPTED
            suggestion.applied = result.applied
            if result.markup is not None:
                self.document.update(result.markup)
            if result.highlight and self.scheduler is not None:
                self.scheduler.arm(self.document, suggestion_id, *result.highlight)

        if result.applied:
            logger.info(f"Accepted {suggestion_id} ({suggestion.type.value}), applied")
        else:
            logger.warning(f"Accepted {suggestion_id} ({suggestion.type.value}) but not applied: {result.reason}")

        notify(self.persistence, suggestion_id, SuggestionStatus.ACCEPTED)
        return result

    def reject(self, suggestion_id: str) -> Suggestion:
        suggestion = self._require_pending(suggestion_id, "reject")
        suggestion.status = SuggestionStatus.REJECTED
        logger.info(f"Rejected {suggestion_id}")
        notify(self.persistence, suggestion_id, SuggestionStatus.REJECTED)
        return suggestion
