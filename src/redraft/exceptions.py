"""
Errors raised by the suggestion store at intake and on lifecycle transitions.

Locate misses are not errors: the patch engine reports them as
``applied=False`` outcomes instead.
"""


class RedraftError(Exception):
    """Base class for all engine errors."""


class SuggestionNotFound(RedraftError, KeyError):
    def __init__(self, suggestion_id: str):
        self.suggestion_id = suggestion_id
        super().__init__(f"Suggestion '{suggestion_id}' not found")

    def __str__(self) -> str:
        # KeyError quotes its argument, keep the plain message
        return self.args[0]


class InvalidTransition(RedraftError):
    def __init__(self, suggestion_id: str, status: str, action: str):
        self.suggestion_id = suggestion_id
        self.status = status
        self.action = action
        super().__init__(f"Cannot {action} suggestion '{suggestion_id}': status is '{status}', expected 'pending'")


class MalformedFeedback(RedraftError, ValueError):
    """The feedback payload could not be read."""


class MalformedSuggestion(MalformedFeedback):
    def __init__(self, message: str, suggestion_id: str = ""):
        self.suggestion_id = suggestion_id
        super().__init__(message)


class DuplicateId(RedraftError):
    def __init__(self, suggestion_id: str):
        self.suggestion_id = suggestion_id
        super().__init__(f"Duplicate suggestion id '{suggestion_id}'")
