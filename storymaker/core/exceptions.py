from __future__ import annotations

"""Error taxonomy for story editing operations.

Tree helpers and the serializer raise these exceptions; services catch them
at their boundary and turn them into ``OperationResult(success=False, ...)``
so that no expected user error ever escapes to the front end.
"""

from typing import Any, Dict, Optional

__all__ = [
    "StoryError",
    "UsageError",
    "NotFoundError",
    "PreconditionError",
    "FormatError",
]


class StoryError(Exception):
    """Base exception for all recoverable editing errors.

    Attributes
    ----------
    kind
        Short machine-readable category, copied into ``OperationResult.details``.
    details
        Optional structured context for logs or callers.
    """

    kind: str = "error"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.details = dict(details or {})

    def as_details(self) -> Dict[str, Any]:
        """Return ``details`` merged with the error kind."""
        merged = {"error": self.kind}
        merged.update(self.details)
        return merged


class UsageError(StoryError):
    """Malformed command or arguments (e.g. ``/delete`` without a number)."""

    kind = "usage"


class NotFoundError(StoryError):
    """Index out of range, missing parent, unreachable node."""

    kind = "not_found"


class PreconditionError(StoryError):
    """Operation not allowed in the current state (no chapter selected, ...)."""

    kind = "precondition"


class FormatError(StoryError):
    """Input text is not a valid story document."""

    kind = "format"
