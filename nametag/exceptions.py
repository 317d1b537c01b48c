"""Error taxonomy for the identity pipeline.

None of these are allowed to escape into the live session loop; they are
raised at collaborator boundaries and caught by the resolver, summarizer or
session, which log them and carry on.
"""

from __future__ import annotations


class TransientServiceError(Exception):
    """Raised when an external service call fails or times out."""

    def __init__(self, service: str, cause: Exception | None = None):
        self.service = service
        self.cause = cause
        super().__init__(f"Call to '{service}' failed: {cause}")


class ExtractionAmbiguityError(Exception):
    """Raised when an extraction result cannot drive a binding."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class BindingConflict(Exception):
    """Raised when a candidate targets a placeholder that is already bound."""

    def __init__(self, placeholder: str, bound_name: str, candidate: str):
        self.placeholder = placeholder
        self.bound_name = bound_name
        self.candidate = candidate
        super().__init__(
            f"Speaker '{placeholder}' is already bound to '{bound_name}'; "
            f"ignoring candidate '{candidate}'"
        )


class PersistenceError(Exception):
    """Raised when a PersonStore write fails."""

    def __init__(self, name: str, cause: Exception | None = None):
        self.name = name
        self.cause = cause
        super().__init__(f"Failed to store person '{name}'")
