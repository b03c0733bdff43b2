"""Base exception classes for domain-level errors."""

from __future__ import annotations


class DomainError(Exception):
    """Base exception for all domain-level errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__


class BusinessRuleViolationError(DomainError):
    """Raised when a business rule is violated."""

    def __init__(self, rule: str, message: str | None = None) -> None:
        msg = message or f"Business rule violated: {rule}"
        super().__init__(msg, code="BUSINESS_RULE_VIOLATION")
        self.rule = rule


class InvalidOperationError(DomainError):
    """Raised when an operation is invalid in the current state."""

    def __init__(self, operation: str, current_state: str, message: str | None = None) -> None:
        msg = message or f"Cannot perform '{operation}' in state '{current_state}'"
        super().__init__(msg, code="INVALID_OPERATION")
        self.operation = operation
        self.current_state = current_state


class PlaybackFailedError(DomainError):
    """Raised by a player when a track cannot be started."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason, code="PLAYBACK_FAILED")
        self.reason = reason


class TrackResolutionError(DomainError):
    """Raised by a resolver when a query cannot be turned into a track."""

    def __init__(self, query: str, reason: str | None = None) -> None:
        msg = reason or f"Could not resolve '{query}'"
        super().__init__(msg, code="TRACK_NOT_FOUND")
        self.query = query
        self.reason = msg
