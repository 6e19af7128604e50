"""Errors raised by Training Log operations."""

from __future__ import annotations

from homeassistant.exceptions import HomeAssistantError


class TrainingLogError(HomeAssistantError):
    """Base class; ``code`` is the websocket error code."""

    code = "training_log_error"


class NotFoundError(TrainingLogError):
    code = "not_found"


class DuplicateIdentifierError(TrainingLogError):
    code = "duplicate_identifier"


class InvalidIdentifierError(TrainingLogError):
    code = "invalid_identifier"


class MalformedImportError(TrainingLogError):
    code = "malformed_import"


class TransportError(TrainingLogError):
    """The base document could not be loaded. Fatal for the config entry."""

    code = "transport_failed"


class OversizedWriteError(TrainingLogError):
    code = "oversized_write"

    def __init__(self, *, size: int, limit: int) -> None:
        super().__init__(f"Write of {size} bytes exceeds the {limit} byte storage limit")
        self.size = size
        self.limit = limit


class ConflictError(TrainingLogError):
    """Raised when optimistic concurrency checks fail."""

    code = "conflict"

    def __init__(self, *, expected: int, current: int) -> None:
        super().__init__(f"State changed (expected rev={expected}, current rev={current})")
        self.expected = expected
        self.current = current
