"""
Error types raised by the enqueuer.

Every failure of an enqueue call derives from EnqueueError so callers can
catch the whole family at once:

- SerializationError: payload cannot be encoded, nothing was written
- JobValidationError: required field missing or malformed, nothing was written
- StoreError: a Redis command failed; earlier commands of the same dispatch
  are not rolled back
- JidGenerationError: the system randomness source is unavailable

Record access errors are separate because they describe a single field
lookup rather than a failed enqueue.
"""


class EnqueueError(Exception):
    """Base class for all enqueue failures."""

    reason = "enqueue"


class SerializationError(EnqueueError):
    """Raised when a job record cannot be encoded as JSON."""

    reason = "serialization"


class JobValidationError(EnqueueError, ValueError):
    """Raised when a job is missing a required field or carries a malformed one."""

    reason = "validation"


class JidGenerationError(EnqueueError):
    """Raised when a job identifier cannot be generated."""

    reason = "jid"


class StoreError(EnqueueError):
    """
    Raised when a Redis command fails during dispatch.

    Attributes:
        step: The dispatch step that failed (connect, register, push or schedule).
        jid: Identifier of the job being dispatched.
    """

    reason = "store"

    def __init__(self, message: str, step: str, jid: str | None = None):
        super().__init__(message)
        self.step = step
        self.jid = jid


class RecordDecodeError(ValueError):
    """Raised when raw bytes are not a JSON object."""


class RecordFieldError(Exception):
    """Base class for typed field access failures on a job record."""

    def __init__(self, key: str, message: str):
        super().__init__(message)
        self.key = key


class FieldMissingError(RecordFieldError, KeyError):
    """Raised when a requested field is absent from the record."""

    def __init__(self, key: str):
        super().__init__(key, f"key not found: {key!r}")

    def __str__(self) -> str:
        return self.args[0]


class FieldTypeError(RecordFieldError, TypeError):
    """Raised when a field is present but holds a value of the wrong type."""

    def __init__(self, key: str, expected: str, value: object):
        super().__init__(
            key,
            f"type mismatch for {key!r}: expected {expected}, got {type(value).__name__}",
        )
        self.expected = expected
        self.value = value
