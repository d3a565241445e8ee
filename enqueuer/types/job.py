"""
Job-related type definitions for internal use.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from enqueuer.clock import now_seconds
from enqueuer.constants import (
    FIELD_ARGS,
    FIELD_AT,
    FIELD_CLASS,
    FIELD_ENQUEUED_AT,
    FIELD_JID,
    FIELD_MAX_ATTEMPTS,
    FIELD_QUEUE,
    FIELD_RETRY,
    FIELD_RETRY_COUNT,
    OMIT_IF_DEFAULT_FIELDS,
)
from enqueuer.errors import JobValidationError, RecordFieldError
from enqueuer.jid import generate_jid
from enqueuer.types.record import JobRecord


class EnqueueOptions(BaseModel):
    """
    Retry and scheduling options for a typed enqueue.

    Zero values mean "not set": retry fields are then left out of the job
    record and an `at` of zero or less means "now".
    """

    model_config = ConfigDict(frozen=True)

    max_attempts: int = Field(default=0, ge=0, description="Retry ceiling")
    retry_count: int = Field(default=0, ge=0, description="Current retry attempt")
    retry: bool = Field(default=False, description="Whether the job may be retried")
    at: float = Field(
        default=0.0, description="Dispatch time in seconds since the epoch"
    )


class JobDescriptor(BaseModel):
    """
    Canonical typed view of a job.

    Field order matches the order fields are written to the job record.
    """

    model_config = ConfigDict(populate_by_name=True)

    queue: str = Field(..., min_length=1)
    class_name: str = Field(..., alias=FIELD_CLASS, min_length=1)
    args: Any = None
    jid: str = Field(..., min_length=1)
    enqueued_at: float
    max_attempts: int = Field(default=0, ge=0)
    retry_count: int = Field(default=0, ge=0)
    retry: bool = False
    at: float

    @classmethod
    def create(
        cls,
        queue: str,
        class_name: str,
        args: Any,
        options: EnqueueOptions | None = None,
    ) -> "JobDescriptor":
        """
        Build a descriptor for a new job.

        The jid is always freshly generated and enqueued_at is the current
        time. The same sample is used for `at` when options leave it unset.

        Raises:
            JobValidationError: If queue or class name is empty.
            JidGenerationError: If no identifier could be generated.
        """
        options = options or EnqueueOptions()
        now = now_seconds()

        try:
            return cls.model_validate(
                {
                    FIELD_QUEUE: queue,
                    FIELD_CLASS: class_name,
                    FIELD_ARGS: args,
                    FIELD_JID: generate_jid(),
                    FIELD_ENQUEUED_AT: now,
                    FIELD_MAX_ATTEMPTS: options.max_attempts,
                    FIELD_RETRY_COUNT: options.retry_count,
                    FIELD_RETRY: options.retry,
                    FIELD_AT: options.at if options.at > 0 else now,
                }
            )
        except ValidationError as e:
            field = e.errors()[0]["loc"][0] if e.errors() else "job"
            raise JobValidationError(f"bad {field} value: {e}") from e

    @classmethod
    def from_record(cls, record: JobRecord) -> "JobDescriptor":
        """
        Project a job record onto its canonical fields.

        Unknown fields are ignored. Retry fields default when absent.

        Raises:
            JobValidationError: If a canonical field is missing or malformed.
        """
        try:
            fields = {
                FIELD_QUEUE: record.get_str(FIELD_QUEUE),
                FIELD_CLASS: record.get_str(FIELD_CLASS),
                FIELD_ARGS: record.get(FIELD_ARGS),
                FIELD_JID: record.get_str(FIELD_JID),
                FIELD_ENQUEUED_AT: record.get_float(FIELD_ENQUEUED_AT),
                FIELD_AT: record.get_float(FIELD_AT),
            }
            if record.has(FIELD_MAX_ATTEMPTS):
                fields[FIELD_MAX_ATTEMPTS] = record.get_int(FIELD_MAX_ATTEMPTS)
            if record.has(FIELD_RETRY_COUNT):
                fields[FIELD_RETRY_COUNT] = record.get_int(FIELD_RETRY_COUNT)
            if record.has(FIELD_RETRY):
                fields[FIELD_RETRY] = record.get_bool(FIELD_RETRY)
            return cls.model_validate(fields)
        except RecordFieldError as e:
            raise JobValidationError(f"bad {e.key} value: {e}") from e
        except ValidationError as e:
            raise JobValidationError(f"invalid job record: {e}") from e

    @property
    def options(self) -> EnqueueOptions:
        """Retry and scheduling options carried by this job."""
        return EnqueueOptions(
            max_attempts=self.max_attempts,
            retry_count=self.retry_count,
            retry=self.retry,
            at=self.at,
        )

    def to_record(self) -> JobRecord:
        """
        Serialize into a job record.

        Retry fields holding their default are left out.
        """
        record = JobRecord(self.model_dump(by_alias=True))
        for field in OMIT_IF_DEFAULT_FIELDS:
            if not record[field]:
                del record[field]
        return record
