"""
Enqueue engine.

Turns a job into a JSON record and writes it to Redis. Two front ends feed
one dispatch routine:

- typed: queue, class and args are wrapped into a JobDescriptor, given a
  fresh jid and timestamps, and serialized into a JobRecord
- raw: a caller-supplied JobRecord is validated and completed in place,
  keeping every field this module does not manage

Dispatch compares the job's `at` against a fresh clock sample. Future jobs go
to the scheduled sorted set scored by `at`; due jobs register their queue
name and are appended to the queue's FIFO list.
"""

import logging
import time
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Any

from redis.asyncio import Redis
from redis.exceptions import RedisError

from enqueuer.clock import duration_to_seconds, now_seconds, time_to_seconds
from enqueuer.config import get_settings
from enqueuer.constants import (
    FIELD_AT,
    FIELD_ENQUEUED_AT,
    FIELD_JID,
    FIELD_QUEUE,
    SPAN_ENQUEUE_JOB,
    SPAN_ENQUEUE_RECORD,
    Destination,
)
from enqueuer.errors import (
    EnqueueError,
    FieldMissingError,
    FieldTypeError,
    JobValidationError,
    RecordDecodeError,
    StoreError,
)
from enqueuer.jid import generate_jid
from enqueuer.observability.metrics import MetricsCollector, get_metrics
from enqueuer.observability.tracing import get_tracer
from enqueuer.store.connection import borrow_connection, get_redis
from enqueuer.store.keys import RedisKeys
from enqueuer.types.job import EnqueueOptions, JobDescriptor
from enqueuer.types.record import JobRecord

logger = logging.getLogger(__name__)

# Global enqueuer instance
_enqueuer: "Enqueuer | None" = None


def _is_absent(record: JobRecord, key: str, getter: Callable[[str], Any]) -> bool:
    """
    Check an optional field.

    Returns True when the field is absent, False when it is present and well
    typed. Raises JobValidationError when it is present but malformed.
    """
    try:
        getter(key)
    except FieldMissingError:
        return True
    except FieldTypeError as e:
        raise JobValidationError(f"bad {key} value: {e}") from e
    return False


class Enqueuer:
    """
    Writes jobs to Redis.

    Each dispatch borrows one pooled connection and returns it before the
    call completes. Writes are not transactional: if registering the queue
    name succeeds and the append fails, the StoreError reaches the caller
    and the registry entry stays.
    """

    def __init__(
        self,
        client: Redis,
        namespace: str | None = None,
        metrics: MetricsCollector | None = None,
    ):
        """
        Initialize the enqueuer.

        Args:
            client: Redis client whose connection pool is borrowed from.
            namespace: Key prefix. Defaults to the configured namespace.
            metrics: Metrics collector. Defaults to the global one.
        """
        if namespace is None:
            namespace = get_settings().redis_namespace
        self._client = client
        self._keys = RedisKeys(namespace)
        self._metrics = metrics or get_metrics()
        self._tracer = get_tracer()

    @property
    def keys(self) -> RedisKeys:
        """Redis key layout used by this enqueuer."""
        return self._keys

    # ------------------------------------------------------------------
    # TYPED PATH
    # ------------------------------------------------------------------

    async def enqueue(self, queue: str, class_name: str, args: Any = None) -> str:
        """Enqueue a job for immediate dispatch. Returns its jid."""
        return await self.enqueue_with_options(
            queue, class_name, args, EnqueueOptions(at=now_seconds())
        )

    async def enqueue_in(
        self,
        queue: str,
        class_name: str,
        delay: float | timedelta,
        args: Any = None,
    ) -> str:
        """
        Enqueue a job to run after a delay.

        Args:
            queue: Logical queue name.
            class_name: Job handler identifier.
            delay: Seconds (or a timedelta) from now.
            args: JSON-encodable job arguments.

        Returns:
            The job identifier.
        """
        if isinstance(delay, timedelta):
            delay = duration_to_seconds(delay)
        return await self.enqueue_with_options(
            queue, class_name, args, EnqueueOptions(at=now_seconds() + delay)
        )

    async def enqueue_at(
        self,
        queue: str,
        class_name: str,
        when: datetime,
        args: Any = None,
    ) -> str:
        """Enqueue a job to run at a specific instant. Naive datetimes are UTC."""
        return await self.enqueue_with_options(
            queue, class_name, args, EnqueueOptions(at=time_to_seconds(when))
        )

    async def enqueue_with_options(
        self,
        queue: str,
        class_name: str,
        args: Any,
        options: EnqueueOptions,
    ) -> str:
        """
        Enqueue a job with explicit retry and scheduling options.

        Args:
            queue: Logical queue name.
            class_name: Job handler identifier.
            args: JSON-encodable job arguments.
            options: Retry fields and dispatch time.

        Returns:
            The job identifier.

        Raises:
            JobValidationError: If queue or class name is empty.
            SerializationError: If args cannot be encoded. Nothing is written.
            StoreError: If a Redis command fails.
        """
        with self._track_failures():
            record = self.prepare_record(queue, class_name, args, options)
            return await self._dispatch(record)

    def prepare_record(
        self,
        queue: str,
        class_name: str,
        args: Any,
        options: EnqueueOptions | None = None,
    ) -> JobRecord:
        """
        Build a complete job record without dispatching it.

        The jid is always freshly generated, enqueued_at is now, and `at`
        defaults to now when options leave it unset.
        """
        return JobDescriptor.create(queue, class_name, args, options).to_record()

    # ------------------------------------------------------------------
    # RAW PATH
    # ------------------------------------------------------------------

    async def enqueue_record(
        self,
        record: JobRecord | Mapping[str, Any] | bytes | str,
    ) -> str:
        """
        Validate, complete and dispatch a pre-built job record.

        A JobRecord is completed in place, so the caller sees the jid, `at`
        and enqueued_at that were written. Mappings are copied first and raw
        JSON is decoded. Fields this module does not manage are written
        unchanged.

        Args:
            record: The job record, a mapping, or raw JSON.

        Returns:
            The job identifier.

        Raises:
            JobValidationError: If the record is unusable. Nothing is written.
            SerializationError: If the record cannot be encoded.
            StoreError: If a Redis command fails.
        """
        with self._track_failures():
            if isinstance(record, (bytes, bytearray, str)):
                try:
                    record = JobRecord.decode(record)
                except RecordDecodeError as e:
                    raise JobValidationError(str(e)) from e
            elif not isinstance(record, JobRecord):
                record = JobRecord(record)

            with self._tracer.start_as_current_span(SPAN_ENQUEUE_RECORD):
                self.complete_record(record)
                return await self._dispatch(record)

    def complete_record(self, record: JobRecord) -> JobRecord:
        """
        Make a raw record dispatch-ready, in place.

        1. `queue` must be a non-empty string
        2. `jid` must be a non-empty string if present; generated if absent
        3. `at` must be a number if present; now if absent
        4. `enqueued_at` is always set to now

        Every check runs before the first write, so a rejected record is
        left exactly as it was.

        Raises:
            JobValidationError: On the first failed check.
        """
        try:
            queue = record.get_str(FIELD_QUEUE)
        except (FieldMissingError, FieldTypeError) as e:
            raise JobValidationError(f"bad queue value: {e}") from e
        if not queue:
            raise JobValidationError("bad queue value: queue name is empty")

        jid_absent = _is_absent(record, FIELD_JID, record.get_str)
        if not jid_absent and not record.get_str(FIELD_JID):
            raise JobValidationError("bad jid value: job identifier is empty")
        at_absent = _is_absent(record, FIELD_AT, record.get_float)

        jid = generate_jid() if jid_absent else None
        now = now_seconds()

        if jid is not None:
            record.set(FIELD_JID, jid)
        if at_absent:
            record.set(FIELD_AT, now)
        record.set(FIELD_ENQUEUED_AT, now)
        return record

    # ------------------------------------------------------------------
    # DISPATCH
    # ------------------------------------------------------------------

    async def _dispatch(self, record: JobRecord) -> str:
        """
        Write a dispatch-ready record to Redis.

        Jobs whose `at` is strictly later than now go to the scheduled set;
        everything else is due and goes to its queue.
        """
        jid = record.get_str(FIELD_JID)
        queue = record.get_str(FIELD_QUEUE)
        at = record.get_float(FIELD_AT)
        payload = record.encode()

        now = now_seconds()
        destination = Destination.SCHEDULE if now < at else Destination.QUEUE

        with self._tracer.start_as_current_span(
            SPAN_ENQUEUE_JOB,
            attributes={
                "job.jid": jid,
                "job.queue": queue,
                "job.destination": destination.value,
            },
        ):
            started = time.perf_counter()
            step = "connect"
            try:
                async with borrow_connection(self._client) as conn:
                    if destination is Destination.SCHEDULE:
                        step = "schedule"
                        await conn.zadd(self._keys.schedule, {payload: at})
                    else:
                        step = "register"
                        await conn.sadd(self._keys.queues, queue)
                        step = "push"
                        await conn.rpush(self._keys.queue(queue), payload)
            except RedisError as e:
                logger.error(
                    "Redis command failed during dispatch",
                    extra={"jid": jid, "queue": queue, "step": step, "error": str(e)},
                )
                raise StoreError(
                    f"{step} failed for job {jid}: {e}", step=step, jid=jid
                ) from e

        self._metrics.record_job_enqueued(
            queue=queue,
            destination=destination.value,
            duration_seconds=time.perf_counter() - started,
        )
        logger.info(
            "Enqueued job",
            extra={
                "jid": jid,
                "queue": queue,
                "destination": destination.value,
                "at": at,
            },
        )
        return jid

    @contextmanager
    def _track_failures(self) -> Iterator[None]:
        """Count enqueue failures by reason and let them propagate."""
        try:
            yield
        except EnqueueError as e:
            self._metrics.record_enqueue_failure(e.reason)
            raise

    # ------------------------------------------------------------------
    # INTROSPECTION
    # ------------------------------------------------------------------

    async def known_queues(self) -> set[str]:
        """Queue names that have received at least one due job."""
        async with borrow_connection(self._client) as conn:
            members = await conn.smembers(self._keys.queues)
        return {m.decode() if isinstance(m, bytes) else m for m in members}

    async def queue_length(self, queue: str) -> int:
        """Number of due jobs waiting in a queue."""
        async with borrow_connection(self._client) as conn:
            return await conn.llen(self._keys.queue(queue))

    async def scheduled_count(self) -> int:
        """Number of jobs waiting in the scheduled set."""
        async with borrow_connection(self._client) as conn:
            return await conn.zcard(self._keys.schedule)


def get_enqueuer() -> Enqueuer:
    """
    Get or create the process-wide enqueuer.

    Uses the shared Redis client and the configured namespace.
    """
    global _enqueuer
    if _enqueuer is None:
        _enqueuer = Enqueuer(get_redis())
    return _enqueuer


def reset_enqueuer() -> None:
    """Drop the process-wide enqueuer so the next get_enqueuer() rebuilds it."""
    global _enqueuer
    _enqueuer = None
