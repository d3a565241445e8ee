"""
Integration tests for enqueueing pre-built job records.
"""

import json

import fakeredis
import pytest

from enqueuer.clock import now_seconds
from enqueuer.engine import Enqueuer
from enqueuer.errors import JobValidationError
from enqueuer.jid import is_valid_jid
from enqueuer.types.record import JobRecord


class TestEnqueueRecord:
    """Tests for dispatching raw records."""

    async def test_makes_the_queue_available(
        self, enqueuer: Enqueuer, redis_client: fakeredis.FakeAsyncRedis
    ):
        """Test that a record registers its queue name."""
        record = JobRecord.decode('{"jid":"1", "queue": "q1"}')

        jid = await enqueuer.enqueue_record(record)

        assert jid == "1"
        assert await redis_client.sismember("prod:queues", "q1")
        assert await redis_client.llen("prod:queue:q1") == 1

    async def test_fills_at_and_enqueued_at(
        self, enqueuer: Enqueuer, redis_client: fakeredis.FakeAsyncRedis
    ):
        """Test that missing at and enqueued_at are filled with now."""
        record = JobRecord.decode('{"jid":"6", "queue": "enqueue6"}')

        await enqueuer.enqueue_record(record)

        saved = JobRecord.decode(await redis_client.lpop("prod:queue:enqueue6"))
        assert saved.get_str("jid") == "6"
        assert saved.get_float("at") == pytest.approx(now_seconds(), abs=0.1)
        assert saved.get_float("enqueued_at") == pytest.approx(now_seconds(), abs=0.1)

    async def test_saves_unknown_fields_as_is(
        self, enqueuer: Enqueuer, redis_client: fakeredis.FakeAsyncRedis
    ):
        """Test that unknown fields are stored unchanged."""
        raw = (
            '{"jid":"3", "vava": true, "queue": "enqueue3", "at": %f, '
            '"x-field": {"one": "1", "two": "_2_"}}' % now_seconds()
        )
        record = JobRecord.decode(raw)

        await enqueuer.enqueue_record(record)

        saved = JobRecord.decode(await redis_client.lpop("prod:queue:enqueue3"))
        assert saved.get_bool("vava") is True
        assert saved.get_dict("x-field") == {"one": "1", "two": "_2_"}
        assert list(saved) == ["jid", "vava", "queue", "at", "x-field", "enqueued_at"]

    async def test_sets_enqueued_at_on_the_callers_record(
        self, enqueuer: Enqueuer, redis_client: fakeredis.FakeAsyncRedis
    ):
        """Test that the caller's record is completed in place."""
        record = JobRecord.decode(
            '{"jid":"4", "queue": "enqueue4", "at": %f, "enqueued_at": 1.0}' % now_seconds()
        )

        await enqueuer.enqueue_record(record)

        saved = JobRecord.decode(await redis_client.lpop("prod:queue:enqueue4"))
        assert record.get_float("enqueued_at") == pytest.approx(now_seconds(), abs=0.1)
        assert saved.get_float("enqueued_at") == record.get_float("enqueued_at")

    async def test_sets_jid_if_missing(
        self, enqueuer: Enqueuer, redis_client: fakeredis.FakeAsyncRedis
    ):
        """Test that a jid is generated when absent."""
        record = JobRecord.decode('{"queue": "enqueue5", "at": %f}' % now_seconds())

        jid = await enqueuer.enqueue_record(record)

        saved = JobRecord.decode(await redis_client.lpop("prod:queue:enqueue5"))
        assert is_valid_jid(jid)
        assert record.get_str("jid") == jid
        assert saved.get_str("jid") == jid

    async def test_future_at_is_scheduled(
        self, enqueuer: Enqueuer, redis_client: fakeredis.FakeAsyncRedis
    ):
        """Test that a record due later is scheduled."""
        at = now_seconds() + 60
        record = JobRecord(jid="8", queue="later", at=at)

        await enqueuer.enqueue_record(record)

        assert await redis_client.llen("prod:queue:later") == 0
        assert not await redis_client.sismember("prod:queues", "later")
        [(raw, score)] = await redis_client.zrange("prod:schedule", 0, -1, withscores=True)
        assert score == at
        assert raw == record.encode()

    async def test_integer_at_is_accepted(
        self, enqueuer: Enqueuer, redis_client: fakeredis.FakeAsyncRedis
    ):
        """Test that an integer at is accepted."""
        await enqueuer.enqueue_record({"jid": "9", "queue": "ints", "at": 1})

        saved = json.loads(await redis_client.lpop("prod:queue:ints"))
        assert saved["at"] == 1

    async def test_jid_and_at_are_kept_across_dispatches(
        self, enqueuer: Enqueuer, redis_client: fakeredis.FakeAsyncRedis
    ):
        """Test that jid and at are stored byte for byte on every dispatch."""
        raw = b'{"jid":"abc","queue":"again","at":1700000000.123456789}'

        await enqueuer.enqueue_record(raw)
        await enqueuer.enqueue_record(raw)

        stored = await redis_client.lrange("prod:queue:again", 0, -1)
        assert len(stored) == 2
        for payload in stored:
            assert payload.startswith(
                b'{"jid":"abc","queue":"again","at":1700000000.123456789,'
            )

    async def test_untouched_numbers_keep_their_text(
        self, enqueuer: Enqueuer, redis_client: fakeredis.FakeAsyncRedis
    ):
        """Test that numbers the engine never sets are written as they were read."""
        raw = b'{"queue":"prices","price":1.10,"exp":1e2,"big":1e400,"neg":-0}'

        await enqueuer.enqueue_record(raw)

        stored = await redis_client.lpop("prod:queue:prices")
        assert stored.startswith(
            b'{"queue":"prices","price":1.10,"exp":1e2,"big":1e400,"neg":-0,"jid":"'
        )

    async def test_mapping_input_is_not_mutated(
        self, enqueuer: Enqueuer, redis_client: fakeredis.FakeAsyncRedis
    ):
        """Test that a plain mapping is copied, not completed in place."""
        job = {"queue": "dicts", "class": "C"}

        await enqueuer.enqueue_record(job)

        assert job == {"queue": "dicts", "class": "C"}
        assert await redis_client.llen("prod:queue:dicts") == 1


class TestEnqueueRecordValidation:
    """Tests for rejecting malformed records."""

    @pytest.mark.parametrize(
        ("raw", "message"),
        [
            ('{"jid":"7"}', "bad queue"),
            ('{"jid":"7", "queue": 5}', "bad queue"),
            ('{"jid":"7", "queue": ""}', "bad queue"),
            ('{"jid":7, "queue": "q"}', "bad jid"),
            ('{"jid":"", "queue": "q"}', "bad jid"),
            ('{"jid":"7", "queue": "q", "at": "soon"}', "bad at"),
            ('{"jid":"7", "queue": "q", "at": true}', "bad at"),
        ],
    )
    async def test_rejected_records_write_nothing(
        self,
        enqueuer: Enqueuer,
        redis_client: fakeredis.FakeAsyncRedis,
        raw: str,
        message: str,
    ):
        """Test that invalid records fail before any write."""
        record = JobRecord.decode(raw)
        before = record.copy()

        with pytest.raises(JobValidationError, match=message):
            await enqueuer.enqueue_record(record)

        assert record == before
        assert list(record) == list(before)
        assert await redis_client.scard("prod:queues") == 0
        assert await redis_client.keys("*") == []

    async def test_bad_at_does_not_leave_a_generated_jid(self, enqueuer: Enqueuer):
        """Test that a rejected record is left unmodified."""
        record = JobRecord.decode('{"queue": "q", "at": "soon"}')

        with pytest.raises(JobValidationError):
            await enqueuer.enqueue_record(record)

        assert not record.has("jid")
        assert not record.has("enqueued_at")

    async def test_invalid_json_is_a_validation_error(
        self, enqueuer: Enqueuer, redis_client: fakeredis.FakeAsyncRedis
    ):
        """Test that undecodable input is a validation error."""
        with pytest.raises(JobValidationError):
            await enqueuer.enqueue_record(b"[1, 2, 3]")

        assert await redis_client.keys("*") == []
