"""
Tests for dependent record creation with FK retry.
"""

import asyncio
import threading

import pytest

from app.core.exceptions import (
    CreationCancelled, DependencyNotReady, PermanentInsertFailure, RecordCreationError
)
from app.db.datastore import DatastoreError, DatastoreErrorKind
from app.services.record_creator import DependentRecordCreator

from tests.conftest import FakeDatastore, RecordingSleep, fk_error, unique_error


PROFILE = {"user_id": 7, "full_name": "Ada Lovelace", "email": "ada@university.edu", "role": "student"}


def make_creator(datastore, sleep, **kwargs):
    return DependentRecordCreator(datastore, "profiles", sleep=sleep, **kwargs)


class TestSuccess:
    """Inserts that eventually succeed."""

    def test_first_try(self, datastore, recording_sleep):
        """No FK error means one insert and no waiting."""
        creator = make_creator(datastore, recording_sleep)

        record = asyncio.run(creator.create(PROFILE))

        assert record["user_id"] == 7
        assert record["profile_id"] == 1
        assert datastore.inserts_into("profiles") == 1
        assert recording_sleep.delays == []

    def test_fk_lag_then_success(self, recording_sleep):
        """Two FK violations, then success on the third attempt."""
        datastore = FakeDatastore({"profiles": [fk_error(), fk_error()]})
        creator = make_creator(datastore, recording_sleep, max_attempts=5, base_delay=0.5)

        record = asyncio.run(creator.create(PROFILE))

        assert record["full_name"] == "Ada Lovelace"
        assert datastore.inserts_into("profiles") == 3
        assert recording_sleep.delays == [1.0, 2.0]

    def test_succeeds_on_last_allowed_attempt(self, recording_sleep):
        datastore = FakeDatastore({"profiles": [fk_error()] * 4})
        creator = make_creator(datastore, recording_sleep, max_attempts=5, base_delay=0.5)

        asyncio.run(creator.create(PROFILE))

        assert datastore.inserts_into("profiles") == 5
        assert recording_sleep.delays == [1.0, 2.0, 4.0, 8.0]

    def test_same_fields_every_attempt(self, recording_sleep):
        datastore = FakeDatastore({"profiles": [fk_error()]})
        creator = make_creator(datastore, recording_sleep)

        asyncio.run(creator.create(PROFILE))

        assert [fields for _, fields in datastore.calls] == [PROFILE, PROFILE]


class TestFailure:
    """Inserts that never succeed."""

    def test_retries_exhausted(self, recording_sleep):
        """FK violations on every attempt raise DependencyNotReady."""
        datastore = FakeDatastore({"profiles": [fk_error()] * 10})
        creator = make_creator(datastore, recording_sleep, max_attempts=3, base_delay=0.5)

        with pytest.raises(DependencyNotReady) as exc_info:
            asyncio.run(creator.create(PROFILE))

        assert exc_info.value.attempts == 3
        assert datastore.inserts_into("profiles") == 3
        # No wait after the final attempt
        assert recording_sleep.delays == [1.0, 2.0]

    def test_unique_violation_not_retried(self, recording_sleep):
        datastore = FakeDatastore({"profiles": [unique_error()]})
        creator = make_creator(datastore, recording_sleep)

        with pytest.raises(PermanentInsertFailure) as exc_info:
            asyncio.run(creator.create(PROFILE))

        assert exc_info.value.kind == DatastoreErrorKind.UNIQUE_VIOLATION
        assert exc_info.value.attempts == 1
        assert datastore.inserts_into("profiles") == 1
        assert recording_sleep.delays == []

    def test_other_error_after_fk_lag(self, recording_sleep):
        """A non-FK error ends the loop even after earlier FK retries."""
        other = DatastoreError(DatastoreErrorKind.OTHER, "value too long for type character varying(100)")
        datastore = FakeDatastore({"profiles": [fk_error(), other]})
        creator = make_creator(datastore, recording_sleep)

        with pytest.raises(PermanentInsertFailure) as exc_info:
            asyncio.run(creator.create(PROFILE))

        assert exc_info.value.kind == DatastoreErrorKind.OTHER
        assert exc_info.value.attempts == 2
        assert exc_info.value.__cause__ is other

    def test_single_attempt_budget(self, recording_sleep):
        datastore = FakeDatastore({"profiles": [fk_error()]})
        creator = make_creator(datastore, recording_sleep, max_attempts=1)

        with pytest.raises(DependencyNotReady):
            asyncio.run(creator.create(PROFILE))

        assert recording_sleep.delays == []

    def test_errors_share_base_class(self):
        assert issubclass(DependencyNotReady, RecordCreationError)
        assert issubclass(PermanentInsertFailure, RecordCreationError)
        assert issubclass(CreationCancelled, RecordCreationError)

    def test_rejects_zero_attempts(self, datastore):
        with pytest.raises(ValueError):
            DependentRecordCreator(datastore, "profiles", max_attempts=0)


class TestRetryCallback:
    """Test the on_retry hook."""

    def test_called_before_each_wait(self, recording_sleep):
        seen = []
        datastore = FakeDatastore({"profiles": [fk_error(), fk_error()]})
        creator = make_creator(
            datastore, recording_sleep, base_delay=0.5,
            on_retry=lambda attempt, error, delay: seen.append((attempt, error.kind, delay)),
        )

        asyncio.run(creator.create(PROFILE))

        assert seen == [
            (1, DatastoreErrorKind.FOREIGN_KEY_VIOLATION, 1.0),
            (2, DatastoreErrorKind.FOREIGN_KEY_VIOLATION, 2.0),
        ]


class TestCancellation:
    """Test cancellation through an asyncio.Event."""

    def test_cancelled_before_first_attempt(self, datastore):
        async def run():
            event = asyncio.Event()
            event.set()
            creator = DependentRecordCreator(datastore, "profiles")
            await creator.create(PROFILE, cancel_event=event)

        with pytest.raises(CreationCancelled) as exc_info:
            asyncio.run(run())

        assert exc_info.value.attempts == 0
        assert datastore.calls == []

    def test_cancelled_while_waiting(self):
        """Setting the event during a backoff wait stops further attempts."""
        datastore = FakeDatastore({"profiles": [fk_error()] * 10})

        async def run():
            event = asyncio.Event()
            creator = DependentRecordCreator(datastore, "profiles", max_attempts=5, base_delay=30)
            task = asyncio.create_task(creator.create(PROFILE, cancel_event=event))
            await asyncio.sleep(0.01)
            event.set()
            return await task

        with pytest.raises(CreationCancelled) as exc_info:
            asyncio.run(run())

        assert exc_info.value.attempts == 1
        assert datastore.inserts_into("profiles") == 1

    def test_unset_event_does_not_block_success(self):
        datastore = FakeDatastore({"profiles": [fk_error()]})

        async def run():
            event = asyncio.Event()
            creator = DependentRecordCreator(datastore, "profiles", base_delay=0.001)
            return await creator.create(PROFILE, cancel_event=event)

        record = asyncio.run(run())

        assert record["profile_id"] == 1
        assert datastore.inserts_into("profiles") == 2


class TestBlockingDatastore:
    """The datastore is synchronous; inserts must not run on the event loop."""

    def test_insert_runs_in_worker_thread(self, recording_sleep):
        insert_threads = []

        class ThreadRecordingDatastore(FakeDatastore):
            def insert(self, table, fields):
                insert_threads.append(threading.get_ident())
                return super().insert(table, fields)

        async def run():
            creator = make_creator(ThreadRecordingDatastore(), recording_sleep)
            await creator.create(PROFILE)
            return threading.get_ident()

        loop_thread = asyncio.run(run())

        assert len(insert_threads) == 1
        assert insert_threads[0] != loop_thread
