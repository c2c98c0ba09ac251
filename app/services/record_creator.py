"""
Dependent Record Creator

PURPOSE:
Insert a row whose foreign key points at an upstream row that was just
written (the users row created at signup) but may not be visible yet to the
connection doing the insert.

HOW IT WORKS:
1. Attempt the insert (in a worker thread, the datastore is blocking)
2. Foreign-key violation -> upstream row not visible yet: back off, retry
3. Any other datastore error -> permanent, raise immediately
4. Retry budget spent -> DependencyNotReady

Only FK violations are retried. Uniqueness or validation errors are real
data errors and retrying them would only delay the same answer.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from app.core.exceptions import (
    CreationCancelled, DependencyNotReady, PermanentInsertFailure
)
from app.db.datastore import DatastoreError, DatastoreErrorKind
from app.services.backoff import DEFAULT_BASE_DELAY, backoff_delay

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 5

RetryCallback = Callable[[int, DatastoreError, float], None]


class DependentRecordCreator:
    """
    Creates one row in `table`, retrying while its foreign key is not visible.

    Args:
        datastore: Object with insert(table, fields) -> dict that raises
            DatastoreError on failure
        table: Target table name
        max_attempts: Total insert attempts allowed (>= 1)
        base_delay: Backoff base in seconds
        sleep: Awaitable sleep function, replaceable in tests
        on_retry: Optional callback(attempt, error, delay) before each wait

    Example:
        creator = DependentRecordCreator(datastore, "profiles")
        profile = await creator.create({"user_id": user_id, "full_name": name})
    """

    def __init__(
        self,
        datastore,
        table: str,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        base_delay: float = DEFAULT_BASE_DELAY,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        on_retry: Optional[RetryCallback] = None,
    ):
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")
        self.datastore = datastore
        self.table = table
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.sleep = sleep
        self.on_retry = on_retry

    async def create(
        self,
        fields: Dict[str, Any],
        cancel_event: Optional[asyncio.Event] = None,
    ) -> dict:
        """
        Insert the record, retrying on foreign-key violations.

        Returns:
            The created record

        Raises:
            DependencyNotReady: FK violation on the last allowed attempt
            PermanentInsertFailure: any non-FK datastore error
            CreationCancelled: cancel_event was set before or while waiting
        """
        attempt = 1
        while True:
            if cancel_event is not None and cancel_event.is_set():
                raise CreationCancelled(
                    f"Creation of {self.table} record cancelled", attempt - 1
                )

            try:
                record = await asyncio.to_thread(self.datastore.insert, self.table, fields)
            except DatastoreError as e:
                if e.kind != DatastoreErrorKind.FOREIGN_KEY_VIOLATION:
                    raise PermanentInsertFailure(e.message, attempt, kind=e.kind) from e

                if attempt >= self.max_attempts:
                    raise DependencyNotReady(e.message, attempt) from e

                delay = backoff_delay(attempt, self.base_delay)
                if self.on_retry:
                    self.on_retry(attempt, e, delay)

                if await self._wait(delay, cancel_event):
                    raise CreationCancelled(
                        f"Creation of {self.table} record cancelled", attempt
                    ) from e
                attempt += 1
                continue

            logger.debug("Created %s record on attempt %d", self.table, attempt)
            return record

    async def _wait(self, delay: float, cancel_event: Optional[asyncio.Event]) -> bool:
        """Sleep for `delay`. Returns True if cancel_event fired first."""
        if cancel_event is None:
            await self.sleep(delay)
            return False
        try:
            await asyncio.wait_for(cancel_event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return False
        return True
