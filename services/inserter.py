"""Normalization of readings into storage insert calls."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from app.schemas import Reading, StoredRecord
from datastore.mock_dynamodb import ReadingStore
from models.records import InsertParams
from services.errors import StorageError, describe_call

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RecordInserter:
    """Stamps readings with an insertion time and writes them to storage."""

    def __init__(
        self,
        store: ReadingStore,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.store = store
        self._clock = clock
        self._last_issued: Optional[datetime] = None

    async def insert(self, reading: Reading) -> StoredRecord:
        timestamp = self._next_timestamp()
        params = self.build_params(reading, timestamp)
        try:
            await self.store.insert(params)
        except Exception as exc:
            raise StorageError(describe_call("insert", params)) from exc

        record = StoredRecord.from_reading(reading, timestamp)
        logger.info("Stored reading", extra={"record_id": record.id})
        return record

    @staticmethod
    def build_params(reading: Reading, timestamp: datetime) -> InsertParams:
        return InsertParams(
            timestamp=timestamp,
            room_temperature=reading.room_temperature,
            relative_humidity=reading.relative_humidity,
            target_temperature=reading.target_temperature,
            outside_temperature=reading.outside_temperature,
            outside_humidity=reading.outside_humidity,
            heating_on=1 if reading.heating_on else 0,
            sun_is_up=1 if reading.sun_is_up else 0,
        )

    def _next_timestamp(self) -> datetime:
        # Keys must stay unique even when two readings arrive within one clock tick.
        now = self._clock()
        if self._last_issued is not None and now <= self._last_issued:
            now = self._last_issued + timedelta(microseconds=1)
        self._last_issued = now
        return now

