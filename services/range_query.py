"""Translation of loosely-typed query parameters into range reads."""

from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Mapping, Optional, Union

from app.schemas import HistoricalRecord
from datastore.mock_dynamodb import ReadingStore
from models.records import QueryParseError, QueryWindow
from services.errors import StorageError, describe_call

logger = logging.getLogger(__name__)

DATE_FIELDS = ("year", "month", "day", "hour", "minute")
DURATION_FIELD = "durationMinutes"
QUERY_FIELDS = DATE_FIELDS + (DURATION_FIELD,)


def _parse_number(raw: Optional[str]) -> Optional[float]:
    if raw is None:
        return None
    try:
        value = float(raw.strip())
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def parse_query_window(params: Mapping[str, str]) -> Union[QueryWindow, QueryParseError]:
    """Validate the six range-query parameters.

    Date parts must be whole numbers and ``durationMinutes`` a non-negative
    number. ``month`` is zero-based: 0 is January and 11 is December.
    Every failing field is reported, not just the first one.
    """

    failed: List[str] = []
    parts: Dict[str, int] = {}
    for name in DATE_FIELDS:
        value = _parse_number(params.get(name))
        if value is None or not value.is_integer():
            failed.append(name)
        else:
            parts[name] = int(value)

    duration = _parse_number(params.get(DURATION_FIELD))
    if duration is None or duration < 0:
        failed.append(DURATION_FIELD)

    if failed:
        return QueryParseError(
            fields=tuple(failed),
            message=f"Query parameters must be numeric: {', '.join(failed)}",
        )

    try:
        start = datetime(
            parts["year"],
            parts["month"] + 1,
            parts["day"],
            parts["hour"],
            parts["minute"],
            tzinfo=timezone.utc,
        )
    except (ValueError, OverflowError):
        return QueryParseError(
            fields=DATE_FIELDS,
            message="Query parameters do not form a valid date (month is zero-based)",
        )

    assert duration is not None
    try:
        start + timedelta(minutes=duration)
    except OverflowError:
        return QueryParseError(
            fields=(DURATION_FIELD,),
            message="Query window ends past the last representable date",
        )

    return QueryWindow(
        year=parts["year"],
        month=parts["month"],
        day=parts["day"],
        hour=parts["hour"],
        minute=parts["minute"],
        duration_minutes=duration,
        start=start,
    )


def _unwrap_flag(value: Any) -> bool:
    if isinstance(value, (list, tuple)):
        return bool(value) and value[0] == 1
    return value == 1


class RangeQueryTranslator:
    """Runs validated windows against storage and projects the rows."""

    def __init__(self, store: ReadingStore) -> None:
        self.store = store

    async def fetch(self, window: QueryWindow) -> List[HistoricalRecord]:
        try:
            rows = await self.store.range_fetch(window.start, window.duration_minutes)
        except Exception as exc:
            statement = describe_call("range_fetch", (window.start, window.duration_minutes))
            raise StorageError(statement) from exc

        records = [self.project(row) for row in rows]
        logger.info("Range query served", extra={"row_count": len(records)})
        return records

    @staticmethod
    def project(row: Mapping[str, Any]) -> HistoricalRecord:
        return HistoricalRecord(
            date_time=row["DateTime"],
            room_temperature=row["RoomTemperature"],
            relative_humidity=row["RelativeHumidity"],
            outside_temperature=row.get("OutsideTemperature"),
            outside_humidity=row.get("OutsideHumidity"),
            target_temperature=row["TargetTemperature"],
            sun_is_up=_unwrap_flag(row["SunIsUp"]),
            heating_on=_unwrap_flag(row["HeatingOn"]),
        )
