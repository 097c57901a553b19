import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from datastore.mock_dynamodb import MockDynamoDBTable
from models.records import InsertParams, QueryParseError, QueryWindow
from services.errors import StorageError
from services.range_query import RangeQueryTranslator, parse_query_window

VALID = {
    "year": "2024",
    "month": "0",
    "day": "31",
    "hour": "23",
    "minute": "45",
    "durationMinutes": "30",
}


class FailingStore:
    async def insert(self, params):  # pragma: no cover - unused
        return None

    async def range_fetch(self, start, duration_minutes):
        raise TimeoutError("storage did not answer")


def test_parse_builds_window_with_zero_based_month() -> None:
    window = parse_query_window(VALID)

    assert isinstance(window, QueryWindow)
    assert window.start == datetime(2024, 1, 31, 23, 45, tzinfo=timezone.utc)
    assert window.end == window.start + timedelta(minutes=30)
    assert window.month == 0


def test_parse_accepts_whitespace_and_fractional_duration() -> None:
    window = parse_query_window(dict(VALID, year=" 2024 ", durationMinutes="1.5"))

    assert isinstance(window, QueryWindow)
    assert window.duration_minutes == 1.5


@pytest.mark.parametrize("field", ["year", "month", "day", "hour", "minute", "durationMinutes"])
def test_parse_rejects_each_non_numeric_field(field: str) -> None:
    result = parse_query_window(dict(VALID, **{field: "abc"}))

    assert isinstance(result, QueryParseError)
    assert result.fields == (field,)
    assert field in result.message


def test_parse_enumerates_all_failures() -> None:
    result = parse_query_window({"year": "2024", "month": "nan", "day": "1.5", "durationMinutes": "-1"})

    assert isinstance(result, QueryParseError)
    assert result.fields == ("month", "day", "hour", "minute", "durationMinutes")


def test_parse_rejects_one_based_december() -> None:
    result = parse_query_window(dict(VALID, month="12", day="1"))

    assert isinstance(result, QueryParseError)
    assert "zero-based" in result.message


def test_parse_rejects_window_ending_past_max_date() -> None:
    result = parse_query_window(
        {"year": "9999", "month": "11", "day": "31", "hour": "23", "minute": "59", "durationMinutes": "1"}
    )

    assert isinstance(result, QueryParseError)
    assert result.fields == ("durationMinutes",)


def test_parse_rejects_unrepresentable_duration() -> None:
    result = parse_query_window(dict(VALID, durationMinutes="1e300"))

    assert isinstance(result, QueryParseError)
    assert result.fields == ("durationMinutes",)


def test_project_unwraps_flag_arrays() -> None:
    record = RangeQueryTranslator.project(
        {
            "DateTime": "2024-01-31T23:50:00+00:00",
            "RoomTemperature": 20.5,
            "RelativeHumidity": 41,
            "TargetTemperature": 21,
            "OutsideTemperature": -2.5,
            "OutsideHumidity": 88,
            "SunIsUp": [0],
            "HeatingOn": [1],
        }
    )

    assert record.sun_is_up is False
    assert record.heating_on is True
    assert record.outside_temperature == -2.5
    assert record.date_time == datetime(2024, 1, 31, 23, 50, tzinfo=timezone.utc)


def test_fetch_returns_rows_inside_window_in_order() -> None:
    table = MockDynamoDBTable(name="test")
    base = datetime(2024, 1, 31, 23, 45, tzinfo=timezone.utc)
    for offset in (40, 5, 29, 30, -1):
        params = InsertParams(base + timedelta(minutes=offset), 20.0, 40.0, 21.0, None, None, 0, 1)
        asyncio.run(table.insert(params))
    window = parse_query_window(VALID)
    assert isinstance(window, QueryWindow)

    records = asyncio.run(RangeQueryTranslator(table).fetch(window))

    assert [record.date_time for record in records] == [
        base + timedelta(minutes=5),
        base + timedelta(minutes=29),
    ]
    assert all(record.sun_is_up and not record.heating_on for record in records)


def test_fetch_wraps_storage_failure() -> None:
    window = parse_query_window(VALID)
    assert isinstance(window, QueryWindow)

    with pytest.raises(StorageError) as exc_info:
        asyncio.run(RangeQueryTranslator(FailingStore()).fetch(window))

    assert exc_info.value.statement == "range_fetch(2024-01-31T23:45:00+00:00, 30.0)"


def test_projected_date_time_serializes_like_stored_id() -> None:
    stamp = datetime(2024, 1, 31, 23, 50, 12, 345678, tzinfo=timezone.utc)
    record = RangeQueryTranslator.project(
        {
            "DateTime": stamp.isoformat(),
            "RoomTemperature": 20.5,
            "RelativeHumidity": 41,
            "TargetTemperature": 21,
            "SunIsUp": [1],
            "HeatingOn": [0],
        }
    )

    assert record.model_dump(mode="json", by_alias=True)["DateTime"] == stamp.isoformat()
