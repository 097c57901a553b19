"""Pydantic schemas for the HTTP API layer.

Field names are snake_case in Python and PascalCase on the wire, matching the
column names the sensors and the readings table use.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer


class Reading(BaseModel):
    """An inbound climate sample, mutated in place by weather enrichment."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    room_temperature: float = Field(..., alias="RoomTemperature")
    relative_humidity: float = Field(..., alias="RelativeHumidity")
    target_temperature: float = Field(..., alias="TargetTemperature")
    outside_temperature: Optional[float] = Field(default=None, alias="OutsideTemperature")
    outside_humidity: Optional[float] = Field(default=None, alias="OutsideHumidity")
    sun_is_up: bool = Field(default=False, alias="SunIsUp")
    heating_on: bool = Field(default=False, alias="HeatingOn")
    weather_condition: Optional[str] = Field(
        default=None,
        alias="WeatherCondition",
        description="Set when weather enrichment failed; explains why.",
    )


class StoredRecord(Reading):
    """A reading as accepted by storage, stamped with its insertion time."""

    id: str = Field(..., alias="ID", description="ISO-8601 insertion timestamp.")
    year: int = Field(..., alias="Year")
    month: int = Field(..., alias="Month", ge=0, le=11, description="Zero-based month.")
    day: int = Field(..., alias="Day")
    hour: int = Field(..., alias="Hour")
    minute: int = Field(..., alias="Minute")
    second: int = Field(..., alias="Second")

    @classmethod
    def from_reading(cls, reading: Reading, timestamp: datetime) -> "StoredRecord":
        return cls(
            **reading.model_dump(),
            id=timestamp.isoformat(),
            year=timestamp.year,
            month=timestamp.month - 1,
            day=timestamp.day,
            hour=timestamp.hour,
            minute=timestamp.minute,
            second=timestamp.second,
        )


class HistoricalRecord(BaseModel):
    """Read-only projection of a stored row returned by range queries."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    date_time: datetime = Field(..., alias="DateTime")
    room_temperature: float = Field(..., alias="RoomTemperature")
    relative_humidity: float = Field(..., alias="RelativeHumidity")
    outside_temperature: Optional[float] = Field(default=None, alias="OutsideTemperature")
    outside_humidity: Optional[float] = Field(default=None, alias="OutsideHumidity")
    target_temperature: float = Field(..., alias="TargetTemperature")
    sun_is_up: bool = Field(..., alias="SunIsUp")
    heating_on: bool = Field(..., alias="HeatingOn")

    @field_serializer("date_time")
    def _serialize_date_time(self, value: datetime) -> str:
        # Same format as the ID returned when the reading was stored.
        return value.isoformat()


class ErrorResponse(BaseModel):
    """JSON body returned with 4xx and 5xx responses."""

    detail: str
    fields: List[str] = Field(default_factory=list)
