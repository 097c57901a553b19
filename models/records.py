"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import NamedTuple, Optional


@dataclass(slots=True)
class WeatherObservation:
    """Outside conditions reported by the weather service, in display units."""

    temperature: float
    humidity: float
    sun_is_up: bool


@dataclass(slots=True)
class EnrichmentOutcome:
    """Result of a best-effort weather lookup: an observation or an error tag."""

    observation: Optional[WeatherObservation] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.observation is not None


class InsertParams(NamedTuple):
    """Positional arguments of the storage ``insert`` call, in call order."""

    timestamp: datetime
    room_temperature: float
    relative_humidity: float
    target_temperature: float
    outside_temperature: Optional[float]
    outside_humidity: Optional[float]
    heating_on: int
    sun_is_up: int


@dataclass(frozen=True, slots=True)
class QueryWindow:
    """A validated range-query window.

    ``month`` is zero-based (0 is January), the same convention used for the
    ``Month`` field stamped on stored records.
    """

    year: int
    month: int
    day: int
    hour: int
    minute: int
    duration_minutes: float
    start: datetime

    @property
    def end(self) -> datetime:
        return self.start + timedelta(minutes=self.duration_minutes)


@dataclass(frozen=True, slots=True)
class QueryParseError:
    """Query parameters that could not be turned into a window."""

    fields: tuple[str, ...]
    message: str
