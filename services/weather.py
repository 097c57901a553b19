"""Best-effort enrichment of readings with outside weather."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Optional

import httpx

from app.schemas import Reading
from models.records import EnrichmentOutcome, WeatherObservation

logger = logging.getLogger(__name__)

KELVIN_OFFSET = 273.15


class WeatherEnricher:
    """Looks up current weather and merges it into readings.

    Never raises: every failure is returned as ``EnrichmentOutcome.error`` so
    the reading can still be stored.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        url: Optional[str],
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._client = client
        self.url = url
        self._clock = clock

    async def aclose(self) -> None:
        await self._client.aclose()

    async def fetch(self) -> EnrichmentOutcome:
        if not self.url:
            return EnrichmentOutcome(error="Weather service not configured")

        try:
            response = await self._client.get(self.url)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            return self._failed(f"Weather request failed: {exc.__class__.__name__}")

        if response.status_code != 200:
            return self._failed(f"Weather service responded {response.status_code}")

        try:
            observation = self._parse(response.json())
        except (ValueError, KeyError, TypeError):
            return self._failed("Malformed weather response")

        return EnrichmentOutcome(observation=observation)

    async def enrich(self, reading: Reading) -> EnrichmentOutcome:
        outcome = await self.fetch()
        merge_outcome(reading, outcome)
        return outcome

    def _parse(self, payload: Any) -> WeatherObservation:
        main = payload["main"]
        sun = payload["sys"]
        sunrise = float(sun["sunrise"])
        sunset = float(sun["sunset"])
        now = self._clock()
        return WeatherObservation(
            temperature=round(float(main["temp"]) - KELVIN_OFFSET, 2),
            humidity=float(main["humidity"]),
            sun_is_up=sunrise <= now < sunset,
        )

    def _failed(self, reason: str) -> EnrichmentOutcome:
        logger.warning("Weather enrichment failed", extra={"reason": reason})
        return EnrichmentOutcome(error=reason)


def merge_outcome(reading: Reading, outcome: EnrichmentOutcome) -> None:
    """Apply an enrichment outcome to ``reading`` in place."""
    if outcome.observation is None:
        reading.weather_condition = outcome.error
        return
    reading.outside_temperature = outcome.observation.temperature
    reading.outside_humidity = outcome.observation.humidity
    reading.sun_is_up = outcome.observation.sun_is_up
    reading.weather_condition = None
