import asyncio

import httpx
import pytest

from app.schemas import Reading
from models.records import EnrichmentOutcome, WeatherObservation
from services.weather import WeatherEnricher, merge_outcome

URL = "http://weather.test/data/2.5/weather"
NOW = 1_700_000_000.0


def _enricher(handler, url: str | None = URL, now: float = NOW) -> WeatherEnricher:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return WeatherEnricher(client, url=url, clock=lambda: now)


def _payload(temp: float = 294.15, humidity: float = 55, sunrise: float = NOW - 10, sunset: float = NOW + 10) -> dict:
    return {"main": {"temp": temp, "humidity": humidity}, "sys": {"sunrise": sunrise, "sunset": sunset}}


def _reading() -> Reading:
    return Reading(RoomTemperature=20.0, RelativeHumidity=45, TargetTemperature=21, SunIsUp=False)


def test_fetch_converts_kelvin_and_reads_humidity() -> None:
    enricher = _enricher(lambda request: httpx.Response(200, json=_payload()))

    outcome = asyncio.run(enricher.fetch())

    assert outcome.succeeded
    assert outcome.error is None
    assert outcome.observation == WeatherObservation(temperature=21.0, humidity=55.0, sun_is_up=True)


@pytest.mark.parametrize(
    ("sunrise", "sunset", "expected"),
    [
        (NOW, NOW + 1, True),
        (NOW - 100, NOW, False),
        (NOW + 1, NOW + 100, False),
    ],
)
def test_sun_is_up_uses_half_open_interval(sunrise: float, sunset: float, expected: bool) -> None:
    enricher = _enricher(
        lambda request: httpx.Response(200, json=_payload(sunrise=sunrise, sunset=sunset))
    )

    outcome = asyncio.run(enricher.fetch())

    assert outcome.observation is not None
    assert outcome.observation.sun_is_up is expected


def test_fetch_requests_configured_url() -> None:
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        return httpx.Response(200, json=_payload())

    asyncio.run(_enricher(handler).fetch())

    assert seen == [URL]


def test_network_error_is_captured(caplog) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("no route to host", request=request)

    outcome = asyncio.run(_enricher(handler).fetch())

    assert outcome.observation is None
    assert outcome.error == "Weather request failed: ConnectError"
    assert "Weather enrichment failed" in caplog.text


def test_timeout_is_captured() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    outcome = asyncio.run(_enricher(handler).fetch())

    assert outcome.error == "Weather request failed: ReadTimeout"


def test_non_200_is_captured() -> None:
    outcome = asyncio.run(_enricher(lambda request: httpx.Response(401, json={"cod": 401})).fetch())

    assert outcome.observation is None
    assert outcome.error == "Weather service responded 401"


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, content=b"<html>"),
        httpx.Response(200, json={"main": {"temp": 290}}),
        httpx.Response(200, json={"main": {"temp": None, "humidity": 1}, "sys": {"sunrise": 1, "sunset": 2}}),
        httpx.Response(200, json=["not", "an", "object"]),
    ],
)
def test_malformed_body_is_captured(response: httpx.Response) -> None:
    outcome = asyncio.run(_enricher(lambda request: response).fetch())

    assert outcome.observation is None
    assert outcome.error == "Malformed weather response"


def test_missing_url_skips_request() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    outcome = asyncio.run(_enricher(handler, url=None).fetch())

    assert outcome.error == "Weather service not configured"


def test_enrich_success_sets_outside_fields() -> None:
    reading = _reading()
    enricher = _enricher(lambda request: httpx.Response(200, json=_payload(temp=273.15, humidity=80)))

    asyncio.run(enricher.enrich(reading))

    assert reading.outside_temperature == 0.0
    assert reading.outside_humidity == 80.0
    assert reading.sun_is_up is True
    assert reading.weather_condition is None


def test_enrich_failure_annotates_and_keeps_reading() -> None:
    reading = _reading()
    enricher = _enricher(lambda request: httpx.Response(503))

    outcome = asyncio.run(enricher.enrich(reading))

    assert not outcome.succeeded
    assert reading.weather_condition == "Weather service responded 503"
    assert reading.outside_temperature is None
    assert reading.outside_humidity is None
    assert reading.sun_is_up is False
    assert reading.room_temperature == 20.0


def test_merge_outcome_clears_stale_annotation() -> None:
    reading = _reading()
    reading.weather_condition = "earlier failure"

    merge_outcome(reading, EnrichmentOutcome(observation=WeatherObservation(5.0, 60.0, False)))

    assert reading.weather_condition is None
    assert reading.outside_temperature == 5.0
