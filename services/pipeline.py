"""Request pipeline: validation, enrichment, persistence and range reads.

The pipeline is independent of the web framework. It takes the raw pieces of
a request and returns a ``PipelineResponse`` that the HTTP layer copies onto
the wire. Validation failures are returned as ``ClientError`` values; only
storage failures travel as exceptions.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Dict, Mapping, Optional, Union

import httpx
from pydantic import ValidationError

from app.schemas import ErrorResponse, Reading
from datastore.mock_dynamodb import build_default_table
from models.records import QueryParseError
from services.errors import StorageError
from services.inserter import RecordInserter
from services.range_query import RangeQueryTranslator, parse_query_window
from services.weather import WeatherEnricher
from settings import get_settings

logger = logging.getLogger(__name__)

ALLOWED_METHODS = ("GET", "POST")
JSON_CONTENT_TYPE = "application/json"
INTERNAL_ERROR_MESSAGE = "Internal server error"


@dataclass(frozen=True)
class PipelineResponse:
    status: int
    content: bytes = b""
    headers: Dict[str, str] = field(default_factory=dict)

    def json(self) -> Any:
        return json.loads(self.content) if self.content else None


def json_response(status: int, payload: Any) -> PipelineResponse:
    content = json.dumps(payload).encode("utf-8")
    return PipelineResponse(
        status=status,
        content=content,
        headers={
            "Content-Type": JSON_CONTENT_TYPE,
            "Content-Length": str(len(content)),
        },
    )


@dataclass(frozen=True)
class ClientError:
    """A request rejected before any I/O happened."""

    status: int
    message: str
    fields: tuple[str, ...] = ()

    def to_response(self) -> PipelineResponse:
        body = ErrorResponse(detail=self.message, fields=list(self.fields))
        return json_response(self.status, body.model_dump())


def _internal_error() -> PipelineResponse:
    return json_response(500, ErrorResponse(detail=INTERNAL_ERROR_MESSAGE).model_dump())


def _reject_constant(token: str) -> Any:
    raise ValueError(f"Non-standard JSON constant {token}")


def parse_reading(content_type: Optional[str], body: bytes) -> Union[Reading, ClientError]:
    if not content_type:
        return ClientError(400, "No Content-Type")
    if not content_type.startswith(JSON_CONTENT_TYPE):
        return ClientError(400, "Has to be application/json")

    try:
        payload = json.loads(body, parse_constant=_reject_constant)
    except ValueError:
        return ClientError(400, "Bad JSON body")

    try:
        return Reading.model_validate(payload)
    except ValidationError as exc:
        fields = tuple(
            sorted({str(error["loc"][0]) for error in exc.errors() if error["loc"]})
        )
        return ClientError(400, "Invalid reading", fields)


class RequestPipeline:
    """Routes one request through enrichment and storage."""

    def __init__(
        self,
        enricher: WeatherEnricher,
        inserter: RecordInserter,
        translator: RangeQueryTranslator,
    ) -> None:
        self.enricher = enricher
        self.inserter = inserter
        self.translator = translator

    async def aclose(self) -> None:
        await self.enricher.aclose()

    async def dispatch(
        self,
        method: str,
        content_type: Optional[str],
        body: bytes,
        query: Mapping[str, str],
    ) -> PipelineResponse:
        started = time.perf_counter()
        if method == "POST":
            response = await self.handle_post(content_type, body)
        elif method == "GET":
            response = await self.handle_get(query)
        else:
            response = PipelineResponse(status=405, headers={"Allow": ", ".join(ALLOWED_METHODS)})

        logger.info(
            "Handled request",
            extra={
                "method": method,
                "status": response.status,
                "duration_ms": int((time.perf_counter() - started) * 1000),
            },
        )
        return response

    async def handle_post(self, content_type: Optional[str], body: bytes) -> PipelineResponse:
        reading = parse_reading(content_type, body)
        if isinstance(reading, ClientError):
            return reading.to_response()

        try:
            await self.enricher.enrich(reading)
            record = await self.inserter.insert(reading)
        except StorageError as exc:
            logger.exception("Error storing reading", extra={"statement": exc.statement})
            return _internal_error()
        except Exception:
            logger.exception("Error processing reading")
            return _internal_error()

        return json_response(200, record.model_dump(mode="json", by_alias=True, exclude_none=True))

    async def handle_get(self, query: Mapping[str, str]) -> PipelineResponse:
        window = parse_query_window(query)
        if isinstance(window, QueryParseError):
            return ClientError(400, window.message, window.fields).to_response()

        try:
            records = await self.translator.fetch(window)
        except StorageError as exc:
            logger.exception("Error querying readings", extra={"statement": exc.statement})
            return _internal_error()
        except Exception:
            logger.exception("Error projecting readings")
            return _internal_error()

        return json_response(
            200, [record.model_dump(mode="json", by_alias=True) for record in records]
        )


@lru_cache
def build_default_pipeline() -> RequestPipeline:
    """Factory that wires the pipeline with the configured table and weather URL."""
    settings = get_settings()
    table = build_default_table()
    client = httpx.AsyncClient(timeout=settings.weather_timeout)
    return RequestPipeline(
        enricher=WeatherEnricher(client=client, url=settings.weather_url),
        inserter=RecordInserter(store=table),
        translator=RangeQueryTranslator(store=table),
    )
