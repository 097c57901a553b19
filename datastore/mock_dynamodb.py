from __future__ import annotations
import json
from datetime import datetime, timedelta
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Any, Dict, List, Optional, Protocol

from models.records import InsertParams
from settings import get_settings

Row = Dict[str, Any]


class ReadingStore(Protocol):
    """Storage client consumed by the inserter and the range query."""

    async def insert(self, params: InsertParams) -> None: ...

    async def range_fetch(self, start: datetime, duration_minutes: float) -> List[Row]: ...


def _to_row(params: InsertParams) -> Row:
    return {
        "DateTime": params.timestamp.isoformat(),
        "RoomTemperature": params.room_temperature,
        "RelativeHumidity": params.relative_humidity,
        "TargetTemperature": params.target_temperature,
        "OutsideTemperature": params.outside_temperature,
        "OutsideHumidity": params.outside_humidity,
        # Flags are kept as single-element bit arrays, like BIT(1) columns.
        "HeatingOn": [params.heating_on],
        "SunIsUp": [params.sun_is_up],
    }


class MockDynamoDBTable:
    """In-memory readings table keyed by insertion timestamp.

    Rows are optionally mirrored to a JSON file so readings survive restarts.
    """

    def __init__(self, name: str, persistence_path: Optional[Path] = None) -> None:
        self.name = name
        self._rows: Dict[str, Row] = {}
        self.persistence_path = persistence_path
        self._lock = Lock()
        if persistence_path:
            persistence_path.parent.mkdir(parents=True, exist_ok=True)
            self._load_from_disk()

    def __len__(self) -> int:
        with self._lock:
            return len(self._rows)

    async def insert(self, params: InsertParams) -> None:
        row = _to_row(params)
        with self._lock:
            self._rows[row["DateTime"]] = row
            self._persist()

    async def range_fetch(self, start: datetime, duration_minutes: float) -> List[Row]:
        """Return copies of rows in ``[start, start + duration)``, oldest first.

        A zero duration matches rows stamped exactly at ``start``.
        """

        end = start + timedelta(minutes=duration_minutes)
        with self._lock:
            matches = []
            for key, row in self._rows.items():
                moment = datetime.fromisoformat(key)
                if duration_minutes == 0:
                    hit = moment == start
                else:
                    hit = start <= moment < end
                if hit:
                    matches.append((moment, json.loads(json.dumps(row))))
        matches.sort(key=lambda pair: pair[0])
        return [row for _, row in matches]

    def _persist(self) -> None:
        if not self.persistence_path:
            return
        self.persistence_path.write_text(json.dumps(self._rows, indent=2, sort_keys=True))

    def _load_from_disk(self) -> None:
        if not self.persistence_path or not self.persistence_path.exists():
            return

        try:
            raw = self.persistence_path.read_text() or "{}"
            data = json.loads(raw)
        except (OSError, json.JSONDecodeError):
            data = {}

        for key, row in data.items():
            self._rows[key] = row


@lru_cache
def build_default_table(
    name: Optional[str] = None,
    path: Optional[str] = None,
) -> MockDynamoDBTable:
    settings = get_settings()
    table_name = settings.table_name if name is None else name
    table_path = settings.table_persistence_path if path is None else path
    persistence = Path(table_path) if table_path else None
    return MockDynamoDBTable(name=table_name, persistence_path=persistence)
