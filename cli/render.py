from __future__ import annotations

from typing import Any, Dict, Iterable, List

import typer

_READING_KEYS = (
    "RoomTemperature",
    "RelativeHumidity",
    "TargetTemperature",
    "OutsideTemperature",
    "OutsideHumidity",
    "HeatingOn",
    "SunIsUp",
)


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def render_record(payload: Dict[str, Any]) -> None:
    echo_heading("Stored Reading")
    echo_key_values([("ID", payload.get("ID"))])
    echo_key_values((key, payload.get(key)) for key in _READING_KEYS)
    condition = payload.get("WeatherCondition")
    if condition:
        typer.secho(f"Weather unavailable: {condition}", fg=typer.colors.YELLOW)


def render_history(records: List[Dict[str, Any]]) -> None:
    echo_heading(f"Readings ({len(records)})")
    if not records:
        typer.echo("No readings in this window.")
        return
    for record in records:
        heating = "on" if record.get("HeatingOn") else "off"
        sun = "up" if record.get("SunIsUp") else "down"
        typer.echo(
            f"  - {record.get('DateTime')}: room {record.get('RoomTemperature')} "
            f"(target {record.get('TargetTemperature')}), "
            f"outside {record.get('OutsideTemperature')}, heating {heating}, sun {sun}"
        )
