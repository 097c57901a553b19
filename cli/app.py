from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_history, render_record


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Send readings to and query history from the temperature log service.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1)
    return state


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Service base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds to wait for the service to respond.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("send")
def send_command(
    ctx: typer.Context,
    room: float = typer.Option(..., "--room", help="Room temperature."),
    humidity: float = typer.Option(..., "--humidity", help="Relative humidity in percent."),
    target: float = typer.Option(..., "--target", help="Target temperature."),
    heating: bool = typer.Option(False, "--heating/--no-heating", help="Whether heating is on."),
    sun: bool = typer.Option(
        False,
        "--sun/--no-sun",
        help="Sun state; replaced by the service when weather lookup succeeds.",
    ),
) -> None:
    """Send one reading to the service and show what was stored."""
    state = _get_state(ctx)
    record = state.client.send_reading(
        {
            "RoomTemperature": room,
            "RelativeHumidity": humidity,
            "TargetTemperature": target,
            "HeatingOn": heating,
            "SunIsUp": sun,
        }
    )
    render_record(record)


@app.command("history")
def history_command(
    ctx: typer.Context,
    year: int = typer.Option(..., "--year"),
    month: int = typer.Option(..., "--month", min=0, max=11, help="Zero-based month (0 is January)."),
    day: int = typer.Option(..., "--day"),
    hour: int = typer.Option(0, "--hour"),
    minute: int = typer.Option(0, "--minute"),
    duration: float = typer.Option(60.0, "--duration", min=0, help="Window length in minutes."),
) -> None:
    """List readings stored within a time window (UTC)."""
    state = _get_state(ctx)
    records = state.client.query_history(
        {
            "year": year,
            "month": month,
            "day": day,
            "hour": hour,
            "minute": minute,
            "durationMinutes": duration,
        }
    )
    render_history(records)
