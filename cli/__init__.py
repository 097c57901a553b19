"""Command-line client for the temperature log service; the typer app lives in ``cli.app``."""
