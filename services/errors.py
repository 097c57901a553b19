"""Exceptions raised by the persistence-facing services."""

from __future__ import annotations

from datetime import datetime


class StorageError(Exception):
    """A storage call failed.

    ``statement`` describes the call that failed so it can be logged; it is
    never sent back to HTTP callers.
    """

    def __init__(self, statement: str) -> None:
        super().__init__(f"Storage call failed: {statement}")
        self.statement = statement


def describe_call(procedure: str, args: tuple) -> str:
    """Render a storage call as ``procedure(arg, ...)`` for diagnostics."""
    rendered = ", ".join(
        value.isoformat() if isinstance(value, datetime) else repr(value) for value in args
    )
    return f"{procedure}({rendered})"
