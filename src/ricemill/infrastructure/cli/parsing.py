"""Parsing of the compact ``a:b:c,a:b:c`` item lists the commands accept."""

from __future__ import annotations

import click


def split_items(raw: str, fields: tuple[str, ...]) -> list[list[str]]:
    """Split 'x:1,y:2' into [['x', '1'], ['y', '2']].

    Chunks are split from the right, so a leading product name may
    itself contain colons.
    """
    parts: list[list[str]] = []
    for chunk in raw.split(","):
        chunk = chunk.strip()
        if not chunk:
            continue
        values = chunk.rsplit(":", len(fields) - 1)
        if len(values) != len(fields):
            raise click.BadParameter(
                f"Invalid item format '{chunk}'. Expected '{':'.join(fields)}'."
            )
        parts.append([v.strip() for v in values])
    if not parts:
        raise click.BadParameter("At least one item is required.")
    return parts


def to_int(value: str, what: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise click.BadParameter(f"Invalid {what} '{value}'.")
