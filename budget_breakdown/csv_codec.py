"""Line-level helpers for the budget CSV format."""

from __future__ import annotations

import math
from typing import Iterable, List

_SPECIAL_CHARS = (",", '"', "\n")


def split_line(line: str, unescape_quotes: bool = False) -> List[str]:
    """Split a single CSV line into fields.

    Every ``"`` toggles the in-quotes state and is dropped from the output, so
    ``""`` inside a quoted field does not produce a literal quote. Pass
    ``unescape_quotes=True`` to turn a doubled quote inside a quoted field into
    one ``"`` instead.
    """

    fields: List[str] = []
    current: List[str] = []
    in_quotes = False
    idx = 0
    while idx < len(line):
        char = line[idx]
        if char == '"':
            if unescape_quotes and in_quotes and line[idx + 1 : idx + 2] == '"':
                current.append('"')
                idx += 2
                continue
            in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            fields.append("".join(current))
            current = []
        else:
            current.append(char)
        idx += 1
    fields.append("".join(current))
    return fields


def escape_field(value: object) -> str:
    """Return ``value`` as CSV-safe text, quoting only when required."""

    if value is None:
        return ""
    text = str(value)
    if not any(char in text for char in _SPECIAL_CHARS):
        return text
    return '"' + text.replace('"', '""') + '"'


def join_fields(values: Iterable[object]) -> str:
    return ",".join(escape_field(value) for value in values)


def parse_amount(text: str | None) -> float:
    """Parse ``"$1,234.56"`` style amounts.

    Anything that cannot be read as a number becomes ``0.0`` so one bad row
    never aborts an import.
    """

    if text is None:
        return 0.0
    cleaned = str(text).replace("$", "").replace(",", "").strip()
    if not cleaned:
        return 0.0
    if "_" in cleaned:
        return 0.0
    try:
        value = float(cleaned)
    except ValueError:
        return 0.0
    if not math.isfinite(value):
        return 0.0
    return value


def format_amount(value: float) -> str:
    if value < 0:
        return f"-${abs(value):,.2f}"
    return f"${value:,.2f}"
