"""Leaf coercion: one raw string -> one typed primitive value.

Values that are not strings (typed defaults, already-parsed JSON) are
returned unchanged, so coercing twice is the same as coercing once.
"""

import base64
import binascii
import math
import re
from datetime import date, datetime, timedelta, timezone
from typing import Any

from openapi_params.errors import ConfigurationError, FormatError
from openapi_params.parser.base import Primitive

NUMBER_RE = re.compile(r"^\s*[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?\s*$")
INTEGER_RE = re.compile(r"^\s*[+-]?\d+\s*$")
DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
DATE_TIME_RE = re.compile(
    r"^(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?(Z|[+-]\d{2}:\d{2})$"
)


def coerce_primitive(schema: Primitive, value: Any) -> Any:
    """Convert a raw string to the type described by a primitive schema.

    Raises:
        FormatError: The value does not match the type/format.
        ConfigurationError: The schema type is not a primitive JSON Schema type.
    """
    if schema.type not in ("integer", "number", "boolean", "string"):
        raise ConfigurationError(f'"{schema.type}" is not a JSON Schema primitive type.')

    if not isinstance(value, str):
        return value

    if schema.type == "integer":
        return parse_integer(value)
    if schema.type == "number":
        return parse_number(value)
    if schema.type == "boolean":
        return parse_boolean(value)

    if schema.format == "byte":
        return parse_bytes(value)
    if schema.format == "binary":
        return parse_binary(value)
    if schema.format == "date":
        return parse_date(value)
    if schema.format == "date-time":
        return parse_date_time(value)
    # plain strings and passwords, "" included
    return value


def parse_number(value: str) -> float:
    if not NUMBER_RE.match(value):
        raise FormatError(f'"{value}" is not a valid numeric value.')

    parsed = float(value)
    if not math.isfinite(parsed):
        raise FormatError(f'"{value}" is not a valid numeric value.')
    return parsed


def parse_integer(value: str) -> int:
    if INTEGER_RE.match(value):
        return int(value)

    parsed = parse_number(value)
    if not parsed.is_integer():
        raise FormatError(f'"{value}" is not a whole number.')
    return int(parsed)


def parse_boolean(value: str) -> bool:
    normalized = value.strip().lower()
    if normalized == "true":
        return True
    if normalized == "false":
        return False
    raise FormatError(f'"{value}" is not a valid boolean value.')


def parse_bytes(value: str) -> bytes:
    """Decode base64, accepting the URL-safe alphabet and missing padding."""
    text = "".join(value.split()).replace("-", "+").replace("_", "/")
    text += "=" * (-len(text) % 4)
    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError):
        raise FormatError(f'"{value}" is not a valid base64 value.') from None


def parse_binary(value: str) -> bytes:
    # one character per byte, like a raw "binary" transfer encoding
    return bytes(ord(char) & 0xFF for char in value)


def parse_date(value: str) -> date:
    match = DATE_RE.match(value)
    if not match:
        raise FormatError(f'"{value}" is not a properly-formatted date.')

    year, month, day = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        raise FormatError(f'"{value}" is not a valid date.') from None


def parse_date_time(value: str) -> datetime:
    """Parse an RFC 3339 timestamp into a timezone-aware datetime."""
    match = DATE_TIME_RE.match(value)
    if not match:
        raise FormatError(f'"{value}" is not a properly-formatted date-time.')

    year, month, day, hour, minute, second, fraction, offset = match.groups()
    # datetime only keeps microseconds
    microsecond = int((fraction or "0")[:6].ljust(6, "0"))
    try:
        return datetime(
            int(year), int(month), int(day),
            int(hour), int(minute), int(second), microsecond,
            tzinfo=_parse_offset(offset),
        )
    except ValueError:
        raise FormatError(f'"{value}" is an invalid date-time.') from None


def _parse_offset(offset: str) -> timezone:
    if offset == "Z":
        return timezone.utc
    sign = -1 if offset[0] == "-" else 1
    hours, minutes = int(offset[1:3]), int(offset[4:6])
    if hours > 23 or minutes > 59:
        raise ValueError(f"offset out of range: {offset}")
    return timezone(sign * timedelta(hours=hours, minutes=minutes))
