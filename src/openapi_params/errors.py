"""Error types raised while decoding parameter values.

Every error carries an HTTP status hint for the host's error middleware:
400 when the caller sent a bad value, 500 when the API document is broken.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from openapi_params.decoder.context import ParseContext


class ParameterError(Exception):
    """Base class for all parameter decoding failures."""

    status = 400

    def __init__(
        self,
        message: str,
        *,
        name: str | None = None,
        location: str | None = None,
        path: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.name = name
        self.location = location
        self.path = path
        # innermost context the failure happened in, set by the walker
        self.context: ParseContext | None = None


class FormatError(ParameterError):
    """A value is lexically wrong for its schema (not a number, bad date, ...)."""

    status = 400


class ConfigurationError(ParameterError):
    """The API document itself is broken: unknown type, bad style, bad bound literal."""

    status = 500


class MissingRequiredError(ParameterError):
    """A required parameter is absent and has no default."""

    status = 400

    def __init__(self, name: str, location: str):
        super().__init__(
            f'Missing required {location} parameter "{name}"',
            name=name,
            location=location,
            path=name,
        )
