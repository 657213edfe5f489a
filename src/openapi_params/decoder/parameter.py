"""Top-level parameter decoding.

``decode_parameter`` turns one raw value into a typed value and wraps any
failure in a message that names the parameter and, for nested values, the
exact index or key that failed. ``decode_parameters`` does the same for a
whole operation and enforces ``required``.
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from openapi_params.config import DecoderSettings
from openapi_params.decoder.context import ParseContext
from openapi_params.decoder.styles import (
    RawValue,
    decode_style,
    falls_back_to_default,
    is_json_mime_type,
)
from openapi_params.decoder.walker import walk
from openapi_params.errors import (
    ConfigurationError,
    FormatError,
    MissingRequiredError,
    ParameterError,
)
from openapi_params.parser.base import Location, ParameterDefinition

logger = logging.getLogger(__name__)


def decode_parameter(
    param: ParameterDefinition,
    raw: RawValue,
    settings: DecoderSettings | None = None,
) -> Any:
    """Decode one raw parameter value.

    Args:
        param:    The parameter definition (read only).
        raw:      The value as received, ``None`` when the parameter is absent.
                  Query values may be a list when the key was repeated.
        settings: Decoder limits; defaults apply when omitted.

    Returns:
        The typed value, the default, or ``None``.

    Raises:
        FormatError: The value is malformed (status 400).
        ConfigurationError: The parameter's definition is broken (status 500).
    """
    ctx = ParseContext(param.name, str(param.location))
    logger.debug('Parsing the "%s" %s parameter', param.name, param.location)

    try:
        structural = decode_style(param, raw)
        schema = param.schema_
        if structural is None or schema is None:
            return structural
        if falls_back_to_default(param, raw) and not isinstance(param.default_value, str):
            # typed defaults are used as-is
            return structural
        if param.content is not None and not is_json_mime_type(param.mime_type):
            # only JSON content is decoded; other media types stay raw strings
            return structural
        return walk(schema, structural, ctx, settings)
    except ParameterError as error:
        raise _invalid_parameter(param, ctx, error) from error


def decode_required(
    param: ParameterDefinition,
    raw: RawValue,
    settings: DecoderSettings | None = None,
) -> Any:
    """Like ``decode_parameter``, but a required parameter must be present."""
    if param.required and raw is None and param.default_value is None:
        raise MissingRequiredError(param.name, str(param.location))
    return decode_parameter(param, raw, settings)


def decode_parameters(
    params: Iterable[ParameterDefinition],
    raw_values: Mapping[str, Mapping[str, RawValue]],
    settings: DecoderSettings | None = None,
) -> dict[str, dict[str, Any]]:
    """Decode every parameter of an operation.

    ``raw_values`` maps a location ("path", "query", ...) to that location's
    raw values by name. Header names are matched case-insensitively. The
    result has the same shape; absent optional parameters are left out.
    The first failing parameter aborts the whole call.
    """
    result: dict[str, dict[str, Any]] = {}
    for param in params:
        location = str(param.location)
        raw = _lookup(param, raw_values.get(location, {}))
        value = decode_required(param, raw, settings)
        if value is not None:
            result.setdefault(location, {})[param.name] = value
    return result


def _lookup(param: ParameterDefinition, values: Mapping[str, RawValue]) -> RawValue:
    if param.name in values:
        return values[param.name]
    if param.location == Location.HEADER:
        wanted = param.name.lower()
        for name, value in values.items():
            if name.lower() == wanted:
                return value
    return None


def _invalid_parameter(
    param: ParameterDefinition,
    ctx: ParseContext,
    error: ParameterError,
) -> ParameterError:
    path = (error.context or ctx).path
    message = f'The "{param.name}" {param.location} parameter is invalid.'
    if path != param.name:
        message += f" Error at {path}."
    message += f" {error.message}"

    error_class = ConfigurationError if isinstance(error, ConfigurationError) else FormatError
    return error_class(message, name=param.name, location=str(param.location), path=path)
