"""Style decoding: one raw wire string -> a structural value.

The structural value is a string, a list of strings or a dict of strings,
shaped by the parameter's schema type. Leaf types are not coerced here;
see ``openapi_params.decoder.walker``.

See https://spec.openapis.org/oas/v3.0.3#style-examples for the wire forms.
"""

import copy
import json
import re
from typing import Any
from urllib.parse import parse_qsl

from openapi_params.errors import ConfigurationError, FormatError
from openapi_params.parser.base import Location, ParameterDefinition, StyleKind

RawValue = str | list[str] | None


def decode_style(param: ParameterDefinition, raw: RawValue) -> Any:
    """Split a raw value according to the parameter's style and explode flag.

    An absent (or, for non-string schemas, blank) value resolves to the
    parameter's default. Typed defaults are returned as copies, so callers may
    modify the result freely.
    """
    if falls_back_to_default(param, raw):
        return _decode_default(param)

    if param.content is not None:
        return _decode_content(param, _single(raw))

    schema_type = _schema_type(param)
    if isinstance(raw, list):
        if schema_type == "array" and param.style == StyleKind.FORM and param.explode:
            return list(raw)
        # repeated keys are last-wins for everything else
        raw = _single(raw)

    match param.style:
        case StyleKind.MATRIX:
            return _decode_matrix(param, schema_type, raw)
        case StyleKind.LABEL:
            return _decode_label(param, schema_type, raw)
        case StyleKind.SIMPLE:
            return _decode_simple(param, schema_type, raw)
        case StyleKind.FORM:
            return _decode_form(param, schema_type, raw)
        case StyleKind.SPACE_DELIMITED:
            return _decode_delimited(schema_type, raw, " ")
        case StyleKind.PIPE_DELIMITED:
            return _decode_delimited(schema_type, raw, "|")
        case StyleKind.DEEP_OBJECT:
            return _decode_deep_object(param, schema_type, raw)
        case _:
            raise ConfigurationError(f'"{param.style}" is not a supported parameter style.')


def falls_back_to_default(param: ParameterDefinition, raw: RawValue) -> bool:
    """True when the default (or nothing) is used instead of the raw value.

    Strings are the one type where "" is a real value rather than a blank.
    """
    if raw is None:
        return True
    if raw == "" and param.default_value is not None:
        return _schema_type(param) != "string"
    return False


def is_json_mime_type(mime_type: str) -> bool:
    """Match application/json, */json and */*+json media types."""
    media_type = mime_type.split(";")[0].strip().lower()
    _, _, subtype = media_type.partition("/")
    return subtype == "json" or subtype.endswith("+json")


def _schema_type(param: ParameterDefinition) -> str:
    schema = param.schema_
    return schema.type if schema is not None else "string"


def _single(raw: RawValue) -> str:
    if isinstance(raw, list):
        return raw[-1] if raw else ""
    return raw


def _decode_default(param: ParameterDefinition) -> Any:
    # string defaults are written without wire framing, e.g. "A,B,C"
    default = param.default_value
    if not isinstance(default, str):
        return copy.deepcopy(default)

    schema_type = _schema_type(param)
    if param.content is not None:
        return default if schema_type == "string" else _decode_content(param, default)
    if schema_type == "array":
        return default.split(",")
    if schema_type == "object":
        return _pairs(_split(default, ","))
    return default


def _decode_content(param: ParameterDefinition, value: str) -> Any:
    if value == "" and _schema_type(param) == "string":
        return ""

    if is_json_mime_type(param.mime_type):
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            raise FormatError(f'"{value}" is not valid JSON.') from None
        except RecursionError:
            raise FormatError("The JSON value is nested too deeply to parse.") from None

    # other media types are not parsed
    return value


def _decode_matrix(param: ParameterDefinition, schema_type: str, value: str) -> Any:
    if not value.startswith(";"):
        raise FormatError(f'"{value}" is not a valid matrix-style value.')

    if param.explode and schema_type == "object":
        return _assignments(value[1:].split(";"))

    if param.explode and schema_type == "array":
        items = []
        for segment in value[1:].split(";"):
            key, _, item = segment.partition("=")
            if key != param.name:
                raise FormatError(f'"{value}" is not a valid matrix-style value.')
            items.append(item)
        return items

    prefix = f";{param.name}"
    if value == prefix:
        body = ""
    elif value.startswith(prefix + "="):
        body = value[len(prefix) + 1:]
    else:
        raise FormatError(f'"{value}" is not a valid matrix-style value.')

    if schema_type == "array":
        return body.split(",")
    if schema_type == "object":
        return _pairs(_split(body, ","))
    return body


def _decode_label(param: ParameterDefinition, schema_type: str, value: str) -> Any:
    if not value.startswith("."):
        raise FormatError(f'"{value}" is not a valid label-style value.')

    body = value[1:]
    if schema_type == "array":
        return body.split(".")
    if schema_type == "object":
        if param.explode:
            return _assignments(_split(body, "."))
        return _pairs(_split(body, "."))
    return body


def _decode_simple(param: ParameterDefinition, schema_type: str, value: str) -> Any:
    if schema_type == "array":
        return value.split(",")
    if schema_type == "object":
        if param.explode:
            return _assignments(_split(value, ","))
        return _pairs(_split(value, ","))
    return value


def _decode_form(param: ParameterDefinition, schema_type: str, value: str) -> Any:
    if schema_type == "array":
        if not param.explode:
            return value.split(",")
        if param.location == Location.COOKIE:
            # "Cookie: color=blue&color=green" reaches us as "blue&color=green"
            return [item for key, item in parse_qsl(f"{param.name}={value}", keep_blank_values=True)
                    if key == param.name]
        # a single repeated key collapses to one string; wrap it again
        return [value]

    if schema_type == "object":
        if param.explode:
            return _querystring(value)
        return _pairs(_split(value, ","))

    return value


def _decode_delimited(schema_type: str, value: str, delimiter: str) -> Any:
    if schema_type == "array":
        return value.split(delimiter)
    if schema_type == "object":
        return _pairs(_split(value, delimiter))
    return value


def _decode_deep_object(param: ParameterDefinition, schema_type: str, value: str) -> Any:
    if schema_type != "object":
        raise ConfigurationError(
            f'The "deepObject" style cannot be used for "{param.name}" ({schema_type}); it only applies to objects.'
        )

    key_pattern = re.compile(rf"^{re.escape(param.name)}\[([^\[\]]*)\]$")
    result: dict[str, Any] = {}
    for key, item in parse_qsl(value, keep_blank_values=True):
        match = key_pattern.match(key)
        if match:
            _collect(result, match.group(1), item)
        elif key.startswith(f"{param.name}["):
            # only one level of brackets: name[a][b] has no defined meaning
            raise FormatError(f'"{key}" is not a valid deepObject key.')
    return result


def _split(value: str, delimiter: str) -> list[str]:
    # key/value lists only; an empty body is an empty object
    return value.split(delimiter) if value else []


def _pairs(values: list[str]) -> dict[str, str]:
    """["k1", "v1", "k2", "v2"] -> {"k1": "v1", "k2": "v2"}"""
    result = {}
    for i in range(0, len(values), 2):
        key = values[i]
        result[key] = values[i + 1] if i + 1 < len(values) else ""
    return result


def _assignments(segments: list[str]) -> dict[str, str]:
    """["k1=v1", "k2=v2"] -> {"k1": "v1", "k2": "v2"}"""
    result = {}
    for segment in segments:
        if not segment:
            continue
        key, _, item = segment.partition("=")
        result[key] = item
    return result


def _querystring(value: str) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for key, item in parse_qsl(value, keep_blank_values=True):
        _collect(result, key, item)
    return result


def _collect(result: dict[str, Any], key: str, item: str) -> None:
    # a key seen twice becomes a list, as a query parser would do
    if key not in result:
        result[key] = item
    elif isinstance(result[key], list):
        result[key].append(item)
    else:
        result[key] = [result[key], item]
