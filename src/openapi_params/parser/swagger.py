"""OpenAPI / Swagger document parser.

Parses OpenAPI 3.x and Swagger 2.0 documents into Operation models whose
parameters carry ready-to-use SchemaNode trees. Problems in the document
itself raise ConfigurationError.
"""

import logging
from datetime import date
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from openapi_params.config import DEFAULT_MAX_DEPTH
from openapi_params.decoder.coerce import coerce_primitive
from openapi_params.errors import ConfigurationError, FormatError
from openapi_params.parser.base import (
    DEFAULT_STYLES,
    SCHEMA_TYPES,
    ArrayOf,
    Location,
    ObjectOf,
    Operation,
    ParameterDefinition,
    Primitive,
    SchemaNode,
    StyleKind,
)
from openapi_params.parser.detect import detect_format, load_document

logger = logging.getLogger(__name__)

HTTP_METHODS = ("GET", "PUT", "POST", "DELETE", "OPTIONS", "HEAD", "PATCH", "TRACE")

# Swagger 2.0 collectionFormat -> (style, explode); None keeps the location's default style
COLLECTION_FORMATS = {
    "csv": (None, False),
    "ssv": (StyleKind.SPACE_DELIMITED, False),
    "pipes": (StyleKind.PIPE_DELIMITED, False),
    "multi": (StyleKind.FORM, True),
}


def parse_openapi(file_path: Path, max_depth: int = DEFAULT_MAX_DEPTH) -> list[Operation]:
    """Parse an OpenAPI/Swagger file into a list of Operation."""
    logger.debug("Loading %s", file_path)
    return parse_operations(load_document(file_path), max_depth=max_depth)


def parse_operations(document: dict, max_depth: int = DEFAULT_MAX_DEPTH) -> list[Operation]:
    """Collect the operations of an already-loaded document."""
    doc_format = detect_format(document)
    if doc_format == "unknown":
        raise ConfigurationError("Not an OpenAPI 3.x or Swagger 2.0 document.")
    logger.debug("Document format: %s", doc_format)

    operations = []
    paths = document.get("paths") or {}

    for path, path_item in paths.items():
        path_item = _resolve_ref(path_item, document)
        shared = path_item.get("parameters", [])

        for method, operation in path_item.items():
            if method.upper() not in HTTP_METHODS:
                continue

            params = _merge_parameters(shared, operation.get("parameters", []), document)
            operations.append(
                Operation(
                    method=method.upper(),
                    path=path,
                    summary=operation.get("summary", ""),
                    parameters=[
                        p for p in (parameter_from_dict(d, document, max_depth) for d in params)
                        if p is not None
                    ],
                )
            )

    logger.debug("Found %d operations", len(operations))
    return operations


def find_operation(operations: list[Operation], method: str, path: str) -> Operation | None:
    for operation in operations:
        if operation.method == method.upper() and operation.path == path:
            return operation
    return None


def parameter_from_dict(
    data: dict,
    document: dict | None = None,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> ParameterDefinition | None:
    """Build a ParameterDefinition from an OpenAPI 3 or Swagger 2 parameter object.

    Returns None for Swagger 2.0 body parameters, which are not decoded here.
    """
    data = _resolve_ref(data, document)
    name = data.get("name")
    location = data.get("in")

    if location == "body":
        return None
    if location not in {loc.value for loc in Location}:
        raise ConfigurationError(f'"{location}" is not a valid parameter location.', name=name)

    fields: dict[str, Any] = {
        "name": name,
        "location": location,
        "required": data.get("required", False),
        "description": data.get("description", ""),
    }

    if "content" in data:
        fields["content"] = {
            mime_type: (
                schema_from_dict(media["schema"], document, max_depth)
                if (media or {}).get("schema") else None
            )
            for mime_type, media in data["content"].items()
        }
    elif "schema" in data:
        fields["schema_node"] = schema_from_dict(data["schema"], document, max_depth)
        fields["style"] = _style(data.get("style"), name)
        fields["explode"] = data.get("explode")
    else:
        # Swagger 2.0 keeps the schema keywords on the parameter itself
        _swagger2_fields(data, document, max_depth, fields)

    try:
        return ParameterDefinition(**fields)
    except ValidationError as e:
        raise ConfigurationError(f'The "{name}" {location} parameter is not valid: {e}', name=name) from e


def schema_from_dict(
    data: dict | None,
    document: dict | None = None,
    max_depth: int = DEFAULT_MAX_DEPTH,
    _depth: int = 0,
) -> SchemaNode:
    """Build a SchemaNode tree from a JSON Schema dict, resolving local $refs."""
    if _depth > max_depth:
        raise ConfigurationError(
            f"Schema is nested deeper than the maximum depth of {max_depth} (circular $ref?)."
        )

    data = _resolve_ref(data or {}, document)
    schema_type = _schema_type(data)

    if schema_type == "array":
        items = data.get("items")
        return ArrayOf(
            items=schema_from_dict(items, document, max_depth, _depth + 1) if items else Primitive(),
            default=data.get("default"),
        )

    if schema_type == "object":
        additional = data.get("additionalProperties")
        return ObjectOf(
            properties={
                key: schema_from_dict(prop, document, max_depth, _depth + 1)
                for key, prop in (data.get("properties") or {}).items()
            },
            additional=(
                schema_from_dict(additional, document, max_depth, _depth + 1)
                if isinstance(additional, dict) else None
            ),
            default=data.get("default"),
        )

    schema = Primitive(
        type=schema_type,
        format=data.get("format"),
        default=data.get("default"),
        minimum=data.get("minimum"),
        maximum=data.get("maximum"),
    )
    _check_literals(schema)
    return schema


def _schema_type(data: dict) -> str:
    schema_type = data.get("type")
    if isinstance(schema_type, list):
        # OpenAPI 3.1 nullable types, e.g. ["integer", "null"]
        schema_type = next((t for t in schema_type if t != "null"), None)

    if schema_type is None:
        if "properties" in data or "additionalProperties" in data:
            return "object"
        if "items" in data:
            return "array"
        return "string"

    if schema_type not in SCHEMA_TYPES:
        raise ConfigurationError(f'"{schema_type}" is not a JSON Schema primitive type.')
    return schema_type


def _check_literals(schema: Primitive) -> None:
    """Make sure the schema's own literals can be parsed as its type."""
    for key in ("minimum", "maximum", "default"):
        literal = getattr(schema, key)
        if literal is None:
            continue

        if isinstance(literal, str):
            try:
                coerce_primitive(schema, literal)
            except FormatError as e:
                raise ConfigurationError(f'The "{key}" value is invalid. {e.message}') from e
        elif key != "default" and (isinstance(literal, bool) or not isinstance(literal, (int, float, date))):
            raise ConfigurationError(f'The "{key}" value {literal!r} is not a number or a date.')


def _style(style: str | None, name: str | None) -> StyleKind | None:
    if style is None:
        return None
    if style not in {s.value for s in StyleKind}:
        raise ConfigurationError(f'"{style}" is not a supported parameter style.', name=name)
    return StyleKind(style)


def _swagger2_fields(data: dict, document: dict | None, max_depth: int, fields: dict) -> None:
    schema_data = dict(data)
    if schema_data.get("type") == "file":
        schema_data = {"type": "string", "format": "binary"}

    schema = schema_from_dict(schema_data, document, max_depth)
    fields["schema_node"] = schema
    fields["default"] = data.get("default")

    if isinstance(schema, ArrayOf):
        collection_format = data.get("collectionFormat", "csv")
        if collection_format not in COLLECTION_FORMATS:
            raise ConfigurationError(
                f'"{collection_format}" is not a supported collectionFormat.', name=data.get("name")
            )
        style, explode = COLLECTION_FORMATS[collection_format]
        fields["style"] = style or DEFAULT_STYLES[Location(data["in"])]
        fields["explode"] = explode
    else:
        fields["explode"] = False


def _merge_parameters(shared: list[dict], own: list[dict], document: dict) -> list[dict]:
    """Path-level parameters, overridden by operation parameters with the same name and location."""
    merged: dict[tuple[str, str], dict] = {}
    for data in list(shared) + list(own):
        data = _resolve_ref(data, document)
        merged[(data.get("name"), data.get("in"))] = data
    return list(merged.values())


def _resolve_ref(data: Any, document: dict | None, limit: int = DEFAULT_MAX_DEPTH) -> Any:
    """Follow local "#/..." references until a concrete object is reached."""
    for _ in range(limit):
        if not isinstance(data, dict) or "$ref" not in data:
            return data
        ref = data["$ref"]
        if document is None or not ref.startswith("#/"):
            raise ConfigurationError(f'Cannot resolve the reference "{ref}".')

        target: Any = document
        for part in ref[2:].split("/"):
            part = part.replace("~1", "/").replace("~0", "~")
            if not isinstance(target, dict) or part not in target:
                raise ConfigurationError(f'Cannot resolve the reference "{ref}".')
            target = target[part]
        data = target

    raise ConfigurationError("Too many chained $ref references (circular $ref?).")
