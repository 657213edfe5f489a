"""Structural walk: apply leaf coercion across a decoded array/object.

The walk follows the schema, not the value. Values whose shape does not
match the schema (a scalar where an array was expected, ``None``, ...) are
returned unchanged; structural validation happens elsewhere.
"""

import logging
from typing import Any

from openapi_params.config import DecoderSettings
from openapi_params.decoder.coerce import coerce_primitive
from openapi_params.decoder.context import ParseContext
from openapi_params.errors import ConfigurationError, ParameterError
from openapi_params.parser.base import ArrayOf, ObjectOf, Primitive, SchemaNode

logger = logging.getLogger(__name__)


def walk(
    schema: SchemaNode,
    value: Any,
    ctx: ParseContext,
    settings: DecoderSettings | None = None,
) -> Any:
    """Coerce every leaf of ``value`` according to ``schema``.

    Returns new lists/dicts; the input is never modified.

    Raises:
        FormatError: A leaf value could not be coerced. The innermost
            ``ParseContext`` is stored on ``error.context``.
        ConfigurationError: The schema is broken or nested deeper than
            ``settings.max_depth``.
    """
    settings = settings or DecoderSettings()
    try:
        if ctx.depth > settings.max_depth:
            logger.debug("Depth limit hit at %s", ctx.path)
            raise ConfigurationError(
                f"{ctx.path} is nested deeper than the maximum depth of {settings.max_depth}."
            )

        if isinstance(schema, ArrayOf):
            if not isinstance(value, list):
                return value
            return [
                walk(schema.items, item, ctx.index(i), settings)
                for i, item in enumerate(value)
            ]

        if isinstance(schema, ObjectOf):
            if not isinstance(value, dict):
                return value
            return {
                key: walk(schema.property_schema(key), item, ctx.key(key), settings)
                for key, item in value.items()
            }

        if isinstance(schema, Primitive):
            return coerce_primitive(schema, value)

        raise ConfigurationError(f"{schema!r} is not a JSON Schema node.")
    except ParameterError as error:
        if error.context is None:
            error.context = ctx
        raise
