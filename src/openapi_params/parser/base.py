"""Data models for parameter definitions and their schemas.

Document loaders (OpenAPI 3.x, Swagger 2.0) convert their input into these
models. The decoder only ever reads them, so one definition can serve any
number of concurrent decode calls.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, model_validator

PRIMITIVE_TYPES = ("integer", "number", "boolean", "string")
SCHEMA_TYPES = PRIMITIVE_TYPES + ("array", "object")


class Location(StrEnum):
    """Where on the request a raw value comes from."""

    PATH = "path"
    QUERY = "query"
    HEADER = "header"
    COOKIE = "cookie"
    FORM_DATA = "formData"


class StyleKind(StrEnum):
    """OpenAPI serialization styles."""

    MATRIX = "matrix"
    LABEL = "label"
    FORM = "form"
    SIMPLE = "simple"
    SPACE_DELIMITED = "spaceDelimited"
    PIPE_DELIMITED = "pipeDelimited"
    DEEP_OBJECT = "deepObject"


DEFAULT_STYLES = {
    Location.PATH: StyleKind.SIMPLE,
    Location.HEADER: StyleKind.SIMPLE,
    Location.QUERY: StyleKind.FORM,
    Location.COOKIE: StyleKind.FORM,
    Location.FORM_DATA: StyleKind.FORM,
}


class Primitive(BaseModel):
    """A leaf schema: integer, number, boolean or string (refined by format)."""

    model_config = {"frozen": True}

    kind: Literal["primitive"] = "primitive"
    type: str = "string"
    format: str | None = None
    default: Any = None
    minimum: Any = None
    maximum: Any = None


class ArrayOf(BaseModel):
    """An array whose items all share one schema."""

    model_config = {"frozen": True}

    kind: Literal["array"] = "array"
    items: SchemaNode = Field(default_factory=Primitive)
    default: Any = None

    @property
    def type(self) -> str:
        return "array"


class ObjectOf(BaseModel):
    """An object with known property schemas.

    Keys without a schema of their own use ``additional``, or a plain string
    schema when that is unset.
    """

    model_config = {"frozen": True}

    kind: Literal["object"] = "object"
    properties: dict[str, SchemaNode] = {}
    additional: SchemaNode | None = None
    default: Any = None

    @property
    def type(self) -> str:
        return "object"

    def property_schema(self, key: str) -> SchemaNode:
        if key in self.properties:
            return self.properties[key]
        return self.additional or Primitive(type="string")


SchemaNode = Annotated[Union[Primitive, ArrayOf, ObjectOf], Field(discriminator="kind")]

ArrayOf.model_rebuild()
ObjectOf.model_rebuild()


class ParameterDefinition(BaseModel):
    """A single API parameter (path, query, header, cookie or form field).

    Simple parameters carry ``style``/``explode``/``schema_node``; complex
    parameters carry ``content`` (mime type -> schema) instead.
    """

    model_config = {"frozen": True}

    name: str
    location: Location
    style: StyleKind | None = None
    explode: bool = False
    schema_node: SchemaNode | None = None
    content: dict[str, SchemaNode | None] | None = None
    required: bool = False
    default: Any = None
    description: str = ""

    @model_validator(mode="before")
    @classmethod
    def _apply_style_defaults(cls, data: Any) -> Any:
        if not isinstance(data, dict) or data.get("content") is not None:
            return data
        data = dict(data)
        if data.get("style") is None and data.get("location") is not None:
            data["style"] = DEFAULT_STYLES[Location(data["location"])]
        if data.get("explode") is None:
            data["explode"] = data.get("style") == StyleKind.FORM
        return data

    @model_validator(mode="after")
    def _check_simple_or_complex(self) -> ParameterDefinition:
        if self.content is not None:
            if self.schema_node is not None:
                raise ValueError(f'Parameter "{self.name}" cannot have both "schema" and "content"')
            if len(self.content) != 1:
                raise ValueError(f'Parameter "{self.name}" must have exactly one "content" entry')
        elif self.schema_node is None:
            raise ValueError(f'Parameter "{self.name}" must have either "schema" or "content"')
        return self

    @property
    def schema_(self) -> SchemaNode | None:
        """The schema that decoded values follow, for both simple and content parameters."""
        if self.content is not None:
            return next(iter(self.content.values()))
        return self.schema_node

    @property
    def mime_type(self) -> str | None:
        if self.content is None:
            return None
        return next(iter(self.content))

    @property
    def default_value(self) -> Any:
        """The parameter's own default, else its schema's."""
        if self.default is not None:
            return self.default
        schema = self.schema_
        return schema.default if schema is not None else None


class Operation(BaseModel):
    """One API operation and the parameters it accepts."""

    method: str  # GET / POST / PUT / DELETE / PATCH
    path: str  # /pets/{petId}
    summary: str = ""
    parameters: list[ParameterDefinition] = []

    def parameter(self, name: str, location: str | None = None) -> ParameterDefinition | None:
        for param in self.parameters:
            if param.name == name and (location is None or param.location == location):
                return param
        return None
