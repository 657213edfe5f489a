"""CLI entry point for openapi-params."""

import base64
import json
import logging
from datetime import date
from pathlib import Path

import click

from openapi_params.config import DecoderSettings
from openapi_params.decoder.parameter import decode_required
from openapi_params.errors import ParameterError
from openapi_params.parser.base import Location, Operation
from openapi_params.parser.swagger import find_operation, parse_openapi


def _load(doc_path: Path, settings: DecoderSettings) -> list[Operation]:
    try:
        return parse_openapi(doc_path, max_depth=settings.max_depth)
    except ParameterError as e:
        raise click.ClickException(f"{doc_path}: {e.message}") from e


def _to_json(value):
    if isinstance(value, bytes):
        return base64.b64encode(value).decode("ascii")
    if isinstance(value, date):
        return value.isoformat()
    raise TypeError(f"{type(value).__name__} is not JSON serializable")


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Log debug output to stderr.")
def main(verbose: bool):
    """OpenAPI Params: decode raw parameter values using an API document."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@main.command()
@click.argument("doc_path", type=click.Path(exists=True, path_type=Path))
def params(doc_path: Path):
    """List the parameters of every operation in an API document."""
    operations = _load(doc_path, DecoderSettings.from_env())
    click.echo(f"Found {len(operations)} operations.")

    for operation in operations:
        click.echo(f"{operation.method} {operation.path}")
        for param in operation.parameters:
            schema = param.schema_
            schema_type = schema.type if schema is not None else "-"
            if param.content is not None:
                layout = f"content={param.mime_type}"
            else:
                layout = f"style={param.style} explode={str(param.explode).lower()}"
            required = " required" if param.required else ""
            click.echo(f"  {param.name} ({param.location}) {layout} type={schema_type}{required}")


@main.command()
@click.argument("doc_path", type=click.Path(exists=True, path_type=Path))
@click.argument("value", required=False)
@click.option("--method", default="GET", help="HTTP method of the operation.")
@click.option("--path", "op_path", required=True, help="Path template of the operation, e.g. /pets/{petId}.")
@click.option("--name", required=True, help="Parameter name.")
@click.option("--in", "location", default=None, type=click.Choice([loc.value for loc in Location]), help="Parameter location.")
@click.option("--max-depth", default=None, type=int, help="Maximum nesting depth (default: $OPENAPI_PARAMS_MAX_DEPTH or 32).")
def decode(doc_path: Path, value: str | None, method: str, op_path: str, name: str, location: str | None, max_depth: int | None):
    """Decode one raw VALUE (omit it to simulate an absent parameter)."""
    settings = DecoderSettings(max_depth=max_depth) if max_depth else DecoderSettings.from_env()
    operations = _load(doc_path, settings)

    operation = find_operation(operations, method, op_path)
    if operation is None:
        raise click.ClickException(f"No operation {method.upper()} {op_path} in {doc_path}")
    param = operation.parameter(name, location)
    if param is None:
        raise click.ClickException(f'No parameter "{name}" in {operation.method} {operation.path}')

    try:
        result = decode_required(param, value, settings)
    except ParameterError as e:
        click.echo(f"Error ({e.status}): {e.message}", err=True)
        raise SystemExit(1) from e

    click.echo(json.dumps(result, default=_to_json))
