"""Command line interface."""
import importlib
import json
import logging
from pathlib import Path
from typing import Any

import click
from colorama import Fore, Style, init

from typed_openapi import __version__
from typed_openapi.config import DateEncodingFormat, EncoderConfig
from typed_openapi.document.models import ParameterLocation
from typed_openapi.errors import TypedOpenAPIError
from typed_openapi.exporter.json_exporter import JsonExporter
from typed_openapi.introspection import TraversalContext
from typed_openapi.naming import KeyEncodingStrategy, to_camel_case, to_snake_case
from typed_openapi.schema.values import from_python


def print_header(title: str):
    """Print a section header."""
    click.echo(f"{Fore.CYAN}{'━' * 45}")
    click.echo(f"{Fore.CYAN}{title}")
    click.echo(f"{Fore.CYAN}{'━' * 45}{Style.RESET_ALL}")


def load_type(target: str) -> Any:
    """
    Import a type from a "package.module:Qualified.Name" string

    Raises:
        click.BadParameter: If the module or attribute cannot be found
    """
    module_name, separator, qualname = target.partition(":")
    if not separator or not qualname:
        raise click.BadParameter(f"expected MODULE:TYPE, got {target!r}")
    try:
        obj = importlib.import_module(module_name)
        for part in qualname.split("."):
            obj = getattr(obj, part)
    except (ImportError, AttributeError) as e:
        raise click.BadParameter(f"cannot load {target!r}: {e}") from e
    return obj


def build_config(key_strategy: str, date_format: str) -> EncoderConfig:
    return EncoderConfig(
        key_strategy=KeyEncodingStrategy.from_name(key_strategy),
        date_format=DateEncodingFormat(date_format),
    )


config_options = [
    click.option(
        "--key-strategy",
        type=click.Choice(["snake_case", "camel_case", "identity"]),
        default="snake_case",
        show_default=True,
        help="Field name convention on the wire",
    ),
    click.option(
        "--date-format",
        type=click.Choice([fmt.value for fmt in DateEncodingFormat]),
        default=DateEncodingFormat.ISO8601.value,
        show_default=True,
        help="How datetime values are written",
    ),
]


def with_config_options(func):
    for option in reversed(config_options):
        func = option(func)
    return func


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose):
    """Derive OpenAPI schemas and parameter encodings from Python types."""
    init(autoreset=True)
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@click.argument("targets", nargs=-1, required=True)
@click.option("--output", "-o", type=click.Path(dir_okay=False, path_type=Path), help="Write JSON document here")
@with_config_options
def schema(targets, output, key_strategy, date_format):
    """Describe MODULE:TYPE targets as component schemas."""
    exporter = JsonExporter(build_config(key_strategy, date_format))
    try:
        exporter.add_schemas([load_type(target) for target in targets])
        if output:
            exporter.export(output)
            click.echo(f"{Fore.GREEN}✅ Exported {len(exporter.registry.schemas)} schemas to {output}")
            return
        click.echo(JsonExporter.dumps(exporter.to_dict()))
    except TypedOpenAPIError as e:
        click.echo(f"{Fore.RED}Error: {e}", err=True)
        raise SystemExit(1)


@cli.command()
@click.argument("target")
@click.option(
    "--in",
    "location",
    type=click.Choice([location.value for location in ParameterLocation]),
    default=ParameterLocation.QUERY.value,
    show_default=True,
    help="Parameter location",
)
@click.option("--value", "value_json", help="JSON object to project instead of describing the type")
@with_config_options
def parameters(target, location, value_json, key_strategy, date_format):
    """Describe or project the fields of MODULE:TYPE as parameters."""
    declared_type = load_type(target)
    config = build_config(key_strategy, date_format)
    exporter = JsonExporter(config)
    location = ParameterLocation(location)

    try:
        if value_json is None:
            exporter.add_parameters(declared_type, location)
            click.echo(JsonExporter.dumps(exporter.to_dict()))
            return

        try:
            raw = json.loads(value_json)
        except json.JSONDecodeError as e:
            raise click.BadParameter(f"invalid JSON: {e}", param_hint="--value") from e

        projector = exporter.projector
        context = TraversalContext(resolver=projector.resolver, config=config)
        value = projector.resolver.resolve(declared_type).decode(from_python(raw), context)

        print_header(f"{location.value} parameters of {target}")
        for entry in projector.project(value, location, declared_type):
            click.echo(f"{Fore.WHITE}{entry.name}{Fore.CYAN}={Style.RESET_ALL}{entry.value}")
    except TypedOpenAPIError as e:
        click.echo(f"{Fore.RED}Error: {e}", err=True)
        raise SystemExit(1)


@cli.command()
@click.argument("identifier")
@click.option("--to", "target_case", type=click.Choice(["snake", "camel"]), default="snake", show_default=True)
@click.option("--separator", default="_", show_default=True)
def case(identifier, target_case, separator):
    """Convert IDENTIFIER between camelCase and snake_case."""
    if target_case == "snake":
        click.echo(to_snake_case(identifier, separator))
    else:
        click.echo(to_camel_case(identifier, separator))
