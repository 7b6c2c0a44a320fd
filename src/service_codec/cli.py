"""CLI entry point for service-codec."""

import json
import logging
from pathlib import Path

import click
import requests
import yaml
from pydantic import ValidationError
from requests.structures import CaseInsensitiveDict

from service_codec.command import Command
from service_codec.description.base import Description
from service_codec.description.loader import load_description
from service_codec.deserializer import Deserializer
from service_codec.errors import ServiceCodecError
from service_codec.serializer import Serializer


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _load(description_path: Path) -> Description:
    try:
        return load_description(description_path)
    except (ServiceCodecError, ValidationError, yaml.YAMLError) as exc:
        raise click.ClickException(f"Cannot load {description_path}: {exc}") from exc


def _parse_params(pairs: tuple[str, ...]) -> dict:
    """Turn ``key=value`` pairs into a dict; values are read as YAML."""
    params = {}
    for pair in pairs:
        key, sep, raw = pair.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"Expected key=value, got '{pair}'", param_hint="--param")
        params[key] = yaml.safe_load(raw) if raw else ""
    return params


def _parse_headers(lines: tuple[str, ...]) -> CaseInsensitiveDict:
    headers = CaseInsensitiveDict()
    for line in lines:
        name, sep, value = line.partition(":")
        if not sep:
            raise click.BadParameter(f"Expected 'Name: value', got '{line}'", param_hint="--header")
        headers[name.strip()] = value.strip()
    return headers


def _format_request(prepared: requests.PreparedRequest) -> str:
    lines = [f"{prepared.method} {prepared.url}"]
    lines.extend(f"{name}: {value}" for name, value in prepared.headers.items())
    body = prepared.body
    if isinstance(body, bytes):
        body = body.decode("utf-8", errors="replace")
    if body:
        lines.extend(["", body])
    return "\n".join(lines)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Log debug output.")
@click.option("-q", "--quiet", is_flag=True, help="Only log warnings and errors.")
def main(verbose: bool, quiet: bool):
    """service-codec: turn service description operations into HTTP requests and back."""
    configure_logging(verbose=verbose, quiet=quiet)


@main.command()
@click.argument("description_path", type=click.Path(exists=True, path_type=Path))
def operations(description_path: Path):
    """List the operations of a service description."""
    description = _load(description_path)
    for name, operation in description.operations.items():
        click.echo(f"{name}\t{operation.http_method}\t{operation.uri or ''}")


@main.command()
@click.argument("description_path", type=click.Path(exists=True, path_type=Path))
@click.argument("operation")
@click.option("-p", "--param", "params", multiple=True, help="Parameter value as key=value (repeatable).")
def serialize(description_path: Path, operation: str, params: tuple[str, ...]):
    """Print the HTTP request an operation call would send."""
    description = _load(description_path)
    command = Command(operation, _parse_params(params))
    try:
        request = Serializer(description).serialize(command)
    except ServiceCodecError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(_format_request(request.prepare()))


@main.command()
@click.argument("description_path", type=click.Path(exists=True, path_type=Path))
@click.argument("operation")
@click.option("--body", "body_path", type=click.Path(exists=True, path_type=Path), help="File holding the response body.")
@click.option("--status", default=200, show_default=True, help="Response status code.")
@click.option("--reason", default="OK", show_default=True, help="Response reason phrase.")
@click.option("-H", "--header", "headers", multiple=True, help="Response header as 'Name: value' (repeatable).")
def deserialize(
    description_path: Path,
    operation: str,
    body_path: Path | None,
    status: int,
    reason: str,
    headers: tuple[str, ...],
):
    """Print the values an operation would read from a canned response."""
    description = _load(description_path)

    response = requests.Response()
    response.status_code = status
    response.reason = reason
    response.headers = _parse_headers(headers)
    response._content = body_path.read_bytes() if body_path else b""
    response.encoding = "utf-8"

    try:
        result = Deserializer(description).deserialize(Command(operation), response)
    except ServiceCodecError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(json.dumps(result, indent=2, ensure_ascii=False, default=str))
