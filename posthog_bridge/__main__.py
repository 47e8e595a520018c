import json
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from importlib.metadata import version
from pathlib import Path
from typing import Annotated, Any, Optional

import rich
import typer
from rich.console import Console

from posthog_bridge.client import PostHogClientWrapper
from posthog_bridge.commands import CommandResult, invoke
from posthog_bridge.config import PostHogConfig
from posthog_bridge.exceptions import ConfigurationError

app = typer.Typer(
    name="PostHog Bridge CLI",
    add_completion=True,
    pretty_exceptions_show_locals=False,
)

ConfigOption = Annotated[
    Optional[Path],
    typer.Option(
        "--config",
        "-c",
        help="Host config file (YAML or JSON). "
        "Defaults to the POSTHOG_* environment variables.",
        exists=True,
        dir_okay=False,
    ),
]

PropertyOption = Annotated[
    Optional[list[str]],
    typer.Option(
        "--property",
        "-p",
        help="Event property as KEY=VALUE. "
        "VALUE is parsed as JSON if possible.",
    ),
]


def version_callback(value: bool) -> None:
    if value:
        typer.echo(f"PostHog Bridge: {version('posthog-bridge')}")
        raise typer.Exit


@app.callback()
def main(
    _: bool = typer.Option(
        None,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
):
    return


@app.command()
def capture(
    event: Annotated[str, typer.Argument(help="Event name.")],
    properties: PropertyOption = None,
    distinct_id: Annotated[
        Optional[str], typer.Option(help="Distinct id to capture under.")
    ] = None,
    groups: Annotated[
        Optional[list[str]],
        typer.Option("--group", "-g", help="Group as TYPE=ID."),
    ] = None,
    timestamp: Annotated[
        Optional[datetime], typer.Option(help="Explicit event time.")
    ] = None,
    anonymous: Annotated[
        bool, typer.Option(help="Capture without a distinct id.")
    ] = False,
    config: ConfigOption = None,
):
    """Capture a single event."""
    payload = {
        "event": event,
        "properties": _parse_pairs(properties, parse_json=True) or None,
        "distinctId": distinct_id,
        "groups": _parse_pairs(groups) or None,
        "timestamp": timestamp,
        "anonymous": anonymous,
    }
    with _client(config) as client:
        _report(invoke(client, "capture", payload))


@app.command()
def identify(
    distinct_id: Annotated[str, typer.Argument(help="Distinct id.")],
    properties: PropertyOption = None,
    config: ConfigOption = None,
):
    """Identify a user, optionally sending person properties."""
    payload = {
        "distinctId": distinct_id,
        "properties": _parse_pairs(properties, parse_json=True) or None,
    }
    with _client(config) as client:
        _report(invoke(client, "identify", payload))


@app.command()
def alias(
    distinct_id: Annotated[str, typer.Argument(help="Current distinct id.")],
    alias: Annotated[str, typer.Argument(help="Alias to link.")],
    config: ConfigOption = None,
):
    """Link an alias to a distinct id."""
    with _client(config) as client:
        _report(
            invoke(client, "alias", {"distinctId": distinct_id, "alias": alias})
        )


@app.command(name="device-id")
def device_id(config: ConfigOption = None):
    """Print the device id of this machine."""
    with _client(config) as client:
        _report(invoke(client, "get_device_id"))


@app.command(name="config")
def show_config(config: ConfigOption = None):
    """Print the resolved configuration with the API key masked."""
    with _client(config) as client:
        _report(invoke(client, "get_config"))


@contextmanager
def _client(config: Optional[Path]) -> Iterator[PostHogClientWrapper]:
    try:
        cfg = (
            PostHogConfig.from_file(config)
            if config is not None
            else PostHogConfig.from_environ()
        )
        client = PostHogClientWrapper(cfg, lazy=True)
    except ConfigurationError as e:
        rich.print(f"[red]{e}[/red]")
        raise typer.Exit(1) from e
    with client:
        yield client


def _report(result: CommandResult) -> None:
    console = Console()
    if not result.ok:
        console.print(f"[red]{result.error_kind}:[/red] {result.error}")
        raise typer.Exit(1)
    if result.value is None:
        console.print("[green]OK[/green]")
    else:
        console.print_json(json.dumps(result.value))


def _parse_pairs(
    pairs: Optional[list[str]], *, parse_json: bool = False
) -> dict[str, Any]:
    output: dict[str, Any] = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"Expected KEY=VALUE, got '{pair}'.")
        if parse_json:
            try:
                output[key] = json.loads(value)
            except json.JSONDecodeError:
                output[key] = value
        else:
            output[key] = value
    return output


if __name__ == "__main__":
    app()
