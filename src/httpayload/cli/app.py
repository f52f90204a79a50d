"""
Root Typer application for the httpayload CLI.

``httpayload plan module:Record`` shows which fields of a record type
take part in each namespace, with their keys, conversion categories and
attributes. Plans are built exactly as the engine builds them, so a
record type that would fail at startup fails here too.
"""

from __future__ import annotations

import importlib
import json
from enum import Enum
from typing import Any

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from httpayload.core.errors import PayloadError
from httpayload.core.logging import configure_logging
from httpayload.core.settings import get_settings
from httpayload.http.body import body_fields
from httpayload.transcode.plan import build_plan, resolve_field_types
from httpayload.transcode.tags import JSON, NAMESPACES

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    name="httpayload",
    help="httpayload: inspect how records map onto HTTP request and response parts.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


class OutputFormat(str, Enum):
    table = "table"
    json = "json"


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from importlib.metadata import PackageNotFoundError
        from importlib.metadata import version as pkg_version

        from httpayload import __version__

        try:
            v = pkg_version("httpayload")
        except PackageNotFoundError:
            v = __version__
        typer.echo(f"httpayload {v}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """httpayload CLI: inspect field plans of record types."""
    settings = get_settings()
    configure_logging(level=settings.log_level, json_format=settings.log_format == "json")


# ── Commands ─────────────────────────────────────────────────────────────


@app.command("plan")
def plan(
    target: str = typer.Argument(..., help="Record type as module:Class"),
    namespace: list[str] | None = typer.Option(
        None, "--namespace", "-n", help="Namespace to show (repeatable). Default: all."
    ),
    output: OutputFormat = typer.Option(OutputFormat.table, "--format", "-f"),
) -> None:
    """Show the field plan of a record type per namespace."""
    record_type = load_record(target)
    namespaces = namespace or list(NAMESPACES)
    unknown = [ns for ns in namespaces if ns not in NAMESPACES]
    if unknown:
        err_console.print(
            f"[bold red]Unknown namespace:[/bold red] {', '.join(unknown)} "
            f"(expected one of {', '.join(NAMESPACES)})"
        )
        raise typer.Exit(code=1)

    try:
        plans = [_plan_dict(record_type, ns) for ns in namespaces]
    except PayloadError as e:
        err_console.print(f"[bold red]Error[/bold red] ({e.category.value}): {escape(str(e))}")
        raise typer.Exit(code=1)

    if output is OutputFormat.json:
        typer.echo(json.dumps(plans, indent=2))
        return

    for entry in plans:
        _print_plan(entry)


def load_record(target: str) -> type:
    """Import ``module:Class`` and return the class."""
    module_name, sep, attr = target.partition(":")
    if not sep or not module_name or not attr:
        err_console.print(f"[bold red]Invalid target:[/bold red] {target!r} (expected module:Class)")
        raise typer.Exit(code=1)
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        err_console.print(f"[bold red]Cannot import[/bold red] {module_name!r}: {escape(str(e))}")
        raise typer.Exit(code=1)
    obj: Any = module
    for part in attr.split("."):
        obj = getattr(obj, part, None)
        if obj is None:
            err_console.print(f"[bold red]No attribute[/bold red] {attr!r} in {module_name!r}")
            raise typer.Exit(code=1)
    return obj


# ── Private helpers ──────────────────────────────────────────────────────


def _plan_dict(record_type: type, namespace: str) -> dict[str, Any]:
    if namespace != JSON:
        return build_plan(record_type, namespace).to_dict()
    # The body is a pydantic document, not a text plan.
    hints = resolve_field_types(record_type)
    return {
        "record": record_type.__qualname__,
        "namespace": JSON,
        "fields": [
            {
                "name": f.name,
                "key": f.key,
                "category": "document",
                "element": None,
                "type": _annotation_name(hints[f.name]),
                "attributes": {"omitempty": "true"} if f.omitempty else {},
            }
            for f in body_fields(record_type)
        ],
    }


def _annotation_name(annotation: Any) -> str:
    if isinstance(annotation, type):
        return annotation.__qualname__
    return repr(annotation).replace("typing.", "")


def _print_plan(entry: dict[str, Any]) -> None:
    title = f"{entry['record']} ({entry['namespace']})"
    if not entry["fields"]:
        console.print(f"[dim]{title}: no fields.[/dim]")
        return
    table = Table(title=title, show_lines=False, pad_edge=False)
    for col in ("field", "key", "category", "type", "attributes"):
        table.add_column(col, overflow="fold")
    for f in entry["fields"]:
        attributes = ", ".join(f"{k}={v}" for k, v in f["attributes"].items())
        table.add_row(*(escape(cell) for cell in (f["name"], f["key"], f["category"], f["type"], attributes)))
    console.print(table)


if __name__ == "__main__":
    app()
