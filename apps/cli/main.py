"""Typer CLI entrypoint for labelsorcerer."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated, Any

import typer

from apps.cli.catalog import catalog_app
from apps.cli.io import (
    OutputPaths,
    build_output_paths,
    existing_output_files,
    write_error_json_atomic,
    write_print_output_atomic,
)
from core.catalog.loader import load_catalog
from core.catalog.store import CatalogStore
from core.labels.models import Catalog
from core.mapping.evaluator import StaticCaptureSource, evaluate_mappings
from core.mapping.preview import build_preview_context
from core.mapping.url_pattern import find_matching_data_source
from core.orchestrator.pipeline import resolve_data_source, resolve_print_context, run_print
from core.utils.errors import CatalogLookupError

app = typer.Typer(help="Label Sorcerer CLI", rich_markup_mode=None)
app.add_typer(catalog_app, name="catalog")

CatalogOption = Annotated[
    Path | None,
    typer.Option(
        "--catalog",
        exists=True,
        dir_okay=False,
        file_okay=True,
        help="Catalog YAML seed or JSON store. Defaults to the bundled sample catalog.",
    ),
]
CapturesOption = Annotated[
    Path,
    typer.Option(
        "--captures",
        exists=True,
        dir_okay=False,
        file_okay=True,
        help="JSON object mapping variable keys to captured strings.",
    ),
]
DataSourceOption = Annotated[int | None, typer.Option("--data-source")]
UrlOption = Annotated[str | None, typer.Option("--url")]
LayoutOption = Annotated[int | None, typer.Option("--layout")]


@app.callback()
def cli_callback() -> None:
    """CLI root callback to keep subcommands explicit."""


@app.command("evaluate")
def evaluate_command(
    captures: CapturesOption,
    catalog: CatalogOption = None,
    data_source: DataSourceOption = None,
    url: UrlOption = None,
) -> None:
    """Resolve every mapping of a data source against captured strings."""

    try:
        catalog_model = _open_catalog(catalog)
        source = resolve_data_source(catalog_model, data_source_id=data_source, url=url)
        capture_source = StaticCaptureSource(_load_captures(captures))
    except CatalogLookupError as exc:
        typer.echo(f"ERROR: {exc}")
        raise typer.Exit(code=2) from exc
    except ValueError as exc:
        typer.echo(f"ERROR: {exc}")
        raise typer.Exit(code=1) from exc

    resolved = evaluate_mappings(source.variable_mappings, capture_source)
    items = [item.model_dump(mode="json", by_alias=True) for item in resolved]
    typer.echo(_dump_json({"resolved": items}))


@app.command("preview")
def preview_command(
    catalog: CatalogOption = None,
    data_source: DataSourceOption = None,
    url: UrlOption = None,
    layout: LayoutOption = None,
    captures: Annotated[
        Path | None, typer.Option("--captures", exists=True, dir_okay=False, file_okay=True)
    ] = None,
) -> None:
    """Show how a data source fills a layout's variables."""

    try:
        catalog_model = _open_catalog(catalog)
        context = resolve_print_context(
            catalog_model, data_source_id=data_source, url=url, layout_id=layout
        )
        live = None
        if captures is not None:
            resolved = evaluate_mappings(
                context.data_source.variable_mappings,
                StaticCaptureSource(_load_captures(captures)),
            )
            live = {item.key: item for item in resolved}
    except CatalogLookupError as exc:
        typer.echo(f"ERROR: {exc}")
        raise typer.Exit(code=2) from exc
    except ValueError as exc:
        typer.echo(f"ERROR: {exc}")
        raise typer.Exit(code=1) from exc

    preview = build_preview_context(context.layout, context.data_source, live)
    items = [item.model_dump(mode="json", by_alias=True) for item in preview]
    typer.echo(_dump_json({"variables": items}))


@app.command("print")
def print_command(
    captures: CapturesOption,
    catalog: CatalogOption = None,
    data_source: DataSourceOption = None,
    url: UrlOption = None,
    layout: LayoutOption = None,
    out_dir: Annotated[Path, typer.Option()] = Path("."),
    notify: Annotated[
        bool,
        typer.Option("--notify/--no-notify", help="Send the configured post-print webhook."),
    ] = True,
    no_overwrite: Annotated[
        bool, typer.Option("--no-overwrite", help="Fail when outputs already exist.")
    ] = False,
) -> None:
    """Build the label payload for one print action and write it to out_dir."""

    paths = build_output_paths(out_dir)
    existing = existing_output_files(paths)
    if existing and no_overwrite:
        typer.echo("ERROR: outputs already exist and --no-overwrite is enabled.")
        raise typer.Exit(code=1)
    if existing:
        names = ", ".join(path.name for path in existing)
        typer.echo(f"INFO: overwriting existing outputs: {names}")

    failure_stage = "load_catalog"
    try:
        catalog_model = _open_catalog(catalog)
        failure_stage = "resolve_context"
        context = resolve_print_context(
            catalog_model, data_source_id=data_source, url=url, layout_id=layout
        )
        failure_stage = "load_captures"
        capture_source = StaticCaptureSource(_load_captures(captures))
        failure_stage = "pipeline"
        result = run_print(
            context,
            capture_source,
            webhook=catalog_model.post_print_webhook if notify else None,
        )
        failure_stage = "write_output"
        write_print_output_atomic(paths, result)
    except CatalogLookupError as exc:
        typer.echo(f"ERROR: {exc}")
        _safe_write_error(paths, exc, failure_stage)
        raise typer.Exit(code=2) from exc
    except Exception as exc:  # noqa: BLE001
        typer.echo(f"ERROR: {type(exc).__name__}: {exc}")
        _safe_write_error(paths, exc, failure_stage)
        raise typer.Exit(code=1) from exc

    missing = [item.key for item in result.resolved if item.status == "missing"]
    if missing:
        typer.echo(f"WARNING(missing): unresolved variables: {', '.join(missing)}")
    if result.notification_status is not None:
        typer.echo(f"INFO(notify): webhook responded {result.notification_status}")
    typer.echo("INFO: success")


@app.command("match-url")
def match_url_command(url: str, catalog: CatalogOption = None) -> None:
    """Print the data source whose URL pattern matches url."""

    try:
        catalog_model = _open_catalog(catalog)
    except ValueError as exc:
        typer.echo(f"ERROR: {exc}")
        raise typer.Exit(code=1) from exc

    match = find_matching_data_source(url, catalog_model.data_sources)
    if match is None:
        typer.echo(f"ERROR: no data source matches {url}")
        raise typer.Exit(code=2)
    typer.echo(_dump_json({"id": match.id, "name": match.name, "urlPattern": match.url_pattern}))


def _open_catalog(path: Path | None) -> Catalog:
    if path is not None and path.suffix.lower() == ".json":
        return CatalogStore(path).load()
    return load_catalog(path)


def _load_captures(path: Path) -> dict[str, list[str | None]]:
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Captures file must be valid JSON: {path}") from exc
    if not isinstance(raw, dict):
        raise ValueError("Captures JSON must be an object")

    captures: dict[str, list[str | None]] = {}
    for key, value in raw.items():
        if isinstance(value, str) or value is None:
            captures[key] = [value]
        elif isinstance(value, list) and all(_is_capture(item) for item in value):
            captures[key] = list(value)
        else:
            raise ValueError(f"Captures for '{key}' must be a string or a list of strings")
    return captures


def _is_capture(value: object) -> bool:
    return value is None or isinstance(value, str)


def _safe_write_error(paths: OutputPaths, exc: Exception, stage: str) -> None:
    try:
        write_error_json_atomic(
            paths,
            error_type=type(exc).__name__,
            error_message=str(exc),
            stage=stage,
        )
    except Exception:  # noqa: BLE001
        pass


def _dump_json(payload: dict[str, Any]) -> str:
    return json.dumps(payload, ensure_ascii=False, indent=2)


def main() -> None:
    """Console script entrypoint."""

    app()


if __name__ == "__main__":
    main()
