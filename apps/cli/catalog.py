"""`labelsorcerer catalog ...` commands editing a JSON catalog store."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Annotated, Any, TypeVar

import typer
from pydantic import BaseModel, TypeAdapter

from core.catalog.store import CatalogStore
from core.labels.models import (
    DataSource,
    LabelFormat,
    LabelLayout,
    LayoutElement,
    LayoutVariable,
    WebhookConfig,
)
from core.utils.errors import CatalogLookupError

catalog_app = typer.Typer(
    help="Edit layouts, label formats, data sources and the webhook.", rich_markup_mode=None
)

_SAVERS: dict[str, tuple[type[BaseModel], Callable[[CatalogStore, Any], BaseModel]]] = {
    "layout": (LabelLayout, CatalogStore.save_layout),
    "label-format": (LabelFormat, CatalogStore.save_label_format),
    "data-source": (DataSource, CatalogStore.save_data_source),
}
_DELETERS: dict[str, Callable[[CatalogStore, int], bool]] = {
    "layout": CatalogStore.delete_layout,
    "label-format": CatalogStore.delete_label_format,
    "data-source": CatalogStore.delete_data_source,
}

StoreOption = Annotated[
    Path,
    typer.Option(
        "--store",
        dir_okay=False,
        file_okay=True,
        help="JSON catalog store. Created from the bundled sample catalog on first write.",
    ),
]
RecordFileOption = Annotated[
    Path,
    typer.Option("--file", exists=True, dir_okay=False, file_okay=True, help="JSON document."),
]

T = TypeVar("T")

_VARIABLES = TypeAdapter(list[LayoutVariable])
_ELEMENTS = TypeAdapter(list[LayoutElement])


@catalog_app.command("list")
def list_command(store: StoreOption) -> None:
    """Print record ids and names of every collection."""

    catalog = _run(lambda: CatalogStore(store).load())
    webhook = catalog.post_print_webhook
    typer.echo(
        _dump_json(
            {
                "layouts": [_summary(item) for item in catalog.layouts],
                "labelFormats": [_summary(item) for item in catalog.label_formats],
                "dataSources": [_summary(item) for item in catalog.data_sources],
                "postPrintWebhook": _to_json(webhook) if webhook is not None else None,
            }
        )
    )


@catalog_app.command("save")
def save_command(kind: str, file: RecordFileOption, store: StoreOption) -> None:
    """Create or replace a record; an id of 0 or none assigns the next id."""

    model, save = _SAVERS[_check_kind(kind)]
    raw = _run(lambda: _read_json(file))
    saved = _run(lambda: save(CatalogStore(store), model.model_validate(raw)))
    typer.echo(_dump_json(_to_json(saved)))


@catalog_app.command("delete")
def delete_command(kind: str, record_id: int, store: StoreOption) -> None:
    """Delete a record by id."""

    delete = _DELETERS[_check_kind(kind)]
    if not _run(lambda: delete(CatalogStore(store), record_id)):
        typer.echo(f"ERROR: {kind} {record_id} not found")
        raise typer.Exit(code=2)
    typer.echo(f"INFO: deleted {kind} {record_id}")


@catalog_app.command("set-variables")
def set_variables_command(layout_id: int, file: RecordFileOption, store: StoreOption) -> None:
    """Replace the variable list of a layout with a JSON array."""

    catalog_store = CatalogStore(store)
    layout = _run(
        lambda: catalog_store.update_layout_variables(
            layout_id, _VARIABLES.validate_python(_read_json(file))
        )
    )
    typer.echo(_dump_json(_to_json(layout)))


@catalog_app.command("set-elements")
def set_elements_command(layout_id: int, file: RecordFileOption, store: StoreOption) -> None:
    """Replace the element list of a layout with a JSON array."""

    catalog_store = CatalogStore(store)
    layout = _run(
        lambda: catalog_store.update_layout_elements(
            layout_id, _ELEMENTS.validate_python(_read_json(file))
        )
    )
    typer.echo(_dump_json(_to_json(layout)))


@catalog_app.command("set-webhook")
def set_webhook_command(
    store: StoreOption,
    url: Annotated[str, typer.Option("--url")],
    method: Annotated[str, typer.Option("--method")] = "POST",
    body: Annotated[str | None, typer.Option("--body")] = None,
) -> None:
    """Configure the post-print webhook."""

    config = _run(lambda: WebhookConfig(url=url, method=method, body=body))
    _run(lambda: CatalogStore(store).save_webhook_config(config))
    typer.echo(_dump_json(_to_json(config)))


@catalog_app.command("clear-webhook")
def clear_webhook_command(store: StoreOption) -> None:
    """Remove the post-print webhook."""

    _run(lambda: CatalogStore(store).save_webhook_config(None))
    typer.echo("INFO: webhook cleared")


def _run(action: Callable[[], T]) -> T:
    try:
        return action()
    except CatalogLookupError as exc:
        typer.echo(f"ERROR: {exc}")
        raise typer.Exit(code=2) from exc
    except ValueError as exc:
        typer.echo(f"ERROR: {exc}")
        raise typer.Exit(code=1) from exc


def _check_kind(kind: str) -> str:
    if kind not in _SAVERS:
        typer.echo(f"ERROR: invalid kind '{kind}', expected one of: {', '.join(_SAVERS)}")
        raise typer.Exit(code=1)
    return kind


def _read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Record file must be valid JSON: {path}") from exc


def _summary(record: LabelLayout | LabelFormat | DataSource) -> dict[str, Any]:
    return {"id": record.id, "name": record.name}


def _to_json(model: BaseModel) -> dict[str, Any]:
    return model.model_dump(mode="json", by_alias=True)


def _dump_json(payload: dict[str, Any]) -> str:
    return json.dumps(payload, ensure_ascii=False, indent=2)
