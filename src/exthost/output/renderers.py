"""Operation-specific Rich renderers for ServiceResult.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

import json
from pathlib import PurePath
from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from exthost.output.console import create_console, get_output

if TYPE_CHECKING:
    from rich.console import Console

    from exthost.services.result import ServiceResult


def render_result(result: ServiceResult) -> str:
    """Render a ServiceResult to a string via Rich."""
    console = create_console()
    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console)
        for warning in result.warnings:
            console.print(Text("WARNING", style="ext.warning"), warning)
    else:
        _render_error(result, console)
    return get_output(console).rstrip("\n")


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    console.print(Text("OK", style="ext.ok"), Text(f"  {result.op}", style="ext.op"))


def _field(console: Console, key: str, value: Any) -> None:
    if isinstance(value, (dict, list)):
        value = json.dumps(value, separators=(",", ":"))
    style = "ext.path" if key.endswith("path") else ""
    console.print(Text.assemble((f"  {key}: ", "ext.key"), (str(value), style)))


# ── Renderers ─────────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    console.print(Text("ERROR", style="ext.error"), Text(f"  {result.op}", style="ext.op"), " — ", msg)


def _render_scripts(result: ServiceResult, console: Console) -> None:
    _status_line(console, result)
    scripts: list[str] = result.data.get("scripts", [])
    if not scripts:
        console.print(Text("  no extension scripts found", style="ext.none"))
        return
    table = Table(show_header=True, pad_edge=False, expand=False)
    table.add_column("#", justify="right")
    table.add_column("Script", style="ext.text")
    table.add_column("Path", style="ext.path")
    for position, path in enumerate(scripts, start=1):
        table.add_row(str(position), PurePath(path).name, path)
    console.print(table)


def _render_config(result: ServiceResult, console: Console) -> None:
    _status_line(console, result)
    table = Table(show_header=True, pad_edge=False, expand=False)
    table.add_column("Setting")
    table.add_column("Value", style="ext.binding")
    for name, value in result.data.get("bindings", {}).items():
        table.add_row(name, ", ".join(value) or "-")
    editor = result.data.get("editor_command")
    table.add_row("editor_command", " ".join(editor) if editor else "-")
    for name, value in result.data.get("toggles", {}).items():
        table.add_row(name, "-" if value is None else str(value).lower())
    console.print(table)


def _render_text(result: ServiceResult, console: Console) -> None:
    """Single text result: the edited text or a history entry."""
    _status_line(console, result)
    text = result.data.get("text")
    if text is None:
        console.print(Text("  (no entry)", style="ext.none"))
    else:
        console.print(Text(text, style="ext.text"))


def _render_generic(result: ServiceResult, console: Console) -> None:
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)


_OP_RENDERERS: dict[str, Any] = {
    "scripts": _render_scripts,
    "config": _render_config,
    "edit": _render_text,
    "history_prev": _render_text,
    "history_next": _render_text,
    "history_first": _render_text,
    "history_last": _render_text,
    "history_prev_page": _render_text,
    "history_next_page": _render_text,
    "history_delete": _render_text,
}
