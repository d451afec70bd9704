"""Command: show the merged extension configuration."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from exthost.commands._base import ExtCommand

if TYPE_CHECKING:
    from exthost.commands._context import AppContext


@click.command(
    "config",
    cls=ExtCommand,
    examples="""\
  exthost config
  exthost --json config""",
)
@click.pass_obj
def config_cmd(app: AppContext) -> None:
    """Show key bindings, editor command, and display toggles."""
    from exthost.config.models import KEY_LIST_FIELDS, TOGGLE_FIELDS
    from exthost.services.result import ServiceResult

    host = app.host
    cfg = host.config
    bindings = {name: [str(kb) for kb in getattr(cfg, name)] for name in KEY_LIST_FIELDS}
    app.emit(
        ServiceResult(
            ok=True,
            op="config",
            data={
                "bindings": bindings,
                "editor_command": cfg.editor_command,
                "toggles": {name: getattr(cfg, name) for name in TOGGLE_FIELDS},
            },
            warnings=list(host.config_warnings),
        )
    )
