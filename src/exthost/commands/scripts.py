"""Command: list discovered extension scripts."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from exthost.commands._base import ExtCommand

if TYPE_CHECKING:
    from exthost.commands._context import AppContext


@click.command(
    cls=ExtCommand,
    examples="""\
  exthost scripts
  exthost --extension-dir ~/my-extensions scripts
  exthost --json scripts""",
)
@click.pass_obj
def scripts(app: AppContext) -> None:
    """List extension scripts in the order the fallback chain tries them."""
    from exthost.host.registry import discover_scripts
    from exthost.services.result import ServiceResult

    found = discover_scripts(
        extension_dir=app.settings.extension_dir,
        suffix=app.settings.script_suffix,
    )
    app.emit(ServiceResult.success("scripts", scripts=[str(p) for p in found], count=len(found)))
