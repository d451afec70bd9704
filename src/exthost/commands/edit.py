"""Command: run external edit through the extension scripts."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from exthost.commands._base import ExtCommand

if TYPE_CHECKING:
    from exthost.commands._context import AppContext


@click.command(
    cls=ExtCommand,
    examples="""\
  exthost edit --builtin "draft prompt"
  echo "draft prompt" | exthost edit""",
)
@click.argument("text", required=False)
@click.option(
    "--builtin",
    is_flag=True,
    help="Open the configured editor when no script handles the edit.",
)
@click.pass_obj
def edit(app: AppContext, text: str | None, builtin: bool) -> None:
    """Hand TEXT (or stdin) to the first script that handles external_edit."""
    from exthost.host.errors import ExternalEditorError
    from exthost.services.result import ServiceResult

    if text is None:
        text = click.get_text_stream("stdin").read()

    try:
        edited = app.host.edit_text(text) if builtin else app.host.external_edit(text)
    except ExternalEditorError as exc:
        app.emit(ServiceResult.failure("edit", "EXTERNAL_EDIT_FAILED", str(exc)))
        return
    app.emit(ServiceResult.success("edit", text=edited, handled=edited is not None))
