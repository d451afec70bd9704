"""Command group: history navigation, push, and delete."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from exthost.commands._base import ExtGroup

if TYPE_CHECKING:
    from exthost.commands._context import AppContext

_NAVIGATION = {
    "prev": "history_prev",
    "next": "history_next",
    "first": "history_first",
    "last": "history_last",
    "prev-page": "history_prev_page",
    "next-page": "history_next_page",
}


@click.group(
    cls=ExtGroup,
    examples="""\
  exthost history prev
  exthost history prev-page
  exthost history push "run the tests"
  exthost history delete "run the tests" --index 3""",
)
def history() -> None:
    """Navigate and edit prompt history kept by extension scripts."""


def _navigation_command(name: str, op: str) -> click.Command:
    @click.pass_obj
    def _run(app: AppContext) -> None:
        from exthost.services.result import ServiceResult

        text = getattr(app.host, op)()
        app.emit(ServiceResult.success(op, text=text))

    _run.__doc__ = f"Show the {name.replace('-', ' ')} history entry."
    return click.command(name)(_run)


for _name, _op in _NAVIGATION.items():
    history.add_command(_navigation_command(_name, _op))


@history.command()
@click.argument("text")
@click.pass_obj
def push(app: AppContext, text: str) -> None:
    """Record TEXT as a new history entry."""
    from exthost.services.result import ServiceResult

    app.host.history_push(text)
    app.emit(ServiceResult.success("history_push", text=text))


@history.command()
@click.argument("text")
@click.option("--index", type=int, default=None, help="Position of the entry being deleted.")
@click.pass_obj
def delete(app: AppContext, text: str, index: int | None) -> None:
    """Delete TEXT from history and show the entry that replaces it."""
    from exthost.services.result import ServiceResult

    app.emit(ServiceResult.success("history_delete", text=app.host.history_delete(text, index)))
