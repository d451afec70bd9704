"""Command: send a notification event to every script."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from exthost.commands._base import ExtCommand

if TYPE_CHECKING:
    from exthost.commands._context import AppContext


@click.command(
    cls=ExtCommand,
    examples="""\
  exthost notify completion_end
  exthost notify line_added""",
)
@click.argument("event")
@click.pass_obj
def notify(app: AppContext, event: str) -> None:
    """Broadcast EVENT and wait for delivery before exiting.

    ``line_added`` is debounced, so it is delivered after the quiet period.
    """
    from exthost.services.result import ServiceResult

    host = app.host
    host.notify_event(event)
    host.notifications.wait()
    app.emit(ServiceResult.success("notify", event=event, scripts=len(host.scripts)))
