"""Command: raw fallback-chain call, for script authors."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import click

from exthost.commands._base import ExtCommand

if TYPE_CHECKING:
    from exthost.commands._context import AppContext


@click.command(
    cls=ExtCommand,
    examples="""\
  exthost call history_prev
  exthost call external_edit --payload '{"text": "hello"}'
  exthost --json call config""",
)
@click.argument("action")
@click.option("--payload", "payload_json", default="{}", help="JSON payload merged into the request.")
@click.pass_obj
def call(app: AppContext, action: str, payload_json: str) -> None:
    """Send ACTION through the fallback chain and print the classified reply."""
    from exthost.host.errors import ExtensionHostError
    from exthost.host.protocol import ReplyOk
    from exthost.services.result import ServiceResult

    try:
        payload = json.loads(payload_json)
    except json.JSONDecodeError as exc:
        raise click.BadParameter(str(exc), param_hint="--payload") from exc

    try:
        reply = app.host.invoke_first(action, payload)
    except ExtensionHostError as err:
        app.emit(
            ServiceResult.failure(
                "call",
                type(err).__name__,
                str(err),
                script=str(err.script),
            )
        )
        return

    if isinstance(reply, ReplyOk):
        data = {"action": action, "status": "ok", "text": reply.text, "payload": reply.payload}
    else:
        data = {"action": action, "status": "no_reply"}
    app.emit(ServiceResult(ok=True, op="call", data=data))
