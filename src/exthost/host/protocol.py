"""The JSON request/response protocol spoken with each extension script.

Request: one JSON object on a single line of stdin::

    {"action": "...", "log_path": "...", ...caller fields}

Response: the last ``{...}``-shaped line of stdout::

    {"status": "ok" | "skip" | "error", "text"?, "payload"?, "message"?}

Scripts may print diagnostics before the response line; only the last
object-looking line counts.

INVARIANT: every call yields exactly one reply or raises exactly one
:class:`~exthost.host.errors.ExtensionHostError`.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ValidationError

from exthost.config.logging import script_call_context
from exthost.host.diagnostics import DiagnosticsLog
from exthost.host.errors import (
    ExtensionHostError,
    InvalidJsonError,
    MissingStatusError,
    ScriptError,
)
from exthost.host.transport import Transport, TransportOutput

logger = logging.getLogger(__name__)

DEFAULT_ERROR_MESSAGE = "extension returned error"


@dataclass(frozen=True)
class ReplyOk:
    """The script handled the action."""

    text: str | None = None
    payload: Any = None


@dataclass(frozen=True)
class ReplySkip:
    """The script declined; try the next one or fall back to built-in behavior."""


ExtensionReply = ReplyOk | ReplySkip


class RawResponse(BaseModel):
    status: str | None = None
    text: str | None = None
    payload: Any = None
    message: str | None = None


def build_request(action: str, payload: Any, log_path: Path) -> dict[str, Any]:
    """Flatten *payload* into the request next to ``action`` and ``log_path``.

    Non-object payloads are nested under a ``payload`` key instead.
    """
    request: dict[str, Any] = {"action": action, "log_path": str(log_path)}
    if isinstance(payload, dict):
        request.update(payload)
    else:
        request["payload"] = payload
    return request


def extract_last_json_line(output: str) -> str | None:
    """Return the last line of *output* shaped like ``{...}``, trimmed."""
    for line in reversed(output.splitlines()):
        trimmed = line.strip()
        if trimmed.startswith("{") and trimmed.endswith("}"):
            return trimmed
    return None


def parse_response(script: Path, output: TransportOutput) -> ExtensionReply:
    """Classify a script's captured output into a reply, or raise."""
    line = extract_last_json_line(output.stdout)
    if line is None:
        line = output.stdout.strip()
    if not line:
        raise ScriptError(
            script,
            f"empty response (exit status {output.returncode}, stderr: {output.stderr.strip()})",
        )

    try:
        data = json.loads(line)
    except json.JSONDecodeError as exc:
        raise InvalidJsonError(script, line, exc) from exc
    if not isinstance(data, dict):
        raise MissingStatusError(script, line)
    try:
        raw = RawResponse.model_validate(data)
    except ValidationError as exc:
        raise InvalidJsonError(script, line, exc) from exc

    if raw.status == "ok":
        return ReplyOk(text=raw.text, payload=raw.payload)
    if raw.status == "skip":
        return ReplySkip()
    if raw.status == "error":
        raise ScriptError(script, raw.message or DEFAULT_ERROR_MESSAGE)
    raise MissingStatusError(script, line)


def text_field(payload: Any, key: str = "text") -> str | None:
    """Read a string field from an object payload."""
    if isinstance(payload, dict):
        value = payload.get(key)
        if isinstance(value, str):
            return value
    return None


def reply_text(reply: ExtensionReply | None) -> str | None:
    """Prefer a reply's direct text, falling back to ``payload.text``."""
    if not isinstance(reply, ReplyOk):
        return None
    if reply.text is not None:
        return reply.text
    return text_field(reply.payload)


class ProtocolRunner:
    """Runs protocol calls against scripts through a :class:`Transport`."""

    def __init__(
        self,
        transport: Transport,
        *,
        log_path: Path,
        diagnostics: DiagnosticsLog | None = None,
    ) -> None:
        self.transport = transport
        self.log_path = log_path
        self._diag = diagnostics or DiagnosticsLog(log_path)

    def run(self, script: Path, action: str, payload: Any) -> ExtensionReply:
        """One call against one script.

        Raises:
            ExtensionHostError: any of the five failure kinds.
        """
        request = json.dumps(build_request(action, payload, self.log_path))
        with script_call_context(script, action):
            logger.debug("Sending request (%d bytes)", len(request))
            output = self.transport.send(script, request)
            if output.stderr.strip():
                logger.debug("Script stderr: %s", output.stderr.strip())
            return parse_response(script, output)

    def invoke_first(
        self,
        scripts: Sequence[Path],
        action: str,
        payload: Any,
    ) -> ExtensionReply | None:
        """Try *scripts* in order until one does not skip.

        Returns None when there are no scripts or every script skipped. An
        error stops the chain immediately; later scripts are not consulted.
        """
        if not scripts:
            self._diag.event(f"No extensions to handle action {action}; skipping")
            return None

        for script in scripts:
            self._diag.event(f"Calling script {str(script)!r} action {action}")
            try:
                reply = self.run(script, action, payload)
            except ExtensionHostError as err:
                self._diag.event(f"Script {str(script)!r} failed: {err}")
                raise
            if isinstance(reply, ReplySkip):
                self._diag.event(f"Script {str(script)!r} returned skip")
                continue
            self._diag.event(f"Script {str(script)!r} returned ok")
            return reply
        return None

    def broadcast(self, scripts: Sequence[Path], action: str, payload: Any) -> int:
        """Deliver *action* to every script, ignoring failures one by one.

        Returns the number of scripts that answered without error.
        """
        delivered = 0
        for script in scripts:
            try:
                self.run(script, action, payload)
            except ExtensionHostError as err:
                logger.debug("Broadcast %s to %s failed: %s", action, script, err)
                self._diag.event(f"Script {str(script)!r} failed {action}: {err}")
                continue
            delivered += 1
        return delivered
