"""ExtensionHost — the single entry point the UI talks to.

Construction runs discovery, loads the merged config, opens diagnostics,
and opportunistically seeds history. Afterwards the UI calls edit and history
methods synchronously and ``notify_event`` fire-and-forget. The host never
drives the UI.

Failure policy: external-edit failures surface as
:class:`~exthost.host.errors.ExternalEditorError`; history and notification
failures are logged and degrade to built-in behavior.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path
from types import TracebackType
from typing import Any

from exthost.config.models import ExtensionConfig
from exthost.config.settings import HostSettings
from exthost.host.config_merge import load_config
from exthost.host.diagnostics import DiagnosticsLog
from exthost.host.editor import launch_editor
from exthost.host.errors import ExtensionHostError, ExternalEditorError
from exthost.host.history import HistoryStore
from exthost.host.notifications import NotificationScheduler
from exthost.host.protocol import ExtensionReply, ProtocolRunner, ReplyOk, text_field
from exthost.host.registry import discover_scripts
from exthost.host.transport import SubprocessTransport, Transport

logger = logging.getLogger(__name__)


class ExtensionHost:
    """Discovers extension scripts and routes UI actions to them.

    Parameters:
        settings: Host settings; defaults are read from env/TOML.
        scripts: Explicit script list, bypassing discovery.
        transport: Transport for protocol calls; defaults to one process per call.
        sync_notifications: Deliver notifications on the caller thread.
    """

    def __init__(
        self,
        settings: HostSettings | None = None,
        *,
        scripts: Sequence[Path] | None = None,
        transport: Transport | None = None,
        sync_notifications: bool = False,
    ) -> None:
        self.settings = settings or HostSettings()
        if scripts is None:
            scripts = discover_scripts(
                extension_dir=self.settings.extension_dir,
                suffix=self.settings.script_suffix,
            )
        self._scripts: tuple[Path, ...] = tuple(scripts)

        self.log_path = self.settings.diagnostics_log_path
        self.diagnostics = DiagnosticsLog(self.log_path, enabled=self.settings.extensions_log)
        if transport is None:
            transport = SubprocessTransport(
                self.settings.interpreter,
                timeout=self.settings.timeout,
                strip_env=self.settings.strip_env,
            )
        self.runner = ProtocolRunner(transport, log_path=self.log_path, diagnostics=self.diagnostics)

        self.config_warnings: list[str] = []
        self._config = load_config(self.runner, self._scripts, failures=self.config_warnings)

        self.notifications = NotificationScheduler(
            self.runner,
            self._scripts,
            debounce_ms=self.settings.debounce_ms,
            sync=sync_notifications,
            diagnostics=self.diagnostics,
        )
        self.history = HistoryStore(
            self.runner,
            self._scripts,
            sessions_root=self.settings.sessions_root,
            page_size=self.settings.page_size,
            diagnostics=self.diagnostics,
        )

        self.diagnostics.event(
            f"Host initialized; discovered extensions: {[str(s) for s in self._scripts]}"
        )
        self._log_loaded_extensions()
        self.history.maybe_seed()

    def __enter__(self) -> ExtensionHost:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        """Wait for in-flight notifications and stop the background pool."""
        self.notifications.shutdown()

    @property
    def scripts(self) -> tuple[Path, ...]:
        return self._scripts

    @property
    def config(self) -> ExtensionConfig:
        return self._config

    def _log_loaded_extensions(self) -> None:
        names = [s.name for s in self._scripts]
        if names:
            self.diagnostics.event(f"Loaded extensions: {', '.join(names)}")

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def invoke_first(self, action: str, payload: Any) -> ExtensionReply | None:
        """Raw fallback-chain call; errors propagate."""
        return self.runner.invoke_first(self._scripts, action, payload)

    def external_edit(self, text: str) -> str | None:
        """Let the first willing script edit *text*.

        Returns None when no script handled it (use the built-in editor).

        Raises:
            ExternalEditorError: a script failed, or succeeded without text.
        """
        self.diagnostics.event("external_edit requested")
        try:
            reply = self.invoke_first("external_edit", {"text": text})
        except ExtensionHostError as err:
            raise ExternalEditorError(str(err)) from err

        if isinstance(reply, ReplyOk):
            edited = reply.text if reply.text is not None else text_field(reply.payload)
            if edited is None:
                msg = "Extension returned success without text"
                raise ExternalEditorError(msg)
            return edited

        self.diagnostics.event("external_edit extension skip -> fallback")
        return None

    def edit_text(self, text: str) -> str:
        """External edit with fallback to the configured editor command."""
        edited = self.external_edit(text)
        if edited is not None:
            return edited
        return launch_editor(text, self._config.editor_command)

    def notify_event(self, event: str) -> None:
        self.notifications.notify(event)

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def has_history_state(self) -> bool:
        return self.history.has_history_state()

    def history_push(self, text: str) -> None:
        self.history.push(text)

    def history_prev(self) -> str | None:
        return self.history.prev()

    def history_next(self) -> str | None:
        return self.history.next()

    def history_first(self) -> str | None:
        return self.history.first()

    def history_last(self) -> str | None:
        return self.history.last()

    def history_prev_page(self) -> str | None:
        return self.history.prev_page()

    def history_next_page(self) -> str | None:
        return self.history.next_page()

    def history_delete(self, text: str, index: int | None = None) -> str | None:
        return self.history.delete(text, index)
