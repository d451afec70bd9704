"""AppContext — shared Click context for all commands.

Created once by the root CLI group and passed to subcommands via
``@click.pass_obj``. The host is built lazily so ``--help`` never spawns
extension scripts.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from exthost.output.formatters import format_result

if TYPE_CHECKING:
    from exthost.config.settings import HostSettings
    from exthost.host.extension_host import ExtensionHost
    from exthost.services.result import ServiceResult


class AppContext:
    """Settings, the lazily-built host, and result emission."""

    def __init__(self, settings: HostSettings) -> None:
        self.settings = settings
        self._host: ExtensionHost | None = None

        from exthost.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

    @property
    def host(self) -> ExtensionHost:
        """The extension host (created on first access)."""
        if self._host is None:
            from exthost.host.extension_host import ExtensionHost

            self._host = ExtensionHost(self.settings)
        return self._host

    def close(self) -> None:
        if self._host is not None:
            self._host.close()
            self._host = None

    def emit(self, result: ServiceResult) -> None:
        """Print *result*; failures go to stderr with exit code 1."""
        output = format_result(result, json_output=self.settings.json_output)
        if result.ok:
            click.echo(output)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
