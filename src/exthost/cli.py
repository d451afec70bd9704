"""Root CLI group for exthost with global flags and command registration."""

from __future__ import annotations

from pathlib import Path

import click

from exthost import __version__
from exthost.commands import register_commands
from exthost.commands._base import ExtGroup
from exthost.commands._context import AppContext
from exthost.config.settings import HostSettings


@click.group(
    cls=ExtGroup,
    invoke_without_command=True,
    examples="""\
  exthost scripts
  exthost --extension-dir ./extensions config
  exthost --json history prev
  echo "draft" | exthost edit
  exthost call history_push --payload '{"text": "hi"}'""",
)
@click.version_option(version=__version__, prog_name="exthost")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-v", "--verbose", is_flag=True, help="Detailed output with debug logging.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.option(
    "--extension-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory searched for extension scripts before all others.",
)
@click.option("--timeout", type=float, default=None, help="Per-call script timeout in seconds.")
@click.option(
    "--extensions-log/--no-extensions-log",
    default=None,
    help="Write the extension diagnostics log.",
)
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
    extension_dir: Path | None,
    timeout: float | None,
    extensions_log: bool | None,
) -> None:
    """exthost — run and inspect terminal UI extension scripts."""
    settings = HostSettings.from_cli(
        config_path=config_path,
        json_output=json_output,
        verbose=verbose,
        log_json=log_json,
        extension_dir=extension_dir,
        timeout=timeout,
        extensions_log=extensions_log,
    )
    app = AppContext(settings)
    ctx.obj = app
    ctx.call_on_close(app.close)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
