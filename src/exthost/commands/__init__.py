"""Subcommand modules for exthost.

register_commands() uses deferred imports to keep ``exthost --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register the history group and the standalone commands."""
    from exthost.commands.history import history

    cli.add_command(history)

    from exthost.commands.call import call
    from exthost.commands.config_cmd import config_cmd
    from exthost.commands.edit import edit
    from exthost.commands.notify import notify
    from exthost.commands.scripts import scripts

    cli.add_command(scripts)
    cli.add_command(config_cmd)
    cli.add_command(edit)
    cli.add_command(notify)
    cli.add_command(call)
