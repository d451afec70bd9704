"""Built-in external editor, used when no script handles ``external_edit``."""

from __future__ import annotations

import os
import shlex
import subprocess
import tempfile
from collections.abc import Sequence
from pathlib import Path

from exthost.host.errors import ExternalEditorError


def default_editor_command() -> list[str]:
    """``$VISUAL``, then ``$EDITOR``, then the platform editor.

    A variable that splits to nothing is skipped.

    Raises:
        ExternalEditorError: a variable is not valid shell syntax.
    """
    for var in ("VISUAL", "EDITOR"):
        value = os.environ.get(var, "")
        try:
            argv = shlex.split(value)
        except ValueError as exc:
            msg = f"cannot parse ${var} {value!r}: {exc}"
            raise ExternalEditorError(msg) from exc
        if argv:
            return argv
    return ["notepad" if os.name == "nt" else "nano"]


def launch_editor(text: str, command: Sequence[str] | None = None) -> str:
    """Edit *text* in a temp file and return the result.

    One trailing newline (as most editors add) is trimmed.

    Raises:
        ExternalEditorError: the editor command is unusable, could not start,
            or exited non-zero.
    """
    argv = list(command) if command else default_editor_command()
    with tempfile.TemporaryDirectory(prefix="exthost-") as tmp:
        path = Path(tmp) / "input.txt"
        path.write_text(text, encoding="utf-8")
        try:
            result = subprocess.run([*argv, str(path)], check=False)
        except OSError as exc:
            msg = f"failed to launch editor {argv[0]!r}: {exc}"
            raise ExternalEditorError(msg) from exc
        if result.returncode != 0:
            msg = f"Editor exited with status {result.returncode}"
            raise ExternalEditorError(msg)
        edited = path.read_text(encoding="utf-8")

    if edited.endswith("\r\n"):
        return edited[:-2]
    return edited.removesuffix("\n")
