"""Transport seam between the protocol runner and a script.

:class:`SubprocessTransport` spawns one short-lived process per call. Other
transports (process reuse, in-memory fakes for tests) only need ``send``.
"""

from __future__ import annotations

import os
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from exthost.host.errors import ExtensionIOError, ScriptTimeoutError, SpawnFailedError


@dataclass(frozen=True)
class TransportOutput:
    """Everything a script wrote before exiting."""

    stdout: str
    stderr: str = ""
    returncode: int | None = 0


class Transport(Protocol):
    def send(self, script: Path, request: str) -> TransportOutput:
        """Deliver *request* to *script* and return its complete output.

        Raises:
            SpawnFailedError: the script could not be started.
            ExtensionIOError: I/O failed or the call exceeded its bound.
        """
        ...


class SubprocessTransport:
    """Run ``<interpreter> <script>`` with piped stdio, one process per call.

    Args:
        interpreter: Launcher program; empty runs the script directly.
        timeout: Seconds to wait before killing the child; None waits forever.
        strip_env: Variable names removed from the child's environment.
    """

    def __init__(
        self,
        interpreter: str = "node",
        *,
        timeout: float | None = None,
        strip_env: Sequence[str] = (),
    ) -> None:
        self.interpreter = interpreter
        self.timeout = timeout
        self.strip_env = tuple(strip_env)

    def command(self, script: Path) -> list[str]:
        if self.interpreter:
            return [self.interpreter, str(script)]
        return [str(script)]

    def _environment(self) -> dict[str, str] | None:
        if not self.strip_env:
            return None
        return {k: v for k, v in os.environ.items() if k not in self.strip_env}

    def send(self, script: Path, request: str) -> TransportOutput:
        try:
            proc = subprocess.Popen(
                self.command(script),
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                env=self._environment(),
            )
        except OSError as exc:
            raise SpawnFailedError(script, exc) from exc

        payload = f"{request}\n".encode()
        try:
            stdout, stderr = proc.communicate(payload, timeout=self.timeout)
        except subprocess.TimeoutExpired as exc:
            proc.kill()
            proc.communicate()
            raise ScriptTimeoutError(script, exc.timeout) from exc
        except OSError as exc:
            proc.kill()
            proc.wait()
            raise ExtensionIOError(script, exc) from exc

        return TransportOutput(
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
            returncode=proc.returncode,
        )
