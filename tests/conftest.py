"""Shared pytest fixtures and test helpers for exthost tests."""

from __future__ import annotations

import json
import os
import sys
import textwrap
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from exthost.config.settings import HostSettings
from exthost.host.transport import TransportOutput

ScriptWriter = Callable[[str, str], Path]

# Extension scripts used in tests are Python files run with the current
# interpreter. Each records the request it received next to itself
# (``<script>.calls``) before printing handle()'s reply.
_PROLOGUE = """\
import json
import pathlib
import sys

CALLS = pathlib.Path(__file__).with_suffix(".calls")


def record(req):
    with CALLS.open("a", encoding="utf-8") as fh:
        fh.write(json.dumps(req) + "\\n")

"""

_EPILOGUE = """

req = json.loads(sys.stdin.read() or "{}")
record(req)
print(json.dumps(handle(req)))
"""

SKIP_SCRIPT = """\
def handle(req):
    return {"status": "skip"}
"""

UPPERCASE_SCRIPT = """\
def handle(req):
    if req["action"] != "external_edit":
        return {"status": "skip"}
    return {"status": "ok", "text": req["text"].upper()}
"""


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep developer env vars and working-directory extensions out of tests."""
    for name in [n for n in os.environ if n.startswith("EXTHOST_")]:
        monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def home(tmp_path: Path) -> Path:
    """Application home with an empty ``sessions/`` directory."""
    path = tmp_path / "home"
    (path / "sessions").mkdir(parents=True)
    return path


@pytest.fixture
def ext_dir(tmp_path: Path) -> Path:
    path = tmp_path / "extensions"
    path.mkdir()
    return path


@pytest.fixture
def write_script(ext_dir: Path) -> ScriptWriter:
    """Factory writing a Python extension script that defines ``handle(req)``."""

    def _write(name: str, body: str) -> Path:
        path = ext_dir / name
        path.write_text(_PROLOGUE + textwrap.dedent(body) + _EPILOGUE, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def settings(home: Path, ext_dir: Path) -> HostSettings:
    """Settings that run ``*.py`` scripts with this interpreter."""
    return HostSettings(
        home=home,
        extension_dir=ext_dir,
        interpreter=sys.executable,
        script_suffix=".py",
        timeout=20.0,
        debounce_ms=50,
    )


@pytest.fixture
def cli_env(monkeypatch: pytest.MonkeyPatch, home: Path, ext_dir: Path) -> Path:
    """Point the CLI at *ext_dir* and run ``*.py`` scripts; returns the home."""
    monkeypatch.setenv("EXTHOST_HOME", str(home))
    monkeypatch.setenv("EXTHOST_EXTENSION_DIR", str(ext_dir))
    monkeypatch.setenv("EXTHOST_INTERPRETER", sys.executable)
    monkeypatch.setenv("EXTHOST_SCRIPT_SUFFIX", ".py")
    monkeypatch.setenv("EXTHOST_DEBOUNCE_MS", "50")
    return home


# ---------------------------------------------------------------------------
# Shared test helpers
# ---------------------------------------------------------------------------


def read_calls(script: Path) -> list[dict[str, Any]]:
    """Requests a test script has received, in order."""
    calls = script.with_suffix(".calls")
    if not calls.exists():
        return []
    return [json.loads(line) for line in calls.read_text(encoding="utf-8").splitlines()]


def write_session_log(path: Path, records: list[Any], *, mtime: float | None = None) -> Path:
    """Write newline-delimited JSON records, optionally pinning the mtime."""
    path.parent.mkdir(parents=True, exist_ok=True)
    lines = [r if isinstance(r, str) else json.dumps(r) for r in records]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    if mtime is not None:
        os.utime(path, (mtime, mtime))
    return path


Responder = Callable[[Path, dict[str, Any]], "str | TransportOutput | Exception"]


class FakeTransport:
    """In-memory transport: a responder decides each script's stdout.

    The responder may return a stdout string, a full TransportOutput, or an
    exception instance to raise.
    """

    def __init__(self, responder: Responder) -> None:
        self._responder = responder
        self.calls: list[tuple[Path, dict[str, Any]]] = []

    def send(self, script: Path, request: str) -> TransportOutput:
        parsed = json.loads(request)
        self.calls.append((script, parsed))
        result = self._responder(script, parsed)
        if isinstance(result, Exception):
            raise result
        if isinstance(result, TransportOutput):
            return result
        return TransportOutput(stdout=result)

    def actions(self, script: Path | None = None) -> list[str]:
        return [req["action"] for s, req in self.calls if script is None or s == script]


def reply(status: str = "ok", **fields: Any) -> str:
    return json.dumps({"status": status, **fields})
