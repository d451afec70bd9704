"""Failure taxonomy for a single extension protocol call.

A ``skip`` reply is never an error. Any of the kinds below aborts the
fallback chain for the call that produced it.
"""

from __future__ import annotations

from pathlib import Path


class ExtensionHostError(Exception):
    """Base class for every protocol-call failure.

    Attributes:
        script: Path of the extension script that failed.
    """

    def __init__(self, script: Path, message: str) -> None:
        super().__init__(message)
        self.script = script


class SpawnFailedError(ExtensionHostError):
    """The script process could not be started."""

    def __init__(self, script: Path, error: OSError) -> None:
        super().__init__(script, f"failed to spawn extension {str(script)!r}: {error}")
        self.error = error


class ExtensionIOError(ExtensionHostError):
    """Writing the request or reading the response failed."""

    def __init__(self, script: Path, error: OSError | str) -> None:
        super().__init__(script, f"error running extension {str(script)!r}: {error}")
        self.error = error


class ScriptTimeoutError(ExtensionIOError):
    """The script did not exit within the configured bound and was killed."""

    def __init__(self, script: Path, timeout: float) -> None:
        super().__init__(script, f"timed out after {timeout:g}s")
        self.timeout = timeout


class InvalidJsonError(ExtensionHostError):
    """The extracted response line was not valid JSON."""

    def __init__(self, script: Path, raw: str, error: Exception) -> None:
        super().__init__(
            script, f"extension {str(script)!r} returned invalid JSON ({error}): {raw}"
        )
        self.raw = raw
        self.error = error


class ScriptError(ExtensionHostError):
    """The script reported failure, or returned nothing parseable."""

    def __init__(self, script: Path, message: str) -> None:
        super().__init__(script, f"extension {str(script)!r} reported an error: {message}")
        self.message = message


class MissingStatusError(ExtensionHostError):
    """The response JSON lacked a recognized ``status``."""

    def __init__(self, script: Path, raw: str) -> None:
        super().__init__(script, f"extension {str(script)!r} response missing status field: {raw}")
        self.raw = raw


class ExternalEditorError(Exception):
    """User-facing failure of an external-edit request."""
