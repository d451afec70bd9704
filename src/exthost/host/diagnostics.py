"""Append-only diagnostics log shared by the host and its scripts.

Each write opens the file in append mode, writes one line, and closes it,
so the caller thread and background notification threads never share a
handle. Write failures are dropped; diagnostics must never break the UI.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path

logger = logging.getLogger(__name__)


class DiagnosticsLog:
    """One stamped line per event, written only when *enabled*."""

    def __init__(self, path: Path, *, enabled: bool = False, source: str = "tui") -> None:
        self.path = path
        self.enabled = enabled
        self._source = source

    def event(self, message: str) -> None:
        if not self.enabled:
            return
        line = f"{time.time():.3f} [{self._source}] {message}\n"
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("a", encoding="utf-8") as fh:
                fh.write(line)
        except OSError:
            logger.debug("Could not write diagnostics to %s", self.path, exc_info=True)
