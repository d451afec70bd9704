"""Conversation history: session-log retrieval, seeding, and navigation.

Session logs are newline-delimited JSON files under ``<home>/sessions``,
written by the session-persistence layer. Each line is a session-meta record
or a message record whose ``role``/``content`` sit at the top level or under a
``payload`` wrapper. This module only reads them.

Navigation itself is delegated to scripts (``history_prev`` etc.). Before each
lookup the newest log is pushed to every script (``history_seed``) unless its
modification time has already been seeded.

Thread contract: :class:`HistoryStore` state is touched only from the caller
thread. Notification threads never see it.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from exthost.host.diagnostics import DiagnosticsLog
from exthost.host.errors import ExtensionHostError
from exthost.host.protocol import ProtocolRunner, ReplyOk, reply_text, text_field

logger = logging.getLogger(__name__)

SESSION_LOG_SUFFIX = ".jsonl"
HISTORY_PAGE_JUMP = 10


@dataclass(frozen=True)
class HistorySeed:
    """Prior user messages from one session log.

    Attributes:
        entries: User-authored message texts in file order.
        mtime: Modification time of *path*, in nanoseconds.
        path: The session log the entries came from.
    """

    entries: list[str]
    mtime: int
    path: Path


def find_latest_session_log(root: Path) -> tuple[int, Path] | None:
    """Depth-first walk of *root* for the most recently modified log.

    Ties keep the first candidate found. Unreadable directories are skipped.
    """
    latest: tuple[int, Path] | None = None
    stack = [root]
    while stack:
        directory = stack.pop()
        try:
            entries = list(directory.iterdir())
        except OSError:
            continue
        for path in entries:
            if path.is_dir():
                stack.append(path)
                continue
            if path.suffix.lower() != SESSION_LOG_SUFFIX:
                continue
            try:
                mtime = path.stat().st_mtime_ns
            except OSError:
                continue
            if latest is None or mtime > latest[0]:
                latest = (mtime, path)
    return latest


def extract_role_and_content(record: dict[str, Any]) -> tuple[str | None, Any]:
    role = record.get("role")
    if isinstance(role, str) or "content" in record:
        return (role if isinstance(role, str) else None), record.get("content")

    payload = record.get("payload")
    if isinstance(payload, dict):
        role = payload.get("role")
        return (role if isinstance(role, str) else None), payload.get("content")
    return None, None


def content_to_string(value: Any) -> str | None:
    """Flatten message content: a string, or fragments concatenated in order."""
    if isinstance(value, str):
        return value
    if not isinstance(value, list):
        return None
    parts: list[str] = []
    for item in value:
        if isinstance(item, str):
            parts.append(item)
        elif isinstance(item, dict) and isinstance(item.get("text"), str):
            parts.append(item["text"])
    return "".join(parts) if parts else None


def read_user_messages(path: Path) -> list[str]:
    """Every user-authored message in *path*; malformed lines are skipped."""
    try:
        lines = path.read_text(encoding="utf-8", errors="replace").splitlines()
    except OSError:
        return []

    messages: list[str] = []
    for line in lines:
        try:
            record = json.loads(line)
        except json.JSONDecodeError:
            continue
        if not isinstance(record, dict):
            continue
        role, content = extract_role_and_content(record)
        if role != "user" or content is None:
            continue
        text = content_to_string(content)
        if text is not None:
            messages.append(text)
    return messages


def load_recent_history(root: Path) -> HistorySeed | None:
    """Seed data from the newest log under *root*, or None if there is none."""
    if not root.exists():
        return None
    found = find_latest_session_log(root)
    if found is None:
        return None
    mtime, path = found
    entries = read_user_messages(path)
    if not entries:
        return None
    return HistorySeed(entries=entries, mtime=mtime, path=path)


class HistoryStore:
    """History navigation relayed to scripts, seeded from session logs."""

    def __init__(
        self,
        runner: ProtocolRunner,
        scripts: Sequence[Path],
        *,
        sessions_root: Path,
        page_size: int = HISTORY_PAGE_JUMP,
        diagnostics: DiagnosticsLog | None = None,
    ) -> None:
        self._runner = runner
        self._scripts = tuple(scripts)
        self.sessions_root = sessions_root
        self.page_size = page_size
        self._diag = diagnostics or DiagnosticsLog(runner.log_path)
        self.session_path: Path | None = None
        self.last_seed_mtime: int | None = None

    def has_history_state(self) -> bool:
        return self.sessions_root.exists()

    def ensure_session_path(self) -> Path | None:
        if self.session_path is None:
            found = find_latest_session_log(self.sessions_root)
            if found is not None:
                self.session_path = found[1]
        return self.session_path

    def _session_path_value(self) -> str | None:
        path = self.ensure_session_path()
        return str(path) if path is not None else None

    # ------------------------------------------------------------------
    # Seeding
    # ------------------------------------------------------------------

    def maybe_seed(self) -> bool:
        """Push the newest log's user messages to every script, once per mtime.

        Returns True when a broadcast happened.
        """
        seed = load_recent_history(self.sessions_root)
        if seed is None:
            self._diag.event("No history file found")
            return False
        if self.last_seed_mtime is not None and self.last_seed_mtime >= seed.mtime:
            self._diag.event("History already seeded with latest file")
            return False

        self._diag.event(f"Seeding history from {str(seed.path)!r} ({len(seed.entries)} entries)")
        self.session_path = seed.path
        payload = {"payload": {"entries": seed.entries, "session_path": str(seed.path)}}
        self._runner.broadcast(self._scripts, "history_seed", payload)
        self.last_seed_mtime = seed.mtime
        return True

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def push(self, text: str) -> None:
        payload = {"text": text, "session_path": self._session_path_value()}
        self._diag.event(f"history_push text={text!r}")
        try:
            self._runner.invoke_first(self._scripts, "history_push", payload)
        except ExtensionHostError as err:
            logger.warning("history_push extension failed: %s", err)

    def prev(self) -> str | None:
        return self._navigate("history_prev")

    def next(self) -> str | None:
        return self._navigate("history_next")

    def first(self) -> str | None:
        return self._navigate("history_first")

    def last(self) -> str | None:
        return self._navigate("history_last")

    def prev_page(self) -> str | None:
        return self._jump(self.prev)

    def next_page(self) -> str | None:
        return self._jump(self.next)

    def delete(self, text: str, index: int | None = None) -> str | None:
        """Ask scripts to drop an entry; returns the entry to show next, if any."""
        payload = {
            "text": text,
            "index": index,
            "session_path": self._session_path_value(),
        }
        try:
            reply = self._runner.invoke_first(self._scripts, "history_delete", payload)
        except ExtensionHostError as err:
            logger.warning("history_delete extension failed: %s", err)
            return None
        if not isinstance(reply, ReplyOk):
            return None
        if reply.text is not None:
            return reply.text
        next_text = text_field(reply.payload, "next_text")
        if next_text is not None:
            return next_text
        return text_field(reply.payload)

    def _navigate(self, action: str) -> str | None:
        self.maybe_seed()
        self._diag.event(f"{action} invoked")
        result = self._lookup(action)
        self._diag.event(f"{action} result={result!r}")
        return result

    def _lookup(self, action: str) -> str | None:
        try:
            reply = self._runner.invoke_first(self._scripts, action, {})
        except ExtensionHostError as err:
            logger.warning("History extension call %s failed: %s", action, err)
            return None
        return reply_text(reply)

    def _jump(self, step: Callable[[], str | None]) -> str | None:
        last: str | None = None
        for _ in range(self.page_size):
            text = step()
            if text is None:
                break
            last = text
        return last
