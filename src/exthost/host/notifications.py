"""Fire-and-forget event notifications, with debounce for typing bursts.

``line_added`` fires on every inserted line, so it is delayed and coalesced:
each submission takes a fresh token from a shared :class:`Generation` and arms
a timer; when the timer fires, delivery happens only if its token is still
current. A later ``line_added`` or a terminal event (``completion_end``,
``conversation_interrupted``) invalidates outstanding tokens. Every other
event is broadcast immediately.

Timers wait outside the delivery pool, so a pending debounce never delays an
immediate broadcast. Broadcasts run on a ThreadPoolExecutor. A child process
already spawned for a superseded notification is allowed to finish.

INVARIANT: notify() never raises, and one script's failure never blocks
delivery to the others.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Sequence
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path

from exthost.host.diagnostics import DiagnosticsLog
from exthost.host.protocol import ProtocolRunner

logger = logging.getLogger(__name__)

LINE_ADDED = "line_added"
COMPLETION_END = "completion_end"
CONVERSATION_INTERRUPTED = "conversation_interrupted"
CANCELLING_EVENTS = frozenset({COMPLETION_END, CONVERSATION_INTERRUPTED})
DEBOUNCED_EVENTS = frozenset({LINE_ADDED})


class Generation:
    """Cancellation-token source shared by the caller and delivery threads."""

    def __init__(self, start: int = 0) -> None:
        self._value = start
        self._lock = threading.Lock()

    @property
    def value(self) -> int:
        with self._lock:
            return self._value

    def issue(self) -> int:
        """Invalidate older tokens and return a new current one."""
        with self._lock:
            self._value += 1
            return self._value

    def invalidate(self) -> None:
        with self._lock:
            self._value += 1

    def is_current(self, token: int) -> bool:
        with self._lock:
            return token == self._value


class NotificationScheduler:
    """Broadcasts ``notify`` requests to every script in the background.

    Parameters:
        runner: Protocol runner used for each per-script call.
        scripts: Scripts to notify; copied, never shared with the caller.
        debounce_ms: Quiet period before a debounced event is delivered.
        sync: Deliver inline on the caller thread (tests / CLI).
        max_workers: ThreadPoolExecutor worker count for broadcasts.
    """

    def __init__(
        self,
        runner: ProtocolRunner,
        scripts: Sequence[Path],
        *,
        debounce_ms: int = 1000,
        sync: bool = False,
        max_workers: int = 4,
        diagnostics: DiagnosticsLog | None = None,
        generation: Generation | None = None,
    ) -> None:
        self._runner = runner
        self._scripts = tuple(scripts)
        self._delay = debounce_ms / 1000
        self._sync = sync
        self._diag = diagnostics or DiagnosticsLog(runner.log_path)
        self.generation = generation or Generation()
        self._stopping = threading.Event()
        self._executor: ThreadPoolExecutor | None = (
            None
            if sync
            else ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="exthost-notify")
        )
        self._futures: list[Future[None]] = []
        self._timers: list[threading.Timer] = []
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def notify(self, event: str) -> None:
        """Schedule delivery of *event* to every script."""
        if event in CANCELLING_EVENTS:
            self.cancel_pending()
        if not self._scripts:
            return

        if event not in DEBOUNCED_EVENTS:
            self._submit(event)
            return

        token = self.generation.issue()
        if self._sync:
            if not self._stopping.wait(self._delay):
                self._fire(event, token)
            return
        self._arm(event, token)

    def cancel_pending(self) -> None:
        """Invalidate any debounced delivery that has not fired yet."""
        self.generation.invalidate()

    def wait(self, timeout: float | None = None) -> None:
        """Block until every delivery scheduled so far has finished.

        Armed debounce timers are waited for first, since a firing timer
        schedules its own broadcast.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._lock:
            timers, self._timers = self._timers, []
        for timer in timers:
            timer.join(_remaining(deadline))

        with self._lock:
            futures, self._futures = self._futures, []
        for future in futures:
            try:
                future.result(timeout=_remaining(deadline))
            except Exception:
                logger.debug("Notification task did not complete cleanly", exc_info=True)

    def shutdown(self) -> None:
        """Drop armed debounced events and wait for in-flight deliveries."""
        self._stopping.set()
        with self._lock:
            timers = list(self._timers)
        for timer in timers:
            timer.cancel()
        self.wait()
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _arm(self, event: str, token: int) -> None:
        if self._stopping.is_set():
            logger.debug("Notification scheduler is shut down; dropping %s", event)
            return
        timer = threading.Timer(self._delay, self._fire, args=(event, token))
        timer.daemon = True
        timer.start()
        with self._lock:
            self._timers = [t for t in self._timers if t.is_alive()]
            self._timers.append(timer)

    def _fire(self, event: str, token: int) -> None:
        if self._stopping.is_set():
            return
        if not self.generation.is_current(token):
            self._diag.event(f"{event} notification superseded")
            return
        self._submit(event)

    def _submit(self, event: str) -> None:
        if self._sync:
            self._deliver(event)
            return
        executor = self._executor
        if executor is None:
            logger.debug("Notification scheduler is shut down; dropping %s", event)
            return
        try:
            future = executor.submit(self._deliver, event)
        except RuntimeError:
            logger.debug("Executor rejected notification %s", event, exc_info=True)
            return
        with self._lock:
            self._futures = [f for f in self._futures if not f.done()]
            self._futures.append(future)

    def _deliver(self, event: str) -> None:
        self._diag.event(f"notify event={event}")
        self._runner.broadcast(self._scripts, "notify", {"event": event})


def _remaining(deadline: float | None) -> float | None:
    if deadline is None:
        return None
    return max(0.0, deadline - time.monotonic())
