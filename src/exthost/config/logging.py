"""structlog configuration for exthost.

Human mode (default) renders colored console lines to stderr; ``--log-json``
renders one JSON object per line. Records emitted while a protocol call is in
flight carry ``script`` and ``action`` fields bound through contextvars.

The extension diagnostics file (``exthost.host.diagnostics``) is written
separately and is unaffected by this setup.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import structlog

HOST_LOGGER = "exthost"


def _processor_chain() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _select_renderer(log_json: bool) -> structlog.types.Processor:
    if log_json:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_logging(*, verbose: bool = False, log_json: bool = False) -> None:
    """Route structlog and stdlib ``exthost.*`` records to stderr.

    Args:
        verbose: Drop the ``exthost`` logger tree to DEBUG. Other loggers
            stay at WARNING either way.
        log_json: Render JSON lines instead of console output.
    """
    chain = _processor_chain()
    structlog.configure(
        processors=[*chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _select_renderer(log_json),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.WARNING)
    logging.getLogger(HOST_LOGGER).setLevel(logging.DEBUG if verbose else logging.WARNING)


@contextmanager
def script_call_context(script: Path, action: str) -> Iterator[None]:
    """Tag every record logged on this thread with the script and action."""
    with structlog.contextvars.bound_contextvars(script=script.name, action=action):
        yield
