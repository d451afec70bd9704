"""Fold every script's ``config`` reply into one :class:`ExtensionConfig`.

Every script is consulted (not the fallback chain), in registry order.
Later scripts override earlier ones field by field. Plain Up/Down are then
guaranteed on history-prev/history-next so navigation always works.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from exthost.config.models import ConfigDelta, ExtensionConfig, KeyBinding
from exthost.host.errors import ExtensionHostError
from exthost.host.protocol import ProtocolRunner, ReplyOk

logger = logging.getLogger(__name__)

BASELINE_BINDINGS: tuple[tuple[str, KeyBinding], ...] = (
    ("history_prev_keys", KeyBinding.plain("Up")),
    ("history_next_keys", KeyBinding.plain("Down")),
)


def parse_config(payload: Any) -> ConfigDelta | None:
    """Read the declared fields of a ``config`` payload; None if not an object."""
    if not isinstance(payload, dict):
        return None
    return ConfigDelta.model_validate(payload)


def ensure_baseline_bindings(config: ExtensionConfig) -> ExtensionConfig:
    for field_name, binding in BASELINE_BINDINGS:
        config = config.with_binding(field_name, binding)
    return config


def merge_deltas(
    deltas: Sequence[ConfigDelta],
    base: ExtensionConfig | None = None,
) -> ExtensionConfig:
    config = base or ExtensionConfig()
    for delta in deltas:
        config = config.merged(delta)
    return ensure_baseline_bindings(config)


def load_config(
    runner: ProtocolRunner,
    scripts: Sequence[Path],
    *,
    failures: list[str] | None = None,
) -> ExtensionConfig:
    """Ask each script for its ``config`` and merge the answers.

    Scripts that skip, fail, or answer without an object payload contribute
    nothing. Failures are logged, never raised; when *failures* is given,
    one ``"<script name>: <error>"`` line per failing script is appended to it.
    """
    deltas: list[ConfigDelta] = []
    for script in scripts:
        try:
            reply = runner.run(script, "config", {})
        except ExtensionHostError as err:
            logger.warning("Extension config failed for %s: %s", script, err)
            if failures is not None:
                failures.append(f"{script.name}: {err}")
            continue
        if not isinstance(reply, ReplyOk):
            continue
        delta = parse_config(reply.payload)
        if delta is not None:
            deltas.append(delta)
    return merge_deltas(deltas)
