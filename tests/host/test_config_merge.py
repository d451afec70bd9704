"""Tests for folding script config replies into ExtensionConfig."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from exthost.config.models import ConfigDelta, ExtensionConfig, KeyBinding
from exthost.host.config_merge import (
    ensure_baseline_bindings,
    load_config,
    merge_deltas,
    parse_config,
)
from exthost.host.errors import ExtensionIOError
from exthost.host.protocol import ProtocolRunner
from tests.conftest import FakeTransport, reply

A = Path("/ext/a.js")
B = Path("/ext/b.js")


def _runner(tmp_path: Path, replies: dict[Path, object]) -> tuple[ProtocolRunner, FakeTransport]:
    transport = FakeTransport(lambda s, r: replies[s])
    return ProtocolRunner(transport, log_path=tmp_path / "ext.log"), transport


class TestParseConfig:
    def test_non_object_payload(self) -> None:
        assert parse_config(None) is None
        assert parse_config(["x"]) is None

    def test_declared_fields_only(self) -> None:
        delta = parse_config({"hide_edit_marker": True})
        assert delta is not None
        assert delta.overrides() == {"hide_edit_marker": True}


class TestMergeDeltas:
    def test_no_deltas_gives_defaults_plus_baseline(self) -> None:
        config = merge_deltas([])
        assert config.external_edit_keys == [KeyBinding.ctrl_char("e")]
        assert config.history_prev_keys == [KeyBinding.alt_code("Up"), KeyBinding.plain("Up")]
        assert config.history_next_keys == [
            KeyBinding.alt_code("Down"),
            KeyBinding.plain("Down"),
        ]
        assert config.editor_command is None

    def test_later_delta_overrides_earlier(self) -> None:
        first = ConfigDelta.model_validate({"hide_prompt_hints": True, "align_left": True})
        second = ConfigDelta.model_validate({"hide_prompt_hints": False})

        config = merge_deltas([first, second])

        assert config.hide_prompt_hints is False
        assert config.align_left is True

    def test_key_list_replaced_then_baseline_restored(self) -> None:
        delta = ConfigDelta.model_validate({"history_prev_keys": [{"code": "p", "ctrl": True}]})

        config = merge_deltas([delta])

        assert config.history_prev_keys == [KeyBinding.ctrl_char("p"), KeyBinding.plain("Up")]

    def test_baseline_not_duplicated(self) -> None:
        delta = ConfigDelta.model_validate({"history_next_keys": [{"code": "Down"}]})
        config = merge_deltas([delta])
        assert config.history_next_keys == [KeyBinding.plain("Down")]

    def test_all_invalid_key_list_still_overrides(self) -> None:
        delta = ConfigDelta.model_validate({"external_edit_keys": [{"code": "Hyper"}]})
        config = merge_deltas([delta])
        assert config.external_edit_keys == []

    def test_ensure_baseline_is_idempotent(self) -> None:
        once = ensure_baseline_bindings(ExtensionConfig())
        assert ensure_baseline_bindings(once) == once


class TestLoadConfig:
    def test_every_script_consulted_in_order(self, tmp_path: Path) -> None:
        runner, transport = _runner(
            tmp_path,
            {
                A: reply("ok", payload={"editor_command": "vim -f", "align_left": True}),
                B: reply("ok", payload={"editor_command": ["code", "--wait"]}),
            },
        )

        config = load_config(runner, [A, B])

        assert [s for s, _ in transport.calls] == [A, B]
        assert all(req["action"] == "config" for _, req in transport.calls)
        assert config.editor_command == ["code", "--wait"]
        assert config.align_left is True

    def test_skip_failure_and_bad_payload_contribute_nothing(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        c = Path("/ext/c.js")
        d = Path("/ext/d.js")
        runner, _ = _runner(
            tmp_path,
            {
                A: reply("skip"),
                B: ExtensionIOError(B, "broken pipe"),
                c: reply("ok", payload="not an object"),
                d: reply("error", message="bad config"),
            },
        )

        with caplog.at_level(logging.WARNING, logger="exthost"):
            config = load_config(runner, [A, B, c, d])

        assert config == merge_deltas([])
        assert sum("Extension config failed" in r.message for r in caplog.records) == 2

    def test_failures_collected_per_script(self, tmp_path: Path) -> None:
        runner, _ = _runner(
            tmp_path,
            {
                A: reply("skip"),
                B: reply("error", message="bad config"),
            },
        )
        failures: list[str] = []

        load_config(runner, [A, B], failures=failures)

        assert len(failures) == 1
        assert failures[0].startswith("b.js: ")
        assert "bad config" in failures[0]

    def test_no_scripts(self, tmp_path: Path) -> None:
        runner, transport = _runner(tmp_path, {})
        assert load_config(runner, []) == merge_deltas([])
        assert transport.calls == []
