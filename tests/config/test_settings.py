"""Tests for HostSettings — CLI flags, env vars, and TOML in one object."""

import logging
from pathlib import Path

import click
import pytest

from exthost.config.settings import CONFIG_FILENAME, HostSettings, find_config


class TestFindConfig:
    def test_finds_in_current_dir(self, tmp_path: Path) -> None:
        config_file = tmp_path / CONFIG_FILENAME
        config_file.write_text('interpreter = "deno"\n')
        assert find_config(tmp_path) == config_file.resolve()

    def test_walks_up(self, tmp_path: Path) -> None:
        config_file = tmp_path / CONFIG_FILENAME
        config_file.write_text("")
        child = tmp_path / "a" / "b" / "c"
        child.mkdir(parents=True)
        assert find_config(child) == config_file.resolve()

    def test_returns_none_when_not_found(self, tmp_path: Path) -> None:
        child = tmp_path / "empty"
        child.mkdir()
        assert find_config(child) is None

    def test_env_var_override(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / CONFIG_FILENAME).write_text("")
        custom = tmp_path / "custom.toml"
        custom.write_text("")
        monkeypatch.setenv("EXTHOST_CONFIG", str(custom))
        assert find_config(tmp_path) == custom

    def test_env_var_pointing_nowhere(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / CONFIG_FILENAME).write_text("")
        monkeypatch.setenv("EXTHOST_CONFIG", str(tmp_path / "missing.toml"))
        assert find_config(tmp_path) is None


class TestHostSettingsDefaults:
    def test_all_defaults(self, tmp_path: Path) -> None:
        settings = HostSettings.from_cli(cwd=tmp_path)
        assert settings.config_path is None
        assert settings.extension_dir is None
        assert settings.extensions_log is False
        assert settings.interpreter == "node"
        assert settings.script_suffix == ".js"
        assert settings.timeout == 30.0
        assert settings.debounce_ms == 1000
        assert settings.page_size == 10
        assert settings.strip_env == []
        assert settings.json_output is False

    def test_frozen(self, tmp_path: Path) -> None:
        settings = HostSettings.from_cli(cwd=tmp_path)
        with pytest.raises(Exception):
            settings.verbose = True  # type: ignore[misc]

    def test_home_derived_paths(self, tmp_path: Path) -> None:
        settings = HostSettings(home=tmp_path / "codex")
        assert settings.sessions_root == tmp_path / "codex" / "sessions"
        assert settings.diagnostics_log_path == tmp_path / "codex" / "log" / "codex_extensions.log"

    def test_default_home(self) -> None:
        assert HostSettings().home == Path.home() / ".codex"

    def test_no_home_falls_back_to_tempdir(self) -> None:
        settings = HostSettings(home=None)
        assert settings.diagnostics_log_path.name == "codex_extensions.log"
        assert settings.diagnostics_log_path.parent != Path(".")


class TestTomlSource:
    def test_loads_from_toml(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILENAME).write_text(
            'interpreter = "deno"\nscript_suffix = ".ts"\ntimeout = 5\n'
        )
        settings = HostSettings.from_cli(cwd=tmp_path)
        assert settings.interpreter == "deno"
        assert settings.script_suffix == ".ts"
        assert settings.timeout == 5.0
        assert settings.debounce_ms == 1000  # default preserved
        assert settings.config_path == (tmp_path / CONFIG_FILENAME).resolve()

    def test_explicit_config_path(self, tmp_path: Path) -> None:
        custom = tmp_path / "custom" / "my.toml"
        custom.parent.mkdir(parents=True)
        custom.write_text("page_size = 3\n")
        settings = HostSettings.from_cli(config_path=str(custom), cwd=tmp_path)
        assert settings.page_size == 3
        assert settings.config_path == custom

    def test_exthost_table_overrides_top_level(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILENAME).write_text(
            'interpreter = "deno"\npage_size = 4\n[exthost]\ninterpreter = "bun"\n'
        )
        settings = HostSettings.from_cli(cwd=tmp_path)
        assert settings.interpreter == "bun"
        assert settings.page_size == 4

    def test_unknown_keys_dropped_with_warning(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        (tmp_path / CONFIG_FILENAME).write_text('theme = "dark"\ntimeout = 3\n')
        with caplog.at_level(logging.WARNING, logger="exthost"):
            settings = HostSettings.from_cli(cwd=tmp_path)
        assert settings.timeout == 3.0
        assert "Ignoring unknown setting 'theme'" in caplog.text

    def test_invalid_toml_is_a_click_error(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILENAME).write_text("interpreter = \n")
        with pytest.raises(click.ClickException, match="Invalid TOML"):
            HostSettings.from_cli(cwd=tmp_path)


class TestPriority:
    def test_env_overrides_toml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / CONFIG_FILENAME).write_text('interpreter = "deno"\n')
        monkeypatch.setenv("EXTHOST_INTERPRETER", "bun")
        assert HostSettings.from_cli(cwd=tmp_path).interpreter == "bun"

    def test_cli_flags_override_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("EXTHOST_TIMEOUT", "9")
        settings = HostSettings.from_cli(cwd=tmp_path, timeout=2.5, json_output=True)
        assert settings.timeout == 2.5
        assert settings.json_output is True

    def test_none_flags_do_not_mask_lower_sources(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("EXTHOST_EXTENSIONS_LOG", "true")
        settings = HostSettings.from_cli(cwd=tmp_path, extensions_log=None, timeout=None)
        assert settings.extensions_log is True
        assert settings.timeout == 30.0

    def test_strip_env_from_env_json(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("EXTHOST_STRIP_ENV", '["OPENAI_API_KEY", "HOME"]')
        settings = HostSettings.from_cli(cwd=tmp_path)
        assert settings.strip_env == ["OPENAI_API_KEY", "HOME"]
