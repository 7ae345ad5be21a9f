"""
Tests for configuration loading and the bundled package catalog.
"""

import textwrap
from pathlib import Path

import pytest

from devsetup.core.config.loader import (
    CONFIG_FILE,
    ConfigError,
    Settings,
    find_config_file,
    load_bundled_catalog,
    load_catalog,
    load_settings,
)
from devsetup.core.services.package_sets import build_package_plan


class TestFindConfigFile:
    def test_walks_up(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
        (tmp_path / CONFIG_FILE).write_text("shell: zsh\n")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert find_config_file(nested) == (tmp_path / CONFIG_FILE).resolve()

    def test_xdg_fallback(self, tmp_path: Path, monkeypatch):
        xdg = tmp_path / "xdg"
        (xdg / "devsetup").mkdir(parents=True)
        (xdg / "devsetup" / CONFIG_FILE).write_text("shell: fish\n")
        monkeypatch.setenv("XDG_CONFIG_HOME", str(xdg))
        work = tmp_path / "work"
        work.mkdir()
        assert find_config_file(work) == xdg / "devsetup" / CONFIG_FILE

    def test_none_found(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
        assert find_config_file(tmp_path) is None


class TestLoadSettings:
    def test_defaults_without_file(self):
        settings = load_settings(None, search=False)
        assert settings == Settings()
        assert settings.shell == "zsh"
        assert settings.progress_interval == 0.5
        assert settings.progress is None
        assert settings.skip_steps == []

    def test_loads_file(self, tmp_path: Path):
        path = tmp_path / CONFIG_FILE
        path.write_text(textwrap.dedent("""\
            progress_interval: 0.25
            progress: false
            shell: fish
            skip_steps: [proto]
        """))
        settings = load_settings(path)
        assert settings.progress_interval == 0.25
        assert settings.progress is False
        assert settings.shell == "fish"
        assert settings.skip_steps == ["proto"]

    def test_empty_file(self, tmp_path: Path):
        path = tmp_path / CONFIG_FILE
        path.write_text("")
        assert load_settings(path) == Settings()

    def test_missing_explicit_file(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="not found"):
            load_settings(tmp_path / "nope.yml")

    def test_invalid_yaml(self, tmp_path: Path):
        path = tmp_path / CONFIG_FILE
        path.write_text("shell: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_settings(path)

    def test_not_a_mapping(self, tmp_path: Path):
        path = tmp_path / CONFIG_FILE
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_settings(path)

    def test_schema_violation(self, tmp_path: Path):
        path = tmp_path / CONFIG_FILE
        path.write_text("progress_interval: -1\n")
        with pytest.raises(ConfigError, match="Invalid configuration"):
            load_settings(path)

    def test_config_error_exit_code(self):
        assert ConfigError("x").exit_code == 2

    def test_local_bin_path(self, tmp_path: Path):
        assert Settings().local_bin_path(tmp_path) == tmp_path / ".local" / "bin"
        assert Settings(local_bin="/opt/bin").local_bin_path(tmp_path) == Path("/opt/bin")


class TestCatalog:
    def test_bundled_profiles(self):
        catalog = load_bundled_catalog()
        assert catalog.profile_names == ["basic", "global"]
        assert catalog.get_profile("global").upgrade
        assert not catalog.get_profile("basic").upgrade

    def test_bundled_global_arch_plan(self):
        profile = load_bundled_catalog().get_profile("global")
        plan = build_package_plan("arch", profile)
        assert plan.needs_aur_helper
        assert plan.extra_tiers["arch_aur"] == ["nodejs-tldr", "lazydocker"]
        assert "ttf-meslo-nerd" in plan.packages
        assert "#" not in " ".join(plan.packages)

    def test_override_from_settings(self, tmp_path: Path):
        path = tmp_path / CONFIG_FILE
        path.write_text(textwrap.dedent("""\
            packages:
              profiles:
                minimal:
                  tiers:
                    shared: git
        """))
        catalog = load_catalog(load_settings(path))
        assert catalog.profile_names == ["minimal"]

    def test_default_is_bundled(self):
        assert load_catalog(Settings()).profile_names == ["basic", "global"]
