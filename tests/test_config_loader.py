"""Tests for collection_merger.config_loader — hierarchical config loading."""

import pytest
import yaml

from collection_merger.config_loader import (
    _interpolate_recursive,
    discover_config_files,
    interpolate_env_vars,
    load_config,
    load_config_file,
    load_hierarchical_config,
)
from collection_merger.config_schema import MergerConfig


@pytest.fixture
def isolated_dirs(tmp_path, monkeypatch):
    """Point CWD and HOME at empty temp dirs and clear the env override."""
    cwd = tmp_path / "project"
    home = tmp_path / "home"
    cwd.mkdir()
    home.mkdir()
    monkeypatch.chdir(cwd)
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv("COLLECTION_MERGER_CONFIG", raising=False)
    return cwd, home


def _write(path, text):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
    return path


# -------------------------------------------------------------------------
# Env var interpolation
# -------------------------------------------------------------------------


class TestInterpolateEnvVars:
    """Tests for ${VAR} and ${VAR:-default} substitution."""

    def test_replaces_set_var(self, monkeypatch):
        monkeypatch.setenv("MERGE_PLACEHOLDER", "none")
        assert interpolate_env_vars("${MERGE_PLACEHOLDER}") == "none"

    def test_unset_var_replaced_with_empty(self, monkeypatch):
        monkeypatch.delenv("UNSET_VAR_XYZ", raising=False)
        assert interpolate_env_vars("${UNSET_VAR_XYZ}") == ""

    def test_default_used_when_unset(self, monkeypatch):
        monkeypatch.delenv("UNSET_VAR_XYZ", raising=False)
        assert (
            interpolate_env_vars("${UNSET_VAR_XYZ:-fallback}")
            == "fallback"
        )

    def test_empty_env_var_uses_default(self, monkeypatch):
        monkeypatch.setenv("EMPTY_VAR", "")
        assert (
            interpolate_env_vars("${EMPTY_VAR:-fallback}") == "fallback"
        )

    def test_literal_dollar_brace_no_closing(self):
        assert interpolate_env_vars("${NO_CLOSE") == "${NO_CLOSE"

    def test_nested_structures(self, monkeypatch):
        monkeypatch.setenv("LOG_PATH", "/var/log/merge.log")
        data = {"logging": {"file": "${LOG_PATH}"}, "ids": ["${LOG_PATH}", 1]}
        assert _interpolate_recursive(data) == {
            "logging": {"file": "/var/log/merge.log"},
            "ids": ["/var/log/merge.log", 1],
        }


# -------------------------------------------------------------------------
# Single file loading
# -------------------------------------------------------------------------


class TestLoadConfigFile:
    """Tests for load_config_file()."""

    def test_mapping(self, tmp_path):
        path = _write(tmp_path / "c.yml", "path:\n  placeholder: '-'\n")
        assert load_config_file(path) == {"path": {"placeholder": "-"}}

    def test_empty_file(self, tmp_path):
        path = _write(tmp_path / "c.yml", "")
        assert load_config_file(path) == {}

    def test_non_mapping_root_rejected(self, tmp_path):
        path = _write(tmp_path / "c.yml", "- a\n- b\n")
        with pytest.raises(ValueError, match="must contain a mapping"):
            load_config_file(path)

    def test_invalid_yaml(self, tmp_path):
        path = _write(tmp_path / "c.yml", "path: [unclosed\n")
        with pytest.raises(yaml.YAMLError):
            load_config_file(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config_file(tmp_path / "missing.yml")


# -------------------------------------------------------------------------
# Discovery and hierarchical merge
# -------------------------------------------------------------------------


class TestDiscovery:
    """Tests for discover_config_files()."""

    def test_nothing_found(self, isolated_dirs):
        assert discover_config_files() == []

    def test_precedence_order(self, isolated_dirs, tmp_path, monkeypatch):
        cwd, home = isolated_dirs
        explicit = _write(tmp_path / "explicit.yml", "{}")
        project = _write(cwd / ".collection_merger" / "config.yml", "{}")
        user = _write(
            home / ".config" / "collection_merger" / "config.yml", "{}"
        )
        monkeypatch.setenv("COLLECTION_MERGER_CONFIG", str(explicit))

        assert discover_config_files() == [explicit.resolve(), project, user]

    def test_missing_env_path_skipped(self, isolated_dirs, monkeypatch):
        monkeypatch.setenv("COLLECTION_MERGER_CONFIG", "/nonexistent/c.yml")
        assert discover_config_files() == []


class TestLoadHierarchicalConfig:
    """Tests for load_hierarchical_config() and load_config()."""

    def test_zero_config(self, isolated_dirs):
        assert load_hierarchical_config() == {}
        assert load_config() == MergerConfig()

    def test_project_wins_per_section(self, isolated_dirs):
        cwd, home = isolated_dirs
        _write(
            home / ".config" / "collection_merger" / "config.yml",
            "path:\n  placeholder: user\nlogging:\n  level: DEBUG\n",
        )
        _write(
            cwd / ".collection_merger" / "config.yml",
            "path:\n  id_fields: [id]\n",
        )

        merged = load_hierarchical_config()

        # shallow merge: the project "path" section replaces the user one
        assert merged == {
            "path": {"id_fields": ["id"]},
            "logging": {"level": "DEBUG"},
        }

    def test_env_interpolation_after_merge(self, isolated_dirs, monkeypatch):
        cwd, _home = isolated_dirs
        monkeypatch.setenv("MERGE_LOG_FILE", "/tmp/merge.log")
        _write(
            cwd / ".collection_merger" / "config.yml",
            "logging:\n  file: ${MERGE_LOG_FILE}\n",
        )

        config = load_config()

        assert config.logging.file == "/tmp/merge.log"

    def test_invalid_file_propagates(self, isolated_dirs):
        cwd, _home = isolated_dirs
        _write(cwd / ".collection_merger" / "config.yml", "- not a mapping\n")

        with pytest.raises(ValueError):
            load_hierarchical_config()
