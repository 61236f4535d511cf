"""Tests for contextengine.core.config."""

import pytest
from pathlib import Path
from contextengine.core.config import (
    AUGMENT_MEMORY_FILE,
    MCP_MEMORY_FILE,
    Config,
)


class TestConfig:
    def test_defaults(self):
        c = Config()
        assert c.workspace_root == Path.cwd().resolve()
        assert c.memory_dir is None
        assert c.source_extensions == (".js", ".jsx", ".ts", ".tsx")
        assert len(c.stats_extensions) == 12
        assert c.excluded_dirs == ("node_modules",)
        assert c.high_complexity_threshold == 10
        assert c.excerpt_chars == 200

    def test_resolve_relative(self, workspace):
        c = Config(workspace_root=workspace)
        assert c.resolve("src/app.ts") == workspace.resolve() / "src" / "app.ts"

    def test_resolve_absolute(self, workspace, tmp_path):
        c = Config(workspace_root=workspace)
        assert c.resolve(tmp_path.resolve() / "x.ts") == tmp_path.resolve() / "x.ts"

    def test_from_yaml(self, tmp_path):
        yaml_path = tmp_path / "test.yaml"
        yaml_path.write_text(
            f"contextengine:\n"
            f"  workspace_root: {tmp_path}\n"
            f"  high_complexity_threshold: 15\n"
            f"  excluded_dirs: [node_modules, dist]\n",
            encoding="utf-8",
        )
        c = Config.from_yaml(yaml_path)
        assert c.workspace_root == tmp_path.resolve()
        assert c.high_complexity_threshold == 15
        assert c.excluded_dirs == ("node_modules", "dist")

    def test_from_yaml_top_level(self, tmp_path):
        yaml_path = tmp_path / "flat.yaml"
        yaml_path.write_text("excerpt_chars: 50\nunknown_key: 1\n", encoding="utf-8")
        c = Config.from_yaml(yaml_path)
        assert c.excerpt_chars == 50

    def test_from_yaml_overrides(self, tmp_path):
        yaml_path = tmp_path / "test.yaml"
        yaml_path.write_text("log_level: DEBUG\n", encoding="utf-8")
        c = Config.from_yaml(yaml_path, log_level="WARNING")
        assert c.log_level == "WARNING"

    def test_from_yaml_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            Config.from_yaml(tmp_path / "nonexistent.yaml")

    def test_from_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("CONTEXTENGINE_WORKSPACE", str(tmp_path))
        monkeypatch.setenv("CONTEXTENGINE_MEMORY_DIR", "notes")
        monkeypatch.setenv("CONTEXTENGINE_LOG_LEVEL", "DEBUG")
        monkeypatch.delenv("CONTEXTENGINE_CONFIG", raising=False)
        c = Config.from_env()
        assert c.workspace_root == tmp_path.resolve()
        assert c.resolve_memory_dir() == tmp_path.resolve() / "notes"
        assert c.log_level == "DEBUG"

    def test_from_env_config_file(self, tmp_path, monkeypatch):
        yaml_path = tmp_path / "ce.yaml"
        yaml_path.write_text("max_input_bytes: 10\n", encoding="utf-8")
        monkeypatch.setenv("CONTEXTENGINE_CONFIG", str(yaml_path))
        monkeypatch.delenv("CONTEXTENGINE_WORKSPACE", raising=False)
        monkeypatch.delenv("CONTEXTENGINE_MEMORY_DIR", raising=False)
        monkeypatch.delenv("CONTEXTENGINE_LOG_LEVEL", raising=False)
        assert Config.from_env().max_input_bytes == 10

    def test_to_dict(self, config):
        d = config.to_dict()
        assert d["workspace_root"] == str(config.workspace_root)
        assert d["memory_mode"] == "MCP"
        assert d["excluded_dirs"] == ["node_modules"]


class TestMemoryLocation:
    def test_fallback_dir(self, config, workspace):
        assert config.resolve_memory_dir() == workspace.resolve() / ".mcp" / "memory"
        assert config.memory_mode == "MCP"
        assert config.default_memory_file.name == MCP_MEMORY_FILE

    def test_augment_dir_when_present(self, config, tmp_path):
        rules = tmp_path / ".augment" / "rules"
        rules.mkdir(parents=True)
        assert config.resolve_memory_dir() == rules.resolve()
        assert config.memory_mode == "Augment"
        assert config.default_memory_file.name == AUGMENT_MEMORY_FILE

    def test_explicit_override_wins(self, workspace, tmp_path):
        (tmp_path / ".augment" / "rules").mkdir(parents=True)
        c = Config(workspace_root=workspace, memory_dir="docs/memory")
        assert c.resolve_memory_dir() == workspace.resolve() / "docs" / "memory"
        assert c.memory_mode == "MCP"
