"""
contextengine.core.config — Configuration for the context engine server.

Supports loading from YAML, environment variables, and programmatic
construction.  Every path setting is resolved against
``workspace_root`` so the server behaves the same regardless of the
directory the MCP client launched it from.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

#: Environment variables understood by ``Config.from_env``.
ENV_CONFIG = "CONTEXTENGINE_CONFIG"
ENV_WORKSPACE = "CONTEXTENGINE_WORKSPACE"
ENV_MEMORY_DIR = "CONTEXTENGINE_MEMORY_DIR"
ENV_LOG_LEVEL = "CONTEXTENGINE_LOG_LEVEL"

AUGMENT_MEMORY_FILE = "mcp-memory.md"
MCP_MEMORY_FILE = "project.mdc"


@dataclass
class Config:
    """
    Central configuration object.

    Construct directly, via ``Config.from_yaml(path)``, or via
    ``Config.from_env()`` when launched by an MCP client.
    """

    # -- workspace ----------------------------------------------------------
    workspace_root: Path = field(default_factory=Path.cwd)

    # -- memory notes -------------------------------------------------------
    memory_dir: Optional[Path] = None  # explicit override, wins when set
    augment_rules_dir: Path = Path("..") / ".augment" / "rules"
    fallback_memory_dir: Path = Path(".mcp") / "memory"
    memory_extensions: Tuple[str, ...] = (".md", ".mdc")
    excerpt_chars: int = 200

    # -- code analysis ------------------------------------------------------
    source_extensions: Tuple[str, ...] = (".js", ".jsx", ".ts", ".tsx")
    stats_extensions: Tuple[str, ...] = (
        ".ts",
        ".tsx",
        ".js",
        ".jsx",
        ".py",
        ".kt",
        ".java",
        ".rb",
        ".go",
        ".rs",
        ".c",
        ".cpp",
    )
    excluded_dirs: Tuple[str, ...] = ("node_modules",)
    high_complexity_threshold: int = 10

    # -- input limits -------------------------------------------------------
    max_input_bytes: int = 100_000

    # -- logging ------------------------------------------------------------
    structured_logging: bool = False
    log_level: str = "INFO"

    # -----------------------------------------------------------------------
    # Construction helpers
    # -----------------------------------------------------------------------

    def __post_init__(self) -> None:
        self.workspace_root = Path(self.workspace_root).resolve()
        if self.memory_dir is not None:
            self.memory_dir = Path(self.memory_dir)
        self.augment_rules_dir = Path(self.augment_rules_dir)
        self.fallback_memory_dir = Path(self.fallback_memory_dir)
        # YAML gives lists; keep the tuples hashable and immutable
        self.memory_extensions = tuple(self.memory_extensions)
        self.source_extensions = tuple(self.source_extensions)
        self.stats_extensions = tuple(self.stats_extensions)
        self.excluded_dirs = tuple(self.excluded_dirs)

    @classmethod
    def from_yaml(cls, path: str | Path, **overrides: Any) -> "Config":
        """Load configuration from a YAML file.

        Keys may live under a ``contextengine:`` section or at the top
        level.  Unknown keys are silently ignored so the file can carry
        client-level settings alongside ours.
        """
        import yaml

        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path, "r", encoding="utf-8") as fh:
            raw: Dict[str, Any] = yaml.safe_load(fh) or {}

        data = raw.get("contextengine", raw)

        known = {f.name for f in cls.__dataclass_fields__.values()}
        filtered = {k: v for k, v in data.items() if k in known}
        filtered.update(overrides)
        return cls(**filtered)

    @classmethod
    def from_env(cls) -> "Config":
        """Build a config from ``CONTEXTENGINE_*`` environment variables."""
        overrides: Dict[str, Any] = {}
        if os.environ.get(ENV_WORKSPACE):
            overrides["workspace_root"] = Path(os.environ[ENV_WORKSPACE])
        if os.environ.get(ENV_MEMORY_DIR):
            overrides["memory_dir"] = Path(os.environ[ENV_MEMORY_DIR])
        if os.environ.get(ENV_LOG_LEVEL):
            overrides["log_level"] = os.environ[ENV_LOG_LEVEL]

        config_path = os.environ.get(ENV_CONFIG)
        if config_path:
            return cls.from_yaml(config_path, **overrides)
        return cls(**overrides)

    # -----------------------------------------------------------------------
    # Derived paths
    # -----------------------------------------------------------------------

    def resolve(self, path: str | Path) -> Path:
        """Resolve *path* against the workspace root (absolute paths pass through)."""
        p = Path(path).expanduser()
        if not p.is_absolute():
            p = self.workspace_root / p
        return Path(os.path.normpath(p))

    def resolve_memory_dir(self) -> Path:
        """Directory holding memory notes.

        An explicit ``memory_dir`` wins; otherwise an existing Augment
        rules directory is used, falling back to ``.mcp/memory``.
        """
        if self.memory_dir is not None:
            return self.resolve(self.memory_dir)
        augment = self.resolve(self.augment_rules_dir)
        if augment.is_dir():
            return augment
        return self.resolve(self.fallback_memory_dir)

    @property
    def memory_mode(self) -> str:
        """``"Augment"`` when notes live in an Augment rules tree, else ``"MCP"``."""
        if ".augment" in self.resolve_memory_dir().parts:
            return "Augment"
        return "MCP"

    @property
    def default_memory_file(self) -> Path:
        name = AUGMENT_MEMORY_FILE if self.memory_mode == "Augment" else MCP_MEMORY_FILE
        return self.resolve_memory_dir() / name

    # -----------------------------------------------------------------------
    # Serialisation
    # -----------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Serialise to a plain dict (YAML/JSON-safe)."""
        return {
            "workspace_root": str(self.workspace_root),
            "memory_dir": str(self.memory_dir) if self.memory_dir else None,
            "resolved_memory_dir": str(self.resolve_memory_dir()),
            "memory_mode": self.memory_mode,
            "augment_rules_dir": str(self.augment_rules_dir),
            "fallback_memory_dir": str(self.fallback_memory_dir),
            "memory_extensions": list(self.memory_extensions),
            "excerpt_chars": self.excerpt_chars,
            "source_extensions": list(self.source_extensions),
            "stats_extensions": list(self.stats_extensions),
            "excluded_dirs": list(self.excluded_dirs),
            "high_complexity_threshold": self.high_complexity_threshold,
            "max_input_bytes": self.max_input_bytes,
            "structured_logging": self.structured_logging,
            "log_level": self.log_level,
        }
