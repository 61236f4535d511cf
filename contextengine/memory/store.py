"""
contextengine.memory.store — Append-only markdown memory notes.

Memory lives in plain ``.md``/``.mdc`` files so editors and other
assistants can read it.  Writes only ever append ``- [type] text``
lines; search is a case-insensitive substring scan over every memory
file under the memory directory.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from contextengine.analysis.walker import walk_files
from contextengine.core.config import Config
from contextengine.core.types import MemoryEntry, SearchHit

log = logging.getLogger(__name__)


class MemoryStore:
    """File-backed project memory rooted at the configured memory directory."""

    def __init__(self, config: Config):
        self.config = config

    @property
    def memory_dir(self) -> Path:
        return self.config.resolve_memory_dir()

    @property
    def mode(self) -> str:
        return self.config.memory_mode

    def append(
        self,
        entries: Iterable[MemoryEntry],
        file: Optional[str] = None,
    ) -> Tuple[Path, int]:
        """
        Append *entries* to *file* (default: the mode's memory file).

        Relative paths resolve against the workspace root.  Returns the
        target path and the number of lines written.
        """
        path = self.config.resolve(file) if file else self.config.default_memory_file
        lines = [e.to_line() for e in entries]
        if not lines:
            return path, 0

        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "a", encoding="utf-8") as fh:
            fh.write("\n".join(lines) + "\n")
        log.debug("Appended %d memory entries to %s", len(lines), path)
        return path, len(lines)

    def search(self, query: str) -> List[SearchHit]:
        """Memory files whose text contains *query*, case-insensitively."""
        root = self.memory_dir
        if not root.is_dir():
            return []

        needle = (query or "").lower()
        walk = walk_files(
            root,
            self.config.memory_extensions,
            excluded_dirs=(),
            skip_hidden_dirs=False,
        )

        hits: List[SearchHit] = []
        for entry in walk.files:
            try:
                text = Path(entry.path).read_text(encoding="utf-8", errors="replace")
            except OSError as exc:
                log.debug("Skipping unreadable memory file %s: %s", entry.path, exc)
                continue
            if needle in text.lower():
                hits.append(
                    SearchHit(file=entry.path, excerpt=text[: self.config.excerpt_chars])
                )
        return hits
