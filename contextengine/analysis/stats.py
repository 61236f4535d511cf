"""
contextengine.analysis.stats — File and byte counts for a code path.
"""

from __future__ import annotations

import logging
import os
import stat
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional

from contextengine.analysis.walker import walk_files

log = logging.getLogger(__name__)


@dataclass
class CodeStats:
    files: int = 0
    bytes: int = 0
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"files": self.files, "bytes": self.bytes}

    def summary(self) -> str:
        if self.error:
            return f"Error: {self.error}"
        return f"files={self.files}, bytes={self.bytes}"


def analyze_code_stats(
    target: str,
    extensions: tuple,
    excluded_dirs: Iterable[str] = (),
) -> CodeStats:
    """Count source files and their total size under *target*.

    A directory is walked recursively (hidden directories included);
    a single file counts as one regardless of its extension.
    """
    try:
        st = os.stat(target)
        if not stat.S_ISDIR(st.st_mode):
            return CodeStats(files=1, bytes=st.st_size)
        walk = walk_files(
            target, extensions, excluded_dirs=excluded_dirs, skip_hidden_dirs=False
        )
    except OSError as exc:
        log.info("Code stats failed for %s: %s", target, exc, extra={"path": target})
        return CodeStats(error=str(exc) or type(exc).__name__)
    return CodeStats(files=len(walk.files), bytes=walk.total_bytes)
