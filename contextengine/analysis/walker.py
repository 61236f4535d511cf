"""
contextengine.analysis.walker — Recursive source-file enumeration.

Walks a directory tree depth-first in pre-order, collecting regular
files whose extension is on an allow-list.  Entries that cannot be
read are skipped, never fatal, but every skip is recorded with a
reason so callers (and tests) can see what was left out.

Only the root itself is fatal: if it cannot be listed, the
``OSError`` propagates to the caller, which owns that failure tier.
"""

from __future__ import annotations

import logging
import os
import stat
from dataclasses import dataclass, field
from pathlib import Path
from typing import FrozenSet, Iterable, List, Tuple

log = logging.getLogger(__name__)

# Skip reasons
HIDDEN_DIR = "hidden-dir"
EXCLUDED_DIR = "excluded-dir"
STAT_FAILED = "stat-failed"
LIST_FAILED = "list-failed"
SYMLINK_CYCLE = "symlink-cycle"
READ_FAILED = "read-failed"
PARSE_FAILED = "parse-failed"


@dataclass(frozen=True)
class FileEntry:
    """A discovered source file."""

    path: str  # absolute
    relative_path: str  # POSIX-style, relative to the walk root
    size: int = 0


@dataclass(frozen=True)
class SkippedEntry:
    """A directory entry that was left out of the walk, and why."""

    path: str
    reason: str
    detail: str = ""

    def to_dict(self) -> dict:
        return {"path": self.path, "reason": self.reason, "detail": self.detail}


@dataclass
class WalkResult:
    """Accumulator for one walk.  Owned by a single invocation."""

    root: str
    files: List[FileEntry] = field(default_factory=list)
    skipped: List[SkippedEntry] = field(default_factory=list)

    @property
    def total_bytes(self) -> int:
        return sum(f.size for f in self.files)

    def skipped_for(self, reason: str) -> List[SkippedEntry]:
        return [s for s in self.skipped if s.reason == reason]


def has_extension(name: str, extensions: Iterable[str]) -> bool:
    return any(name.endswith(ext) for ext in extensions)


def walk_files(
    root: str | Path,
    extensions: Tuple[str, ...],
    excluded_dirs: Iterable[str] = ("node_modules",),
    skip_hidden_dirs: bool = True,
) -> WalkResult:
    """Enumerate files under *root* whose name ends in one of *extensions*.

    Directory entries are visited in name order, so two walks over an
    unchanged tree return the same file order.

    Raises
    ------
    OSError
        If *root* does not exist, is not a directory, or cannot be listed.
    """
    abs_root = os.path.abspath(os.fspath(root))
    result = WalkResult(root=abs_root)

    # The root listing is not guarded: its failure is the caller's error.
    entries = _list_dir(abs_root)
    _walk_entries(
        entries,
        result,
        extensions,
        frozenset(excluded_dirs),
        skip_hidden_dirs,
        frozenset({os.path.realpath(abs_root)}),
    )
    log.debug(
        "Walked %s: %d files, %d skipped",
        abs_root,
        len(result.files),
        len(result.skipped),
    )
    return result


def _list_dir(path: str) -> List[os.DirEntry]:
    with os.scandir(path) as it:
        return sorted(it, key=lambda e: e.name)


def _walk_entries(
    entries: List[os.DirEntry],
    result: WalkResult,
    extensions: Tuple[str, ...],
    excluded_dirs: frozenset,
    skip_hidden_dirs: bool,
    ancestors: FrozenSet[str],
) -> None:
    # ancestors: real paths of the directories on the current descent path
    for entry in entries:
        try:
            # Follows symlinks, like a plain stat()
            st = entry.stat()
        except OSError as exc:
            _skip(result, entry.path, STAT_FAILED, exc)
            continue

        if stat.S_ISDIR(st.st_mode):
            if skip_hidden_dirs and entry.name.startswith("."):
                _skip(result, entry.path, HIDDEN_DIR)
                continue
            if entry.name in excluded_dirs:
                _skip(result, entry.path, EXCLUDED_DIR)
                continue

            real = os.path.realpath(entry.path)
            if real in ancestors:
                _skip(result, entry.path, SYMLINK_CYCLE)
                continue

            try:
                children = _list_dir(entry.path)
            except OSError as exc:
                _skip(result, entry.path, LIST_FAILED, exc)
                continue
            _walk_entries(
                children,
                result,
                extensions,
                excluded_dirs,
                skip_hidden_dirs,
                ancestors | {real},
            )

        elif stat.S_ISREG(st.st_mode) and has_extension(entry.name, extensions):
            rel = Path(os.path.relpath(entry.path, result.root)).as_posix()
            result.files.append(
                FileEntry(path=entry.path, relative_path=rel, size=st.st_size)
            )


def _skip(result: WalkResult, path: str, reason: str, exc: OSError | None = None) -> None:
    detail = str(exc) if exc is not None else ""
    log.debug("Skipping %s (%s) %s", path, reason, detail)
    result.skipped.append(SkippedEntry(path=path, reason=reason, detail=detail))
