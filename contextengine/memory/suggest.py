"""
contextengine.memory.suggest — Keyword-based memory suggestions.

Scans free text line by line and proposes memory entries for lines
that look like decisions/rules (``note``) or configuration facts
(``config``).  Purely lexical; nothing is written.
"""

from __future__ import annotations

import re
from typing import List

from contextengine.core.types import MemoryEntry

_NOTE_RE = re.compile(r"(decision|rule|note|todo|guideline)", re.IGNORECASE)
_CONFIG_RE = re.compile(r"(API|endpoint|config|path)", re.IGNORECASE)
_LINE_SPLIT_RE = re.compile(r"\n+")

AUTO_TAG = "auto"


def suggest_entries(text: str) -> List[MemoryEntry]:
    """Propose entries for *text*, deduplicated by line text (first wins)."""
    lines = [line.strip() for line in _LINE_SPLIT_RE.split(text or "")]

    candidates: List[MemoryEntry] = []
    for line in lines:
        if not line:
            continue
        if _NOTE_RE.search(line):
            candidates.append(MemoryEntry("note", line, [AUTO_TAG]))
        if _CONFIG_RE.search(line):
            candidates.append(MemoryEntry("config", line, [AUTO_TAG]))

    seen = set()
    entries: List[MemoryEntry] = []
    for entry in candidates:
        if entry.text in seen:
            continue
        seen.add(entry.text)
        entries.append(entry)
    return entries
