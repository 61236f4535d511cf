"""
contextengine.core.types — Data types shared by the memory tools.

Plain dataclasses, serialisable to dict/JSON in one call.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping


@dataclass
class MemoryEntry:
    """One line of project memory: ``- [type] text``."""

    type: str
    text: str
    tags: List[str] = field(default_factory=list)

    def to_line(self) -> str:
        return f"- [{self.type}] {self.text}"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "text": self.text, "tags": list(self.tags)}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MemoryEntry":
        """Build from loosely-typed client input.

        Clients send arbitrary objects; a missing type defaults to
        ``note`` and non-string values are stringified.
        """
        tags = data.get("tags") or []
        return cls(
            type=str(data.get("type") or "note"),
            text=str(data.get("text", "")),
            tags=[str(t) for t in tags],
        )


@dataclass
class SearchHit:
    """A memory file whose text matched a search query."""

    file: str
    excerpt: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"file": self.file, "excerpt": self.excerpt}
