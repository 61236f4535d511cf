"""contextengine.memory — Project memory notes: suggestion, append, search."""

from contextengine.memory.store import MemoryStore
from contextengine.memory.suggest import suggest_entries

__all__ = ["MemoryStore", "suggest_entries"]
