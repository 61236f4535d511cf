"""contextengine.core — Configuration, logging, and shared data types."""

from contextengine.core.config import Config
from contextengine.core.logging import StructuredFormatter, configure_logging
from contextengine.core.types import MemoryEntry, SearchHit

__all__ = [
    "Config",
    "configure_logging",
    "StructuredFormatter",
    "MemoryEntry",
    "SearchHit",
]
