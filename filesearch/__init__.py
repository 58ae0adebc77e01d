"""
filesearch

A local index of files, folders, tags and categories with typo-tolerant
name search.

Quick Start:
    from filesearch import FileSearch

    with FileSearch() as fs:       # uses ~/.filesearch/
        fs.add("~/Music")
        for result in fs.fuzzy("beethovn"):
            print(result.item.name, result.distance)

CLI Usage:
    filesearch add ~/Music
    filesearch search "sonata"
    filesearch find --category Music --tag classical

Environment Variables:
    FILESEARCH_STORE_PATH  - Override default store location
    FILESEARCH_VERBOSE     - Set to 1 for debug logging

The store is initialized automatically on first use. Settings are persisted
in a TOML file within the store directory.
"""

from .api import FileSearch
from .distance import distance
from .errors import Cancelled, FileSearchError, NotFound, UsageError
from .matching import MatchDispatcher
from .similarity import check, resolve_tag
from .types import (
    Decision,
    ItemKind,
    MatchResult,
    MatchStrategy,
    NamedItem,
    PathRecord,
    SimilarityFinding,
)

__version__ = "0.1.0"
__all__ = [
    "FileSearch",
    "MatchDispatcher",
    "distance",
    "check",
    "resolve_tag",
    "Decision",
    "ItemKind",
    "MatchResult",
    "MatchStrategy",
    "NamedItem",
    "PathRecord",
    "SimilarityFinding",
    "FileSearchError",
    "UsageError",
    "NotFound",
    "Cancelled",
]
