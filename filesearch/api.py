"""
Core API for the file search index.

FileSearch owns the store handle and the configuration, and wires the
search components to them:
- add()/remove()/info(): index paths
- search()/exact()/prefix()/substring()/fuzzy(): name matching
- find(): structured category/tag/name filter
- tag()/categorize() and friends: associations, with near-duplicate
  checking for new tags
"""

import logging
from pathlib import Path
from typing import Optional

from . import filters
from .config import get_default_store_path, load_or_create_config, save_config
from .errors import NotFound, UsageError
from .logging_config import configure_ops_log
from .matching import MatchDispatcher
from .protocol import DecisionCallback
from .similarity import resolve_tag
from .store import SearchStore, normalize_path
from .types import (
    ItemKind,
    MatchResult,
    MatchStrategy,
    NamedItem,
    PathInfo,
    PathRecord,
    ScanResult,
    StoreStats,
    TagOutcome,
)

logger = logging.getLogger(__name__)

# Strategies reported by tagsearch
TAG_SEARCH_STRATEGIES = (MatchStrategy.EXACT, MatchStrategy.SUBSTRING, MatchStrategy.FUZZY)


class FileSearch:
    """
    A local index of paths, tags and categories with typo-tolerant search.

    Usable as a context manager; close() releases the database and the
    operations log.
    """

    def __init__(self, store_path: Optional[Path] = None, *, ops_log: bool = True):
        """
        Args:
            store_path: Store directory (default: $FILESEARCH_STORE_PATH or ~/.filesearch/)
            ops_log: Write INFO-level operations to filesearch-ops.log in the store
        """
        self._store_path = Path(store_path) if store_path is not None else get_default_store_path()
        self.config = load_or_create_config(self._store_path)
        self._store = SearchStore(self.config.db_path)
        self._ops_handler = configure_ops_log(self._store_path) if ops_log else None

    @property
    def store(self) -> SearchStore:
        return self._store

    @property
    def store_path(self) -> Path:
        return self._store_path

    def _dispatcher(self, kind: ItemKind) -> MatchDispatcher:
        settings = self.config.search
        return MatchDispatcher(
            self._store,
            kind,
            result_cap=settings.result_cap,
            fuzzy_distance=settings.fuzzy_default_distance,
        )

    # -------------------------------------------------------------------------
    # Paths
    # -------------------------------------------------------------------------

    def add(self, directory: str) -> tuple[str, ScanResult]:
        """Index a directory recursively. Returns the normalized path and counts."""
        path = normalize_path(directory)
        return path, self._store.add_directory(path)

    def remove(self, path: str) -> PathRecord:
        return self._store.remove_path(normalize_path(path))

    def info(self, path: str) -> PathInfo:
        record = self._store.require_path(normalize_path(path))
        return PathInfo(
            record=record,
            categories=self._store.categories_for_path(record.id),
            tags=self._store.tags_for_path(record.id),
        )

    def paths_for(self, results: list[MatchResult]) -> dict[int, PathRecord]:
        """Full path records for path match results, keyed by id."""
        return self._store.get_paths([r.item.id for r in results])

    # -------------------------------------------------------------------------
    # Name search
    # -------------------------------------------------------------------------

    def search(self, query: str) -> dict[MatchStrategy, list[MatchResult]]:
        """All four strategies over path names, each reported separately."""
        return self._dispatcher(ItemKind.PATH).search_all(query)

    def exact(self, query: str) -> list[MatchResult]:
        return self._dispatcher(ItemKind.PATH).exact(query)

    def prefix(self, query: str) -> list[MatchResult]:
        return self._dispatcher(ItemKind.PATH).prefix(query)

    def substring(self, query: str) -> list[MatchResult]:
        return self._dispatcher(ItemKind.PATH).substring(query)

    def fuzzy(self, query: str, max_distance: Optional[int] = None) -> list[MatchResult]:
        return self._dispatcher(ItemKind.PATH).fuzzy(query, max_distance)

    def tagsearch(self, query: str) -> dict[MatchStrategy, list[MatchResult]]:
        """Exact, substring and fuzzy matches over tag names."""
        return self._dispatcher(ItemKind.TAG).search_all(query, TAG_SEARCH_STRATEGIES)

    def find(
        self,
        category: Optional[str] = None,
        tag: Optional[str] = None,
        name: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[PathRecord]:
        """
        Paths matching every given filter.

        Raises:
            UsageError: If no filter is given
        """
        cap = limit if limit is not None else self.config.search.result_cap
        return filters.find(self._store, category, tag, name, cap=cap)

    # -------------------------------------------------------------------------
    # Tags
    # -------------------------------------------------------------------------

    def tag(
        self,
        path: str,
        name: str,
        decide: DecisionCallback,
    ) -> tuple[TagOutcome, bool]:
        """
        Tag a path, creating the tag if needed.

        A new tag name close to an existing one is passed to ``decide``
        before anything is written.

        Returns:
            (outcome, added) where ``added`` is False if the path already
            had the tag

        Raises:
            NotFound: If the path is not indexed
            Cancelled: If ``decide`` abandons tag creation
        """
        record = self._store.require_path(normalize_path(path))
        outcome = resolve_tag(
            self._store, name, decide, threshold=self.config.search.similarity_threshold,
        )
        added = self._store.tag_path(record.id, outcome.tag.id)
        if added:
            logger.info("Tagged %s [%s]", record.path, outcome.tag.name)
        return outcome, added

    def untag(self, path: str, name: str) -> bool:
        """
        Returns:
            False if the path did not have the tag

        Raises:
            NotFound: If the path is not indexed or the tag does not exist
        """
        record = self._store.require_path(normalize_path(path))
        tag = self._store.get_tag(name)
        if tag is None:
            raise NotFound(f"Tag not found: {name}")
        removed = self._store.untag_path(record.id, tag.id)
        if removed:
            logger.info("Untagged %s [%s]", record.path, tag.name)
        return removed

    def tags(self, path: Optional[str] = None) -> list[str]:
        """All tag names, or the tags on one path."""
        if path is None:
            return [t.name for t in self._store.list_names(ItemKind.TAG)]
        record = self._store.require_path(normalize_path(path))
        return self._store.tags_for_path(record.id)

    # -------------------------------------------------------------------------
    # Categories
    # -------------------------------------------------------------------------

    def _require_category(self, name: str) -> NamedItem:
        category = self._store.get_category(name)
        if category is None:
            raise NotFound(
                f"Category not found: {name}. "
                f"Use 'create-category {name}' to create it first."
            )
        return category

    def categorize(self, path: str, category: str) -> tuple[NamedItem, bool]:
        """
        Returns:
            (category, added) where ``added`` is False if already categorized
        """
        record = self._store.require_path(normalize_path(path))
        cat = self._require_category(category)
        added = self._store.categorize_path(record.id, cat.id)
        if added:
            logger.info("Categorized %s [%s]", record.path, cat.name)
        return cat, added

    def uncategorize(self, path: str, category: str) -> bool:
        record = self._store.require_path(normalize_path(path))
        cat = self._require_category(category)
        removed = self._store.uncategorize_path(record.id, cat.id)
        if removed:
            logger.info("Uncategorized %s [%s]", record.path, cat.name)
        return removed

    def categories(self, path: Optional[str] = None) -> list[str]:
        """All category names, or the categories of one path."""
        if path is None:
            return [c.name for c in self._store.list_names(ItemKind.CATEGORY)]
        record = self._store.require_path(normalize_path(path))
        return self._store.categories_for_path(record.id)

    def create_category(self, name: str) -> NamedItem:
        name = (name or "").strip()
        if not name:
            raise UsageError("Category name must not be empty")
        return self._store.create_category(name)

    # -------------------------------------------------------------------------
    # Settings and statistics
    # -------------------------------------------------------------------------

    def get_setting(self, key: str) -> int:
        return self.config.search.get(key)

    def set_setting(self, key: str, value) -> int:
        """Validate, apply and persist one setting."""
        number = self.config.search.set(key, value)
        save_config(self.config)
        logger.info("Setting %s = %d", key, number)
        return number

    def settings(self) -> dict[str, int]:
        return self.config.search.to_dict()

    def stats(self) -> StoreStats:
        return self._store.stats()

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def close(self) -> None:
        self._store.close()
        if self._ops_handler is not None:
            logging.getLogger("filesearch").removeHandler(self._ops_handler)
            self._ops_handler.close()
            self._ops_handler = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
