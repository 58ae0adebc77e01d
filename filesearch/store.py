"""
Search index store using SQLite.

The store is the source of truth for:
- Indexed paths (full path, name, type, size)
- Categories and tags
- Path↔category and path↔tag associations

It implements the corpus and association accessors the search core reads
through, and the write paths the CLI drives. Schema version is tracked in
``PRAGMA user_version``.
"""

import logging
import os
import sqlite3
from pathlib import Path
from typing import Optional

from .errors import NotFound, UsageError
from .types import (
    DEFAULT_CATEGORIES,
    UNCATEGORIZED,
    ItemKind,
    NamedItem,
    PathRecord,
    ScanResult,
    StoreStats,
)

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

# Directory recursion stops below this depth
MAX_SCAN_DEPTH = 100

_NAME_TABLES = {
    ItemKind.PATH: "paths",
    ItemKind.TAG: "tags",
    ItemKind.CATEGORY: "categories",
}

_SCHEMA_V1 = """
    CREATE TABLE IF NOT EXISTS paths (
        id INTEGER PRIMARY KEY,
        path TEXT UNIQUE NOT NULL,
        name TEXT NOT NULL,
        is_directory INTEGER NOT NULL,
        size INTEGER,
        parent_path TEXT
    );

    CREATE TABLE IF NOT EXISTS categories (
        id INTEGER PRIMARY KEY,
        name TEXT UNIQUE NOT NULL COLLATE NOCASE
    );

    CREATE TABLE IF NOT EXISTS path_categories (
        path_id INTEGER NOT NULL,
        category_id INTEGER NOT NULL,
        PRIMARY KEY (path_id, category_id),
        FOREIGN KEY (path_id) REFERENCES paths(id) ON DELETE CASCADE,
        FOREIGN KEY (category_id) REFERENCES categories(id) ON DELETE CASCADE
    );

    CREATE TABLE IF NOT EXISTS tags (
        id INTEGER PRIMARY KEY,
        name TEXT UNIQUE NOT NULL COLLATE NOCASE
    );

    CREATE TABLE IF NOT EXISTS path_tags (
        path_id INTEGER NOT NULL,
        tag_id INTEGER NOT NULL,
        PRIMARY KEY (path_id, tag_id),
        FOREIGN KEY (path_id) REFERENCES paths(id) ON DELETE CASCADE,
        FOREIGN KEY (tag_id) REFERENCES tags(id) ON DELETE CASCADE
    );

    CREATE INDEX IF NOT EXISTS idx_path_name ON paths(name);
    CREATE INDEX IF NOT EXISTS idx_path_parent ON paths(parent_path);
    CREATE INDEX IF NOT EXISTS idx_path_is_dir ON paths(is_directory);
    CREATE INDEX IF NOT EXISTS idx_category_name ON categories(name);
    CREATE INDEX IF NOT EXISTS idx_tag_name ON tags(name);
    CREATE INDEX IF NOT EXISTS idx_path_categories_path ON path_categories(path_id);
    CREATE INDEX IF NOT EXISTS idx_path_categories_cat ON path_categories(category_id);
    CREATE INDEX IF NOT EXISTS idx_path_tags_path ON path_tags(path_id);
    CREATE INDEX IF NOT EXISTS idx_path_tags_tag ON path_tags(tag_id);
"""


def _row_to_path(row: sqlite3.Row) -> PathRecord:
    return PathRecord(
        id=row["id"],
        path=row["path"],
        name=row["name"],
        is_directory=bool(row["is_directory"]),
        size=row["size"],
        parent_path=row["parent_path"],
    )


class SearchStore:
    """
    SQLite-backed store for paths, categories and tags.

    One connection per store. Callers own the lifecycle: use as a
    context manager or call close().
    """

    def __init__(self, store_path: Path):
        """
        Args:
            store_path: Path to SQLite database file
        """
        self._db_path = Path(store_path)
        self._conn: Optional[sqlite3.Connection] = None
        self._init_db()

    def _init_db(self) -> None:
        """Open the database and bring the schema up to date."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(self._db_path))
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA foreign_keys = ON")
        self._migrate()

    def _table_exists(self, name: str) -> bool:
        row = self._conn.execute(
            "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = ?",
            (name,),
        ).fetchone()
        return row is not None

    def _migrate(self) -> None:
        """
        Create or upgrade the schema.

        v0: paths and tags only, no categories, no user_version.
        v1: categories, associations, seeded default categories.

        Stores that already have categories but no user_version are
        brought to v1 without touching their associations.
        """
        version = self._conn.execute("PRAGMA user_version").fetchone()[0]
        if version >= SCHEMA_VERSION:
            return

        existing = version == 0 and self._table_exists("paths")
        legacy = existing and not self._table_exists("categories")

        self._conn.executescript(_SCHEMA_V1)
        with self._conn:
            self._conn.executemany(
                "INSERT OR IGNORE INTO categories (name) VALUES (?)",
                [(name,) for name in DEFAULT_CATEGORIES],
            )
            if legacy:
                # Existing paths predate categories
                cursor = self._conn.execute("""
                    INSERT OR IGNORE INTO path_categories (path_id, category_id)
                    SELECT p.id, c.id FROM paths p, categories c
                    WHERE c.name = ?
                """, (UNCATEGORIZED,))
                logger.info(
                    "Migrated %s to schema v%d: %d paths assigned to %s",
                    self._db_path, SCHEMA_VERSION, cursor.rowcount, UNCATEGORIZED,
                )
            elif existing:
                logger.info("Upgraded %s to schema v%d", self._db_path, SCHEMA_VERSION)
            else:
                logger.info("Created %s at schema v%d", self._db_path, SCHEMA_VERSION)
            self._conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")

    @property
    def schema_version(self) -> int:
        return self._conn.execute("PRAGMA user_version").fetchone()[0]

    # -------------------------------------------------------------------------
    # Paths
    # -------------------------------------------------------------------------

    def add_path(
        self,
        path: str,
        name: str,
        is_directory: bool,
        size: Optional[int] = None,
        parent_path: Optional[str] = None,
        *,
        commit: bool = True,
    ) -> bool:
        """
        Index a single path. Already-indexed paths are left unchanged.

        Returns:
            True if a new row was inserted
        """
        cursor = self._conn.execute("""
            INSERT OR IGNORE INTO paths (path, name, is_directory, size, parent_path)
            VALUES (?, ?, ?, ?, ?)
        """, (path, name, int(is_directory), None if is_directory else size, parent_path))
        if commit:
            self._conn.commit()
        return cursor.rowcount > 0

    def add_directory(self, directory: str) -> ScanResult:
        """
        Index a directory and everything below it in one transaction.

        Entries that cannot be stat'ed are logged and skipped.

        Raises:
            UsageError: If ``directory`` is not a directory
        """
        root = Path(directory)
        if not root.is_dir():
            raise UsageError(f"'{directory}' is not a valid directory")

        counts = {"files": 0, "directories": 1}
        with self._conn:
            self.add_path(str(root), root.name or str(root), True, commit=False)
            self._scan(root, counts, depth=0)

        logger.info(
            "Indexed %s: %d files, %d directories",
            root, counts["files"], counts["directories"],
        )
        return ScanResult(files=counts["files"], directories=counts["directories"])

    def _scan(self, directory: Path, counts: dict, depth: int) -> None:
        if depth > MAX_SCAN_DEPTH:
            logger.warning("Maximum depth reached at %s", directory)
            return
        try:
            entries = sorted(directory.iterdir())
        except OSError as e:
            logger.warning("Cannot open directory %s: %s", directory, e)
            return

        for entry in entries:
            try:
                st = entry.stat()
            except OSError as e:
                logger.warning("Cannot stat %s: %s", entry, e)
                continue

            is_dir = entry.is_dir()
            self.add_path(
                str(entry), entry.name, is_dir,
                size=None if is_dir else st.st_size,
                parent_path=str(directory),
                commit=False,
            )
            if is_dir:
                counts["directories"] += 1
                if not entry.is_symlink():
                    self._scan(entry, counts, depth + 1)
            else:
                counts["files"] += 1

    def get_path(self, path: str) -> Optional[PathRecord]:
        """Get an indexed path by its full path."""
        row = self._conn.execute("""
            SELECT id, path, name, is_directory, size, parent_path
            FROM paths WHERE path = ?
        """, (path,)).fetchone()
        return _row_to_path(row) if row else None

    def require_path(self, path: str) -> PathRecord:
        """Like get_path(), but raises NotFound."""
        record = self.get_path(path)
        if record is None:
            raise NotFound(f"Path not found in database: {path}")
        return record

    def remove_path(self, path: str) -> PathRecord:
        """
        Remove an indexed path and its associations.

        Raises:
            NotFound: If the path is not indexed
        """
        record = self.require_path(path)
        self._conn.execute("DELETE FROM paths WHERE id = ?", (record.id,))
        self._conn.commit()
        logger.info("Removed path %s", path)
        return record

    def get_paths(self, ids: list[int]) -> dict[int, PathRecord]:
        """
        Get multiple paths by id.

        Returns:
            Dict mapping id → PathRecord (missing ids omitted)
        """
        if not ids:
            return {}
        placeholders = ",".join("?" * len(ids))
        cursor = self._conn.execute(f"""
            SELECT id, path, name, is_directory, size, parent_path
            FROM paths WHERE id IN ({placeholders})
        """, tuple(ids))
        return {row["id"]: _row_to_path(row) for row in cursor}

    # -------------------------------------------------------------------------
    # Corpus and association access
    # -------------------------------------------------------------------------

    def list_names(self, kind: ItemKind) -> list[NamedItem]:
        """All items of one kind, ordered by name then id."""
        table = _NAME_TABLES[kind]
        cursor = self._conn.execute(
            f"SELECT id, name FROM {table} ORDER BY name, id"
        )
        return [NamedItem(id=row["id"], name=row["name"], kind=kind) for row in cursor]

    def run_find(self, query) -> list[PathRecord]:
        """Execute a query composed by filters.compose()."""
        cursor = self._conn.execute(query.sql, query.params)
        return [_row_to_path(row) for row in cursor]

    # -------------------------------------------------------------------------
    # Tags
    # -------------------------------------------------------------------------

    def _get_named(self, kind: ItemKind, name: str) -> Optional[NamedItem]:
        table = _NAME_TABLES[kind]
        row = self._conn.execute(
            f"SELECT id, name FROM {table} WHERE name = ? COLLATE NOCASE",
            (name,),
        ).fetchone()
        return NamedItem(id=row["id"], name=row["name"], kind=kind) if row else None

    def get_tag(self, name: str) -> Optional[NamedItem]:
        """Get a tag by name, ignoring case."""
        return self._get_named(ItemKind.TAG, name)

    def create_tag(self, name: str) -> NamedItem:
        """
        Create a tag. Callers check for duplicates first.

        Raises:
            UsageError: If a tag with that name (ignoring case) exists
        """
        try:
            cursor = self._conn.execute("INSERT INTO tags (name) VALUES (?)", (name,))
        except sqlite3.IntegrityError:
            raise UsageError(f"Tag already exists: {name}")
        self._conn.commit()
        return NamedItem(id=cursor.lastrowid, name=name, kind=ItemKind.TAG)

    def tag_path(self, path_id: int, tag_id: int) -> bool:
        """Associate a tag with a path. Returns False if already associated."""
        cursor = self._conn.execute(
            "INSERT OR IGNORE INTO path_tags (path_id, tag_id) VALUES (?, ?)",
            (path_id, tag_id),
        )
        self._conn.commit()
        return cursor.rowcount > 0

    def untag_path(self, path_id: int, tag_id: int) -> bool:
        """Remove a tag from a path. Returns False if it was not there."""
        cursor = self._conn.execute(
            "DELETE FROM path_tags WHERE path_id = ? AND tag_id = ?",
            (path_id, tag_id),
        )
        self._conn.commit()
        return cursor.rowcount > 0

    def tags_for_path(self, path_id: int) -> list[str]:
        cursor = self._conn.execute("""
            SELECT t.name FROM tags t
            JOIN path_tags pt ON t.id = pt.tag_id
            WHERE pt.path_id = ? ORDER BY t.name
        """, (path_id,))
        return [row["name"] for row in cursor]

    # -------------------------------------------------------------------------
    # Categories
    # -------------------------------------------------------------------------

    def get_category(self, name: str) -> Optional[NamedItem]:
        """Get a category by name, ignoring case."""
        return self._get_named(ItemKind.CATEGORY, name)

    def create_category(self, name: str) -> NamedItem:
        """
        Create a category.

        Raises:
            UsageError: If a category with that name (ignoring case) exists
        """
        try:
            cursor = self._conn.execute("INSERT INTO categories (name) VALUES (?)", (name,))
        except sqlite3.IntegrityError:
            raise UsageError(f"Category already exists: {name}")
        self._conn.commit()
        logger.info("Created category %r", name)
        return NamedItem(id=cursor.lastrowid, name=name, kind=ItemKind.CATEGORY)

    def categorize_path(self, path_id: int, category_id: int) -> bool:
        """Put a path in a category. Returns False if already there."""
        cursor = self._conn.execute(
            "INSERT OR IGNORE INTO path_categories (path_id, category_id) VALUES (?, ?)",
            (path_id, category_id),
        )
        self._conn.commit()
        return cursor.rowcount > 0

    def uncategorize_path(self, path_id: int, category_id: int) -> bool:
        """Take a path out of a category. Returns False if it was not there."""
        cursor = self._conn.execute(
            "DELETE FROM path_categories WHERE path_id = ? AND category_id = ?",
            (path_id, category_id),
        )
        self._conn.commit()
        return cursor.rowcount > 0

    def categories_for_path(self, path_id: int) -> list[str]:
        cursor = self._conn.execute("""
            SELECT c.name FROM categories c
            JOIN path_categories pc ON c.id = pc.category_id
            WHERE pc.path_id = ? ORDER BY c.name
        """, (path_id,))
        return [row["name"] for row in cursor]

    # -------------------------------------------------------------------------
    # Statistics
    # -------------------------------------------------------------------------

    def _count(self, sql: str) -> int:
        return self._conn.execute(sql).fetchone()[0]

    def stats(self) -> StoreStats:
        return StoreStats(
            paths=self._count("SELECT COUNT(*) FROM paths"),
            directories=self._count("SELECT COUNT(*) FROM paths WHERE is_directory = 1"),
            files=self._count("SELECT COUNT(*) FROM paths WHERE is_directory = 0"),
            tags=self._count("SELECT COUNT(*) FROM tags"),
            categories=self._count("SELECT COUNT(*) FROM categories"),
            categories_in_use=self._count(
                "SELECT COUNT(DISTINCT category_id) FROM path_categories"
            ),
        )

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def __del__(self):
        self.close()


def normalize_path(path: str) -> str:
    """Absolute form of a user-supplied path, without trailing separators."""
    return os.path.abspath(os.path.expanduser(path))
