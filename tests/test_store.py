"""
Tests for the SQLite search store: schema, indexing, associations, migration.
"""

import os
import sqlite3

import pytest

from filesearch.errors import NotFound, UsageError
from filesearch.filters import find
from filesearch.store import SCHEMA_VERSION, SearchStore, normalize_path
from filesearch.types import ItemKind


def _category_names(store):
    return [c.name for c in store.list_names(ItemKind.CATEGORY)]


class TestSchema:

    def test_new_store_at_current_version(self, store):
        assert store.schema_version == SCHEMA_VERSION

    def test_default_categories_seeded(self, store):
        assert _category_names(store) == [
            "Documents", "Games", "Music", "Photos", "Uncategorized",
        ]

    def test_reopen_does_not_reseed(self, tmp_path):
        db = tmp_path / "filesearch.db"
        with SearchStore(db) as s:
            s.create_category("Work")
        with SearchStore(db) as s:
            assert len(_category_names(s)) == 6
            assert s.schema_version == SCHEMA_VERSION

    def test_creates_parent_directory(self, tmp_path):
        db = tmp_path / "nested" / "dir" / "filesearch.db"
        with SearchStore(db) as s:
            assert s.schema_version == SCHEMA_VERSION
        assert db.exists()


class TestLegacyMigration:
    """Stores written before categories existed."""

    @pytest.fixture
    def legacy_db(self, tmp_path):
        db = tmp_path / "legacy.db"
        conn = sqlite3.connect(str(db))
        conn.executescript("""
            CREATE TABLE paths (
                id INTEGER PRIMARY KEY,
                path TEXT UNIQUE NOT NULL,
                name TEXT NOT NULL,
                is_directory INTEGER NOT NULL,
                size INTEGER,
                parent_path TEXT
            );
            CREATE TABLE tags (
                id INTEGER PRIMARY KEY,
                name TEXT UNIQUE NOT NULL
            );
            INSERT INTO paths (path, name, is_directory, size, parent_path)
                VALUES ('/old/a.txt', 'a.txt', 0, 5, '/old');
            INSERT INTO paths (path, name, is_directory, size, parent_path)
                VALUES ('/old', 'old', 1, NULL, '/');
            INSERT INTO tags (name) VALUES ('legacy');
        """)
        conn.close()
        return db

    def test_existing_paths_become_uncategorized(self, legacy_db):
        with SearchStore(legacy_db) as s:
            assert s.schema_version == SCHEMA_VERSION
            for path in ("/old/a.txt", "/old"):
                assert s.categories_for_path(s.get_path(path).id) == ["Uncategorized"]
            assert s.stats().categories_in_use == 1

    def test_existing_data_kept(self, legacy_db):
        with SearchStore(legacy_db) as s:
            assert s.get_path("/old/a.txt").size == 5
            assert s.get_tag("legacy") is not None

    def test_migration_runs_once(self, legacy_db):
        with SearchStore(legacy_db) as s:
            s.uncategorize_path(s.get_path("/old").id, s.get_category("Uncategorized").id)
        with SearchStore(legacy_db) as s:
            assert s.categories_for_path(s.get_path("/old").id) == []

    def test_fresh_paths_not_categorized(self, store):
        store.add_path("/new/b.txt", "b.txt", False, 1)
        assert store.categories_for_path(store.get_path("/new/b.txt").id) == []

    def test_categorized_store_without_version(self, tmp_path):
        """A store that already has categories keeps its associations."""
        db = tmp_path / "unversioned.db"
        conn = sqlite3.connect(str(db))
        conn.executescript("""
            CREATE TABLE paths (
                id INTEGER PRIMARY KEY,
                path TEXT UNIQUE NOT NULL,
                name TEXT NOT NULL,
                is_directory INTEGER NOT NULL,
                size INTEGER,
                parent_path TEXT
            );
            CREATE TABLE categories (
                id INTEGER PRIMARY KEY,
                name TEXT UNIQUE NOT NULL COLLATE NOCASE
            );
            CREATE TABLE path_categories (
                path_id INTEGER NOT NULL,
                category_id INTEGER NOT NULL,
                PRIMARY KEY (path_id, category_id)
            );
            INSERT INTO paths (path, name, is_directory, size, parent_path)
                VALUES ('/games/doom.exe', 'doom.exe', 0, 10, '/games');
            INSERT INTO paths (path, name, is_directory, size, parent_path)
                VALUES ('/games/quake.exe', 'quake.exe', 0, 20, '/games');
            INSERT INTO categories (name) VALUES ('Games');
            INSERT INTO path_categories (path_id, category_id) VALUES (1, 1);
        """)
        conn.close()

        with SearchStore(db) as s:
            assert s.schema_version == SCHEMA_VERSION
            assert s.categories_for_path(s.get_path("/games/doom.exe").id) == ["Games"]
            assert s.categories_for_path(s.get_path("/games/quake.exe").id) == []
            assert "Uncategorized" in [c.name for c in s.list_names(ItemKind.CATEGORY)]


class TestIndexing:

    def test_counts(self, store, tree):
        result = store.add_directory(str(tree))
        assert (result.files, result.directories) == (6, 3)
        stats = store.stats()
        assert (stats.paths, stats.files, stats.directories) == (9, 6, 3)

    def test_records(self, store, tree):
        store.add_directory(str(tree))
        doom = store.get_path(str(tree / "games" / "doom.exe"))
        assert doom.name == "doom.exe"
        assert doom.size == 10
        assert doom.parent_path == str(tree / "games")
        games = store.get_path(str(tree / "games"))
        assert games.is_directory
        assert games.size is None

    def test_reindex_is_idempotent(self, store, tree):
        store.add_directory(str(tree))
        store.add_directory(str(tree))
        assert store.stats().paths == 9

    def test_not_a_directory(self, store, tree):
        with pytest.raises(UsageError):
            store.add_directory(str(tree / "report.txt"))
        with pytest.raises(UsageError):
            store.add_directory(str(tree / "missing"))

    def test_symlinked_directory_not_descended(self, store, tree):
        os.symlink(tree / "games", tree / "music" / "shortcut")
        result = store.add_directory(str(tree))
        assert result.directories == 4
        assert result.files == 6
        assert store.get_path(str(tree / "music" / "shortcut" / "doom.exe")) is None

    def test_add_path_reports_insert(self, store):
        assert store.add_path("/x", "x", True) is True
        assert store.add_path("/x", "x", True) is False

    def test_directory_size_ignored(self, store):
        store.add_path("/d", "d", True, size=4096)
        assert store.get_path("/d").size is None

    def test_get_paths(self, store):
        store.add_path("/a", "a", False, 1)
        a = store.get_path("/a")
        assert store.get_paths([a.id, 9999]) == {a.id: a}
        assert store.get_paths([]) == {}


class TestListNames:

    def test_ordered_by_name_then_id(self, store):
        store.add_path("/z/beta", "beta", False)
        store.add_path("/a/beta", "beta", False)
        store.add_path("/m/alpha", "alpha", False)
        items = store.list_names(ItemKind.PATH)
        assert [i.name for i in items] == ["alpha", "beta", "beta"]
        assert items[1].id < items[2].id
        assert all(i.kind is ItemKind.PATH for i in items)

    def test_tags(self, store):
        store.create_tag("zeta")
        store.create_tag("alpha")
        assert [t.name for t in store.list_names(ItemKind.TAG)] == ["alpha", "zeta"]


class TestAssociations:

    @pytest.fixture
    def doom(self, store, tree):
        store.add_directory(str(tree))
        return store.get_path(str(tree / "games" / "doom.exe"))

    def test_tag_once(self, store, doom):
        tag = store.create_tag("action")
        assert store.tag_path(doom.id, tag.id) is True
        assert store.tag_path(doom.id, tag.id) is False
        assert store.tags_for_path(doom.id) == ["action"]

    def test_untag(self, store, doom):
        tag = store.create_tag("action")
        store.tag_path(doom.id, tag.id)
        assert store.untag_path(doom.id, tag.id) is True
        assert store.untag_path(doom.id, tag.id) is False
        assert store.tags_for_path(doom.id) == []

    def test_tag_names_unique_ignoring_case(self, store):
        store.create_tag("Action")
        with pytest.raises(UsageError):
            store.create_tag("action")
        assert store.get_tag("ACTION").name == "Action"

    def test_category_names_unique_ignoring_case(self, store):
        with pytest.raises(UsageError):
            store.create_category("games")

    def test_categorize_once(self, store, doom):
        games = store.get_category("games")
        assert store.categorize_path(doom.id, games.id) is True
        assert store.categorize_path(doom.id, games.id) is False
        assert store.categories_for_path(doom.id) == ["Games"]
        assert store.stats().categories_in_use == 1

    def test_remove_cascades(self, store, doom):
        tag = store.create_tag("action")
        store.tag_path(doom.id, tag.id)
        store.categorize_path(doom.id, store.get_category("Games").id)

        store.remove_path(doom.path)

        assert store.get_path(doom.path) is None
        assert find(store, tag="action", cap=20) == []
        assert store.stats().categories_in_use == 0
        # The tag itself survives
        assert store.get_tag("action") is not None

    def test_remove_missing(self, store):
        with pytest.raises(NotFound, match="Path not found in database"):
            store.remove_path("/nowhere")


class TestNormalizePath:

    def test_absolute(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert normalize_path("sub/../file.txt") == str(tmp_path / "file.txt")

    def test_trailing_separator_dropped(self, tmp_path):
        assert normalize_path(str(tmp_path) + "/") == str(tmp_path)

    def test_home_expanded(self, monkeypatch, tmp_path):
        monkeypatch.setenv("HOME", str(tmp_path))
        assert normalize_path("~/music") == str(tmp_path / "music")
