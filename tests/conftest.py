"""
Shared pytest fixtures for filesearch tests.

Provides an in-memory corpus for the pure search components, and real
SQLite stores in tmp_path for everything else.
"""

from pathlib import Path

import pytest

from filesearch.api import FileSearch
from filesearch.store import SearchStore
from filesearch.types import ItemKind, NamedItem


class MemoryCorpus:
    """
    Corpus accessor backed by plain lists - no database.

    Names are kept in insertion order, so tests control scan order.
    Also implements the tag lookup/creation used by resolve_tag().
    """

    def __init__(self, paths: list[str] = (), tags: list[str] = ()):
        self._items: dict[ItemKind, list[NamedItem]] = {kind: [] for kind in ItemKind}
        self._next_id = 1
        self.list_calls = 0
        for name in paths:
            self.add(ItemKind.PATH, name)
        for name in tags:
            self.add(ItemKind.TAG, name)

    def add(self, kind: ItemKind, name: str) -> NamedItem:
        item = NamedItem(id=self._next_id, name=name, kind=kind)
        self._next_id += 1
        self._items[kind].append(item)
        return item

    def list_names(self, kind: ItemKind) -> list[NamedItem]:
        self.list_calls += 1
        return list(self._items[kind])

    def get_tag(self, name: str):
        for item in self._items[ItemKind.TAG]:
            if item.name.lower() == name.lower():
                return item
        return None

    def create_tag(self, name: str) -> NamedItem:
        return self.add(ItemKind.TAG, name)

    def remove_tag(self, name: str) -> None:
        self._items[ItemKind.TAG] = [
            t for t in self._items[ItemKind.TAG] if t.name != name
        ]


@pytest.fixture
def memory_corpus():
    """Factory for MemoryCorpus instances."""
    return MemoryCorpus


@pytest.fixture
def store(tmp_path):
    """A fresh SearchStore on a real SQLite file."""
    with SearchStore(tmp_path / "filesearch.db") as s:
        yield s


@pytest.fixture
def tree(tmp_path) -> Path:
    """
    A small directory tree to index:

        library/
            games/
                doom.exe           (10 bytes)
                quake.exe          (20 bytes)
                notes.txt
            music/
                sonata.flac
                sonatina.flac
            report.txt
    """
    root = tmp_path / "library"
    (root / "games").mkdir(parents=True)
    (root / "music").mkdir()
    (root / "games" / "doom.exe").write_bytes(b"x" * 10)
    (root / "games" / "quake.exe").write_bytes(b"x" * 20)
    (root / "games" / "notes.txt").write_text("notes")
    (root / "music" / "sonata.flac").write_text("a")
    (root / "music" / "sonatina.flac").write_text("b")
    (root / "report.txt").write_text("report")
    return root


@pytest.fixture
def fs(tmp_path):
    """A FileSearch on an empty store in tmp_path."""
    with FileSearch(tmp_path / "store") as f:
        yield f


@pytest.fixture
def indexed_fs(fs, tree):
    """A FileSearch with the sample tree indexed."""
    fs.add(str(tree))
    return fs

