"""
Protocol definitions for the search core and its storage backend.

The matching, similarity and filter components never open a database
themselves. They receive a store handle satisfying these protocols:
- CorpusAccessor: names of one kind of item (paths, tags, categories)
- AssociationAccessor: evaluates a composed find query, resolving
  category/tag membership and item names inside it
- TagWriter: the write path the tag-creation flow gates
"""

from typing import Callable, Optional, Protocol

from .types import Decision, ItemKind, NamedItem, PathRecord, SimilarityFinding


class CorpusAccessor(Protocol):
    """Read access to the names of one kind of item."""

    def list_names(self, kind: ItemKind) -> list[NamedItem]: ...


class AssociationAccessor(Protocol):
    """
    Read access to item↔category and item↔tag associations.

    Membership lookups are not exposed one by one: each criterion of a
    find becomes a predicate, and the accessor runs them as one query.
    """

    def run_find(self, query) -> list[PathRecord]: ...


class TagWriter(Protocol):
    """Lookup and creation of tags."""

    def list_names(self, kind: ItemKind) -> list[NamedItem]: ...

    def get_tag(self, name: str) -> Optional[NamedItem]: ...

    def create_tag(self, name: str) -> NamedItem: ...


# Invoked with the closest existing tag; must answer synchronously.
DecisionCallback = Callable[[SimilarityFinding], Decision]
