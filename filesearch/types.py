"""
Data types for the file search index.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class ItemKind(str, Enum):
    """Kinds of named items held in the store."""
    PATH = "path"
    TAG = "tag"
    CATEGORY = "category"


class MatchStrategy(str, Enum):
    """The four ways a query is matched against item names."""
    EXACT = "exact"
    PREFIX = "prefix"
    SUBSTRING = "substring"
    FUZZY = "fuzzy"

    @property
    def label(self) -> str:
        return self.value.capitalize()


class Decision(str, Enum):
    """Answer to a near-duplicate tag warning."""
    PROCEED = "proceed"   # create the new tag anyway
    REUSE = "reuse"       # use the similar existing tag instead
    ABANDON = "abandon"   # give up, write nothing


# Categories seeded into every new store
DEFAULT_CATEGORIES = ("Games", "Music", "Photos", "Documents", "Uncategorized")

UNCATEGORIZED = "Uncategorized"


@dataclass(frozen=True)
class NamedItem:
    """
    A named entry in the store: a path, a tag or a category.

    ``id`` is assigned by the store and never changes.
    ``name`` is what every matching strategy compares against.
    """
    id: int
    name: str
    kind: ItemKind


@dataclass(frozen=True)
class PathRecord:
    """An indexed filesystem path."""
    id: int
    path: str
    name: str
    is_directory: bool
    size: Optional[int] = None
    parent_path: Optional[str] = None

    def to_dict(self) -> dict:
        from dataclasses import asdict
        return asdict(self)


@dataclass(frozen=True)
class MatchResult:
    """
    One hit from a match strategy.

    ``distance`` is only set for fuzzy results: the edit distance between
    the query and the matched name.
    """
    item: NamedItem
    strategy: MatchStrategy
    distance: Optional[int] = None

    def to_dict(self) -> dict:
        d = {
            "id": self.item.id,
            "name": self.item.name,
            "kind": self.item.kind.value,
            "strategy": self.strategy.value,
        }
        if self.distance is not None:
            d["distance"] = self.distance
        return d


@dataclass(frozen=True)
class SimilarityFinding:
    """The closest pre-existing tag to a proposed new tag name."""
    candidate_name: str
    distance: int
    is_substring_match: bool

    def describe(self) -> str:
        if self.is_substring_match:
            return f"'{self.candidate_name}' (substring match)"
        return f"'{self.candidate_name}' (distance: {self.distance})"


@dataclass(frozen=True)
class TagOutcome:
    """Result of the tag get-or-create flow."""
    tag: NamedItem
    created: bool = False
    reused_similar: bool = False
    finding: Optional[SimilarityFinding] = None


@dataclass(frozen=True)
class ScanResult:
    """Counts from a recursive directory scan."""
    files: int = 0
    directories: int = 0


@dataclass(frozen=True)
class PathInfo:
    """A path together with its categories and tags, for display."""
    record: PathRecord
    categories: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        d = self.record.to_dict()
        d["categories"] = list(self.categories)
        d["tags"] = list(self.tags)
        return d


@dataclass(frozen=True)
class StoreStats:
    """Counts reported by the ``stats`` command."""
    paths: int
    directories: int
    files: int
    tags: int
    categories: int
    categories_in_use: int

    def to_dict(self) -> dict:
        from dataclasses import asdict
        return asdict(self)
