"""
Structured find: a conjunction of optional category, tag and name criteria.

Each supplied criterion contributes one parameterized predicate over the
``paths`` table; ``compose()`` ANDs them into a single query. User text
only ever travels as a bound parameter.
"""

from dataclasses import dataclass
from typing import Optional, Union

from .errors import UsageError
from .protocol import AssociationAccessor
from .types import PathRecord


PATH_COLUMNS = "p.id, p.path, p.name, p.is_directory, p.size, p.parent_path"


@dataclass(frozen=True)
class CategoryCriterion:
    """Item is in the named category (exact name, ignoring case)."""
    name: str

    def predicate(self) -> tuple[str, tuple]:
        return (
            "EXISTS (SELECT 1 FROM path_categories pc"
            " JOIN categories c ON c.id = pc.category_id"
            " WHERE pc.path_id = p.id AND c.name = ? COLLATE NOCASE)",
            (self.name,),
        )


@dataclass(frozen=True)
class TagCriterion:
    """Item carries the named tag (exact name, ignoring case)."""
    name: str

    def predicate(self) -> tuple[str, tuple]:
        return (
            "EXISTS (SELECT 1 FROM path_tags pt"
            " JOIN tags t ON t.id = pt.tag_id"
            " WHERE pt.path_id = p.id AND t.name = ? COLLATE NOCASE)",
            (self.name,),
        )


@dataclass(frozen=True)
class NameCriterion:
    """Item's own name contains the text, ignoring case."""
    text: str

    def predicate(self) -> tuple[str, tuple]:
        # instr() rather than LIKE so % and _ in user text match literally
        return ("instr(lower(p.name), lower(?)) > 0", (self.text,))


Criterion = Union[CategoryCriterion, TagCriterion, NameCriterion]


@dataclass(frozen=True)
class FindQuery:
    """A composed, parameterized SELECT over paths."""
    sql: str
    params: tuple


def _given(value: Optional[str]) -> bool:
    return value is not None and value.strip() != ""


def build_criteria(
    category: Optional[str] = None,
    tag: Optional[str] = None,
    name: Optional[str] = None,
) -> list[Criterion]:
    """Turn optional filter values into criteria, skipping omitted ones."""
    criteria: list[Criterion] = []
    if _given(category):
        criteria.append(CategoryCriterion(category.strip()))
    if _given(tag):
        criteria.append(TagCriterion(tag.strip()))
    if _given(name):
        criteria.append(NameCriterion(name.strip()))
    return criteria


def compose(criteria: list[Criterion], cap: int) -> FindQuery:
    """
    AND the criteria into one query, ordered by name and capped.

    Raises:
        UsageError: If no criteria are given
    """
    if not criteria:
        raise UsageError("Specify at least one of --category, --tag or --name")
    if cap < 1:
        raise UsageError(f"Result cap must be at least 1, got {cap}")

    clauses = []
    params: list = []
    for criterion in criteria:
        clause, args = criterion.predicate()
        clauses.append(clause)
        params.extend(args)
    params.append(cap)

    sql = (
        f"SELECT {PATH_COLUMNS} FROM paths p"
        f" WHERE {' AND '.join(clauses)}"
        " ORDER BY p.name, p.path"
        " LIMIT ?"
    )
    return FindQuery(sql=sql, params=tuple(params))


def find(
    store: AssociationAccessor,
    category: Optional[str] = None,
    tag: Optional[str] = None,
    name: Optional[str] = None,
    *,
    cap: int,
) -> list[PathRecord]:
    """
    Paths satisfying every supplied criterion.

    Each path appears once, however many association rows match it.

    Raises:
        UsageError: If all three criteria are omitted
    """
    query = compose(build_criteria(category, tag, name), cap)
    return store.run_find(query)
