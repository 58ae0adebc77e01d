"""
Match dispatcher: exact, prefix, substring and fuzzy name matching.

Each strategy reads the corpus once through a CorpusAccessor and returns
at most ``result_cap`` results. Nothing here writes to the store.
"""

import logging
from typing import Optional

from .distance import distance
from .errors import UsageError
from .protocol import CorpusAccessor
from .types import ItemKind, MatchResult, MatchStrategy, NamedItem

logger = logging.getLogger(__name__)

DEFAULT_RESULT_CAP = 20
DEFAULT_FUZZY_DISTANCE = 3


def _require_query(query: str) -> str:
    if query is None or not query.strip():
        raise UsageError("Search query must not be empty")
    return query


class MatchDispatcher:
    """
    Runs the four match strategies over one kind of named item.

    Args:
        corpus: Store handle providing ``list_names(kind)``
        kind: Which names to search (paths or tags)
        result_cap: Upper bound on results per strategy
        fuzzy_distance: Edit-distance ceiling when a fuzzy search
            gives no explicit maximum
    """

    def __init__(
        self,
        corpus: CorpusAccessor,
        kind: ItemKind = ItemKind.PATH,
        *,
        result_cap: int = DEFAULT_RESULT_CAP,
        fuzzy_distance: int = DEFAULT_FUZZY_DISTANCE,
    ):
        self._corpus = corpus
        self.kind = kind
        self.result_cap = result_cap
        self.fuzzy_distance = fuzzy_distance

    def _candidates(self) -> list[NamedItem]:
        return self._corpus.list_names(self.kind)

    def _select(self, strategy: MatchStrategy, predicate) -> list[MatchResult]:
        results = []
        for item in self._candidates():
            if len(results) >= self.result_cap:
                break
            if predicate(item.name.lower()):
                results.append(MatchResult(item=item, strategy=strategy))
        return results

    def exact(self, query: str) -> list[MatchResult]:
        """Names equal to the query, ignoring case."""
        q = _require_query(query).lower()
        return self._select(MatchStrategy.EXACT, lambda name: name == q)

    def prefix(self, query: str) -> list[MatchResult]:
        """Names starting with the query, ignoring case."""
        q = _require_query(query).lower()
        return self._select(MatchStrategy.PREFIX, lambda name: name.startswith(q))

    def substring(self, query: str) -> list[MatchResult]:
        """Names containing the query anywhere, ignoring case."""
        q = _require_query(query).lower()
        return self._select(MatchStrategy.SUBSTRING, lambda name: q in name)

    def fuzzy(self, query: str, max_distance: Optional[int] = None) -> list[MatchResult]:
        """
        Names within ``max_distance`` edits of the query.

        Ordered by ascending distance, then name. Every result carries
        its distance.
        """
        _require_query(query)
        if max_distance is None:
            max_distance = self.fuzzy_distance
        if max_distance < 0:
            raise UsageError(f"Maximum distance must be non-negative, got {max_distance}")

        scored = []
        for item in self._candidates():
            d = distance(query, item.name)
            if d <= max_distance:
                scored.append((d, item.name, item.id, item))
        scored.sort(key=lambda s: (s[0], s[1], s[2]))

        logger.debug(
            "fuzzy %s %r: %d within distance %d",
            self.kind.value, query, len(scored), max_distance,
        )
        return [
            MatchResult(item=item, strategy=MatchStrategy.FUZZY, distance=d)
            for d, _, _, item in scored[:self.result_cap]
        ]

    def run(
        self,
        strategy: MatchStrategy,
        query: str,
        max_distance: Optional[int] = None,
    ) -> list[MatchResult]:
        """Run a single strategy by name."""
        if strategy is MatchStrategy.FUZZY:
            return self.fuzzy(query, max_distance)
        if strategy is MatchStrategy.EXACT:
            return self.exact(query)
        if strategy is MatchStrategy.PREFIX:
            return self.prefix(query)
        return self.substring(query)

    def search_all(
        self,
        query: str,
        strategies: tuple[MatchStrategy, ...] = tuple(MatchStrategy),
    ) -> dict[MatchStrategy, list[MatchResult]]:
        """
        Run each strategy independently and report every result set
        under its own strategy. An item matching several strategies
        appears once per section.
        """
        _require_query(query)
        return {strategy: self.run(strategy, query) for strategy in strategies}
