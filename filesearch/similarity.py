"""
Near-duplicate detection for tag creation.

Before a new tag is written, the existing tags are scanned for one that
contains (or is contained in) the proposed name, or lies within a small
edit distance of it. A match is handed to a decision callback, which
chooses to create the new tag anyway, reuse the existing one, or abandon.
"""

import logging
from typing import Iterable, Optional

from .distance import distance, is_substring_match
from .errors import Cancelled, NotFound, UsageError
from .protocol import DecisionCallback, TagWriter
from .types import Decision, ItemKind, SimilarityFinding, TagOutcome

logger = logging.getLogger(__name__)

DEFAULT_SIMILARITY_THRESHOLD = 3


def check(
    proposed_name: str,
    existing_tag_names: Iterable[str],
    threshold: int = DEFAULT_SIMILARITY_THRESHOLD,
) -> Optional[SimilarityFinding]:
    """
    Find the existing tag most likely to be a duplicate of ``proposed_name``.

    A substring match (either direction, ignoring case) always wins over an
    edit-distance match, and the first substring match found is kept.
    Otherwise the closest name with ``0 < distance <= threshold`` is
    reported. Returns None when nothing is similar.
    """
    substring_finding: Optional[SimilarityFinding] = None
    best: Optional[SimilarityFinding] = None

    for candidate in existing_tag_names:
        if is_substring_match(proposed_name, candidate):
            if substring_finding is None:
                substring_finding = SimilarityFinding(
                    candidate_name=candidate,
                    distance=abs(len(proposed_name) - len(candidate)),
                    is_substring_match=True,
                )
            continue

        if substring_finding is not None:
            continue
        d = distance(proposed_name, candidate)
        if 0 < d <= threshold and (best is None or d < best.distance):
            best = SimilarityFinding(
                candidate_name=candidate,
                distance=d,
                is_substring_match=False,
            )

    return substring_finding or best


def resolve_tag(
    store: TagWriter,
    proposed_name: str,
    decide: DecisionCallback,
    threshold: int = DEFAULT_SIMILARITY_THRESHOLD,
) -> TagOutcome:
    """
    Get or create the tag called ``proposed_name``.

    An existing tag with the same name (ignoring case) is returned
    directly. Otherwise any near-duplicate is passed to ``decide``:

    - PROCEED creates the new tag
    - REUSE returns the existing similar tag
    - ABANDON raises Cancelled without writing anything

    Raises:
        UsageError: If the name is empty
        Cancelled: If the decision was ABANDON
        NotFound: If the tag chosen for reuse no longer exists
    """
    name = (proposed_name or "").strip()
    if not name:
        raise UsageError("Tag name must not be empty")

    existing = store.get_tag(name)
    if existing is not None:
        return TagOutcome(tag=existing)

    names = [t.name for t in store.list_names(ItemKind.TAG)]
    finding = check(name, names, threshold)
    if finding is None:
        tag = store.create_tag(name)
        logger.info("Created tag %r", tag.name)
        return TagOutcome(tag=tag, created=True)

    decision = decide(finding)
    logger.info("Similar tag %s for %r: %s", finding.describe(), name, decision.value)

    if decision is Decision.PROCEED:
        tag = store.create_tag(name)
        logger.info("Created tag %r", tag.name)
        return TagOutcome(tag=tag, created=True, finding=finding)

    if decision is Decision.REUSE:
        similar = store.get_tag(finding.candidate_name)
        if similar is None:
            raise NotFound(f"Tag not found: {finding.candidate_name}")
        return TagOutcome(tag=similar, reused_similar=True, finding=finding)

    raise Cancelled(f"Tag '{name}' not created")
