"""
Case-insensitive edit distance.

Levenshtein distance with the classic two-row dynamic programming
recurrence: O(len(a) * len(b)) time, O(min(len(a), len(b))) memory.
"""


def distance(a: str, b: str) -> int:
    """
    Minimum number of single-character insertions, deletions or
    substitutions that turn ``a`` into ``b``, ignoring case.

    Symmetric, and zero only when the case-folded strings are equal.
    """
    if not a:
        return len(b)
    if not b:
        return len(a)

    # Rows walk the longer string; each row is indexed by the shorter one
    if len(a) > len(b):
        a, b = b, a
    shorter = a.lower()
    longer = b.lower()

    prev = list(range(len(shorter) + 1))
    curr = [0] * (len(shorter) + 1)

    for j, lc in enumerate(longer, start=1):
        curr[0] = j
        for i, sc in enumerate(shorter, start=1):
            cost = 0 if sc == lc else 1
            curr[i] = min(
                prev[i] + 1,          # deletion
                curr[i - 1] + 1,      # insertion
                prev[i - 1] + cost,   # substitution
            )
        prev, curr = curr, prev

    return prev[len(shorter)]


def is_substring_match(a: str, b: str) -> bool:
    """True if either string contains the other, ignoring case."""
    la = a.lower()
    lb = b.lower()
    return la in lb or lb in la
