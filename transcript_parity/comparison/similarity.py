"""Character-level similarity between two response bodies."""


def levenshtein_distance(a: str, b: str) -> int:
    """
    Edit distance between two strings (insert, delete, substitute).

    Keeps two rows of the DP table; the shorter string indexes the columns.
    """
    if a == b:
        return 0
    if len(a) < len(b):
        a, b = b, a
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            cost = 0 if char_a == char_b else 1
            current.append(min(
                previous[j] + 1,         # deletion
                current[j - 1] + 1,      # insertion
                previous[j - 1] + cost,  # substitution
            ))
        previous = current

    return previous[-1]


def similarity(a: str, b: str) -> float:
    """
    Normalized similarity in [0, 1].

    1.0 iff the strings are equal (two empty strings included), 0.0 when
    exactly one is empty, otherwise 1 - distance / max(len(a), len(b)).
    """
    if a == b:
        return 1.0
    if not a or not b:
        return 0.0
    return 1.0 - levenshtein_distance(a, b) / max(len(a), len(b))
