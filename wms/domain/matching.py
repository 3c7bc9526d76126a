"""
Product-name fuzzy matching.

Requested line items name products free-hand, so report exports match
them back to a catalogue product by id, or by normalised-name
similarity when the id is missing.
"""

import re

DEFAULT_THRESHOLD = 0.82

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def normalize_name(name: str | None) -> str:
    """Lower-case, punctuation to spaces, collapse runs of whitespace."""
    text = _NON_ALNUM.sub(" ", (name or "").lower())
    return " ".join(text.split())


def levenshtein(a: str, b: str) -> int:
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            current.append(
                min(
                    previous[j] + 1,
                    current[j - 1] + 1,
                    previous[j - 1] + (ca != cb),
                )
            )
        previous = current
    return previous[-1]


def similarity(a: str | None, b: str | None) -> float:
    """1.0 for identical normalised names, falling toward 0.0 with edit distance."""
    left, right = normalize_name(a), normalize_name(b)
    longest = max(len(left), len(right))
    if longest == 0:
        return 1.0
    return 1.0 - levenshtein(left, right) / longest


def names_match(a: str | None, b: str | None, threshold: float = DEFAULT_THRESHOLD) -> bool:
    left, right = normalize_name(a), normalize_name(b)
    if not left or not right:
        return False
    return left == right or similarity(left, right) >= threshold


def item_matches_product(
    product_id,
    product_name: str,
    item_product_id=None,
    item_name: str | None = None,
    threshold: float = DEFAULT_THRESHOLD,
) -> bool:
    """A line item belongs to a product when the ids agree or the names match."""
    if item_product_id is not None and str(item_product_id) == str(product_id):
        return True
    return names_match(item_name, product_name, threshold)
