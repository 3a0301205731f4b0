"""Text similarity used to find historically similar search queries.

``trigram_similarity`` follows the semantics of PostgreSQL's ``pg_trgm``
``similarity()`` so in-process scoring agrees with the store-side pre-filter:
words are lower-cased alphanumeric runs, each padded with two leading spaces and
one trailing space, and the score is the Jaccard index of the trigram sets.
"""

from __future__ import annotations

import re
from typing import Callable

_WORD_RE = re.compile(r"[^\W_]+", re.UNICODE)

QuerySimilarity = Callable[[str, str], float]


def trigrams(value: str) -> set[str]:
    grams: set[str] = set()
    for word in _WORD_RE.findall((value or "").lower()):
        padded = f"  {word} "
        for i in range(len(padded) - 2):
            grams.add(padded[i : i + 3])
    return grams


def trigram_similarity(a: str, b: str) -> float:
    left = trigrams(a)
    right = trigrams(b)
    if not left or not right:
        return 0.0
    return len(left & right) / len(left | right)
