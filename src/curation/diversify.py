from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass

from src.curation.scoring import ScoredOffer

UNCATEGORIZED = "uncategorized"


@dataclass(frozen=True)
class DiversityCaps:
    feed_size: int
    max_store: int
    max_category: int

    @classmethod
    def from_ratios(cls, feed_size: int, store_ratio: float, category_ratio: float) -> "DiversityCaps":
        return cls(
            feed_size=feed_size,
            max_store=math.ceil(round(feed_size * store_ratio, 9)),
            max_category=math.ceil(round(feed_size * category_ratio, 9)),
        )


def diversify(scored: list[ScoredOffer], caps: DiversityCaps) -> list[ScoredOffer]:
    """Greedy pick over ``scored`` (best first) honoring per-store and per-category caps."""
    by_store: Counter[str] = Counter()
    by_category: Counter[str] = Counter()
    out: list[ScoredOffer] = []
    for item in scored:
        if len(out) >= caps.feed_size:
            break
        category = item.category or UNCATEGORIZED
        if by_store[item.store] >= caps.max_store or by_category[category] >= caps.max_category:
            continue
        out.append(item)
        by_store[item.store] += 1
        by_category[category] += 1
    return out
