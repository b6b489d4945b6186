from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

from src.normalization.offer import Offer, derive_discount, fold_text

logger = logging.getLogger(__name__)


class Relaxation(str, Enum):
    STRICT = "strict"
    ANY_DISCOUNT = "any_discount"
    ALL_OFFERS = "all_offers"
    NONE = "none"


@dataclass
class KeywordPolicy:
    enabled: bool = False
    allow: list[str] = field(default_factory=list)
    block: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.allow = [kw for kw in (fold_text(a) for a in self.allow) if kw]
        self.block = [kw for kw in (fold_text(b) for b in self.block) if kw]

    def accepts(self, offer: Offer) -> bool:
        if not self.enabled:
            return True
        title = fold_text(offer.title)
        # explicit blocks win over allows
        if any(kw in title for kw in self.block):
            return False
        if self.allow and not any(kw in title for kw in self.allow):
            return False
        return True

    def apply(self, offers: list[Offer]) -> list[Offer]:
        kept = [o for o in offers if self.accepts(o)]
        if offers and not kept:
            logger.warning("Keyword policy rejected all %d offers", len(offers))
        return kept


def effective_discount(offer: Offer) -> int | None:
    if offer.discount_pct is not None:
        return offer.discount_pct
    return derive_discount(offer.price_base, offer.price_final)


@dataclass
class EligibilityResult:
    offers: list[Offer]
    relaxation: Relaxation


def apply_min_discount(offers: list[Offer], min_discount: int) -> EligibilityResult:
    """Minimum-discount policy with the relaxation ladder.

    strict threshold, then every offer with a computable discount (best
    first), then every offer as-is. Empty input stays empty.
    """
    if not offers:
        return EligibilityResult([], Relaxation.NONE)

    strict = [o for o in offers if (effective_discount(o) or 0) >= min_discount]
    if strict:
        return EligibilityResult(strict, Relaxation.STRICT)

    with_discount = [o for o in offers if effective_discount(o) is not None]
    if with_discount:
        logger.warning(
            "No offer reached %d%% discount; relaxing to %d offers with any discount",
            min_discount,
            len(with_discount),
        )
        with_discount.sort(key=lambda o: effective_discount(o) or 0, reverse=True)
        return EligibilityResult(with_discount, Relaxation.ANY_DISCOUNT)

    logger.warning("No offer carries discount data; using all %d offers as-is", len(offers))
    return EligibilityResult(list(offers), Relaxation.ALL_OFFERS)


def filter_eligible(offers: list[Offer], keywords: KeywordPolicy, min_discount: int) -> EligibilityResult:
    return apply_min_discount(keywords.apply(offers), min_discount)
