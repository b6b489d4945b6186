from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from src.curation.eligibility import effective_discount
from src.curation.rotation import RotationMemory
from src.normalization.offer import Offer


@dataclass(frozen=True)
class ScoringWeights:
    discount_weight: float = 0.7
    availability_bonus: float = 5.0
    # every offer comes from the current build, so this is flat
    recency_bonus: float = 5.0
    cooldown_penalty: float = 30.0


@dataclass(frozen=True)
class ScoredOffer:
    offer: Offer
    score: float
    discount_pct: int

    @property
    def store(self) -> str:
        return self.offer.store

    @property
    def category(self) -> str | None:
        return self.offer.category


def score_offer(
    offer: Offer,
    memory: RotationMemory,
    now: datetime,
    cooldown: timedelta,
    weights: ScoringWeights,
) -> ScoredOffer:
    discount_pct = effective_discount(offer) or 0
    score = weights.discount_weight * discount_pct
    if offer.availability == "in_stock":
        score += weights.availability_bonus
    score += weights.recency_bonus
    if memory.is_cooling_down(offer.identity_key, now, cooldown):
        score -= weights.cooldown_penalty
    return ScoredOffer(offer=offer, score=round(score, 4), discount_pct=discount_pct)


def score_offers(
    offers: list[Offer],
    memory: RotationMemory,
    now: datetime,
    cooldown: timedelta,
    weights: ScoringWeights = ScoringWeights(),
) -> list[ScoredOffer]:
    """Scored offers, best first. Ties keep input order."""
    scored = [score_offer(o, memory, now, cooldown, weights) for o in offers]
    scored.sort(key=lambda s: s.score, reverse=True)
    return scored
