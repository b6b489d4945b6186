from __future__ import annotations

from src.normalization.offer import Offer


def dedupe_keep_cheapest(offers: list[Offer]) -> list[Offer]:
    """One offer per identity key, the one with the lowest final price.

    Equal prices resolve to the offer seen last, since later collectors are
    the fresher ones within a build. Output keeps first-seen key order.
    """
    best: dict[str, Offer] = {}
    for offer in offers:
        prev = best.get(offer.identity_key)
        if prev is None or offer.price_final <= prev.price_final:
            best[offer.identity_key] = offer
    return list(best.values())
