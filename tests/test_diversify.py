from src.curation.diversify import DiversityCaps, diversify
from src.curation.scoring import ScoredOffer


def _scored(make_offer, store, category, score, idx):
    offer = make_offer(url=f"https://{store.lower()}.test/{idx}", store=store, category=category)
    return ScoredOffer(offer=offer, score=score, discount_pct=offer.discount_pct or 0)


def _pool(make_offer, a_count=8, b_count=4):
    items = [_scored(make_offer, "A", f"cat-a{i}", 100 - i, i) for i in range(a_count)]
    items += [_scored(make_offer, "B", f"cat-b{i}", 50 - i, i) for i in range(b_count)]
    return items


def test_caps_from_ratios_round_up() -> None:
    caps = DiversityCaps.from_ratios(10, 0.8, 0.7)
    assert (caps.max_store, caps.max_category) == (8, 7)
    assert DiversityCaps.from_ratios(3, 0.5, 0.1) == DiversityCaps(3, 2, 1)


def test_store_cap_lets_smaller_store_in(make_offer) -> None:
    caps = DiversityCaps.from_ratios(10, 0.6, 0.7)
    picked = diversify(_pool(make_offer), caps)
    stores = [s.store for s in picked]
    assert stores.count("A") == 6
    assert stores.count("B") == 4
    assert len(picked) == 10


def test_default_store_ratio_caps_at_eight(make_offer) -> None:
    caps = DiversityCaps.from_ratios(10, 0.8, 0.7)
    picked = diversify(_pool(make_offer), caps)
    stores = [s.store for s in picked]
    assert stores.count("A") == 8
    assert stores.count("B") == 2


def test_uncategorized_offers_share_one_bucket(make_offer) -> None:
    items = [_scored(make_offer, f"S{i}", None, 100 - i, i) for i in range(10)]
    picked = diversify(items, DiversityCaps.from_ratios(10, 0.8, 0.3))
    assert len(picked) == 3


def test_caps_hold_for_uneven_yield(make_offer) -> None:
    items = []
    for i in range(60):
        store = "Big" if i % 10 else f"Small{i}"
        category = "gpu" if i % 3 else "cpu"
        items.append(_scored(make_offer, store, category, 200 - i, i))
    caps = DiversityCaps.from_ratios(12, 0.5, 0.6)
    picked = diversify(items, caps)
    assert len(picked) <= caps.feed_size
    for store in {s.store for s in picked}:
        assert sum(1 for s in picked if s.store == store) <= caps.max_store
    for category in {s.category for s in picked}:
        assert sum(1 for s in picked if s.category == category) <= caps.max_category


def test_preserves_score_order(make_offer) -> None:
    picked = diversify(_pool(make_offer), DiversityCaps.from_ratios(10, 1.0, 1.0))
    scores = [s.score for s in picked]
    assert scores == sorted(scores, reverse=True)
