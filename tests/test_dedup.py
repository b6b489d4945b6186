from src.curation.dedup import dedupe_keep_cheapest


def test_keeps_lowest_final_price_per_key(make_offer) -> None:
    a = make_offer(identity_key="sku-1", store="A", price_final=1000)
    b = make_offer(identity_key="sku-1", store="B", price_final=900)
    assert dedupe_keep_cheapest([a, b]) == [b]
    assert dedupe_keep_cheapest([b, a]) == [b]


def test_equal_price_later_offer_wins(make_offer) -> None:
    first = make_offer(identity_key="sku-1", store="A", price_final=900)
    later = make_offer(identity_key="sku-1", store="B", price_final=900)
    assert dedupe_keep_cheapest([first, later]) == [later]


def test_dedupe_is_idempotent_and_keeps_minimum(make_offer) -> None:
    offers = [
        make_offer(identity_key=f"k{i % 4}", store=f"S{i}", price_final=1000 - (i * 37) % 300)
        for i in range(20)
    ]
    once = dedupe_keep_cheapest(offers)
    assert dedupe_keep_cheapest(once) == once
    assert len(once) == 4
    for kept in once:
        cheapest = min(o.price_final for o in offers if o.identity_key == kept.identity_key)
        assert kept.price_final == cheapest
