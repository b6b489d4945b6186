from src.curation.eligibility import KeywordPolicy, Relaxation, apply_min_discount, filter_eligible


def test_keyword_policy_disabled_accepts_everything(make_offer) -> None:
    policy = KeywordPolicy(enabled=False, allow=["gpu"], block=["mouse"])
    assert policy.accepts(make_offer(title="Mouse Gamer"))


def test_keyword_policy_block_wins_over_allow(make_offer) -> None:
    policy = KeywordPolicy(enabled=True, allow=["placa de video"], block=["usada"])
    assert policy.accepts(make_offer(title="Placa de Vídeo RTX 4060"))
    assert not policy.accepts(make_offer(title="Placa de Vídeo RTX 3060 USADA"))
    assert not policy.accepts(make_offer(title="Cadeira Gamer"))


def test_keyword_policy_matches_without_diacritics(make_offer) -> None:
    policy = KeywordPolicy(enabled=True, allow=["memória"], block=[])
    assert policy.accepts(make_offer(title="MEMORIA DDR5 32GB"))


def test_empty_allow_list_only_applies_blocks(make_offer) -> None:
    policy = KeywordPolicy(enabled=True, allow=[], block=["capa"])
    assert policy.accepts(make_offer(title="Teclado Mecânico"))
    assert not policy.accepts(make_offer(title="Capa para celular"))


def test_strict_threshold(make_offer) -> None:
    offers = [make_offer(url="https://a.test/1", discount_pct=40), make_offer(url="https://a.test/2", discount_pct=5)]
    result = apply_min_discount(offers, 10)
    assert result.relaxation is Relaxation.STRICT
    assert [o.discount_pct for o in result.offers] == [40]


def test_relaxes_to_any_discount_sorted_descending(make_offer) -> None:
    offers = [
        make_offer(url="https://a.test/1", discount_pct=3),
        make_offer(url="https://a.test/2", discount_pct=None, price_base=None),
        make_offer(url="https://a.test/3", discount_pct=8),
    ]
    result = apply_min_discount(offers, 50)
    assert result.relaxation is Relaxation.ANY_DISCOUNT
    assert [o.discount_pct for o in result.offers] == [8, 3]


def test_falls_back_to_all_offers_without_discount_data(make_offer) -> None:
    offers = [
        make_offer(url="https://a.test/1", discount_pct=None, price_base=None),
        make_offer(url="https://a.test/2", discount_pct=None, price_base=None),
    ]
    result = apply_min_discount(offers, 20)
    assert result.relaxation is Relaxation.ALL_OFFERS
    assert result.offers == offers


def test_non_empty_pool_never_filters_to_empty(make_offer) -> None:
    for discounts in ([1, 2], [None, 0], [None, None], [0]):
        offers = [
            make_offer(url=f"https://a.test/{i}", discount_pct=d, price_base=None)
            for i, d in enumerate(discounts)
        ]
        assert apply_min_discount(offers, 90).offers


def test_empty_input_stays_empty() -> None:
    result = apply_min_discount([], 10)
    assert result.offers == []
    assert result.relaxation is Relaxation.NONE


def test_filter_eligible_applies_keywords_first(make_offer) -> None:
    policy = KeywordPolicy(enabled=True, allow=["ssd"], block=[])
    offers = [
        make_offer(url="https://a.test/1", title="SSD 2TB", discount_pct=2),
        make_offer(url="https://a.test/2", title="Cadeira", discount_pct=70),
    ]
    result = filter_eligible(offers, policy, 10)
    assert [o.title for o in result.offers] == ["SSD 2TB"]
    assert result.relaxation is Relaxation.ANY_DISCOUNT
