"""Shared factories for the feed engine tests."""
from __future__ import annotations

from datetime import datetime, timezone

import pytest

from src.collectors.base import RawOffer
from src.config import Settings
from src.normalization.offer import Offer

BUILD_AT = datetime(2024, 5, 10, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    return BUILD_AT


@pytest.fixture
def make_raw():
    """RawOffer factory; keyword arguments override the defaults."""

    def _make(**overrides) -> RawOffer:
        fields = {
            "store": "Kabum",
            "title": "SSD NVMe 1TB",
            "url": "https://www.kabum.com.br/produto/1/ssd",
            "price_final": 40000,
            "price_base": 60000,
            "category": "storage",
            "source": "test",
            "fetched_at": BUILD_AT,
        }
        fields.update(overrides)
        return RawOffer(**fields)

    return _make


@pytest.fixture
def make_offer():
    """Offer factory; the identity key defaults to the URL."""

    def _make(**overrides) -> Offer:
        fields = {
            "store": "Kabum",
            "title": "SSD NVMe 1TB",
            "url": "https://www.kabum.com.br/produto/1/ssd",
            "price_final": 40000,
            "price_base": 60000,
            "discount_pct": 33,
            "availability": None,
            "category": "storage",
            "updated_at": BUILD_AT,
        }
        fields.update(overrides)
        fields.setdefault("identity_key", fields["url"])
        return Offer(**fields)

    return _make


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        feed_size=10,
        min_discount=10,
        rotation_file=tmp_path / "rotation.json",
        timezone="UTC",
        collector_timeout_seconds=2,
        build_timeout_seconds=5,
        use_demo_collectors=False,
    )
