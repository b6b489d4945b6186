from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional, Union


@dataclass
class RawOffer:
    """Offer exactly as a storefront collector produced it.

    Prices are in minor currency units. ``source`` tags which collector built
    the record; nothing downstream of the normalizer looks at it.
    """

    store: str
    title: str
    url: str
    price_final: Optional[Union[int, float]]
    price_base: Optional[Union[int, float]] = None
    discount_pct: Optional[Union[int, float]] = None
    availability: Optional[Union[str, bool]] = None
    image: Optional[str] = None
    category: Optional[str] = None
    sku: Optional[str] = None
    ean: Optional[str] = None
    source: str = "unknown"
    fetched_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class FetchOptions:
    limit: int = 50
    categories: list[str] = field(default_factory=list)


Collector = Callable[[], Union[list[RawOffer], Awaitable[list[RawOffer]]]]
