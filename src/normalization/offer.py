from __future__ import annotations

import logging
import math
import re
import unicodedata
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union
from urllib.parse import urlparse

from src.collectors.base import RawOffer

logger = logging.getLogger(__name__)

AVAILABILITY_VALUES = ("in_stock", "out_of_stock", "preorder", "unknown")

_AVAILABILITY_ALIASES = {
    "instock": "in_stock",
    "in stock": "in_stock",
    "available": "in_stock",
    "outofstock": "out_of_stock",
    "out of stock": "out_of_stock",
    "soldout": "out_of_stock",
    "sold_out": "out_of_stock",
    "unavailable": "out_of_stock",
    "pre_order": "preorder",
    "pre-order": "preorder",
}

# Provided discounts further than this from the derived one are replaced.
_DISCOUNT_TOLERANCE = 1


@dataclass(frozen=True)
class Offer:
    identity_key: str
    store: str
    title: str
    url: str
    price_final: int
    updated_at: datetime
    price_base: Optional[int] = None
    discount_pct: Optional[int] = None
    availability: Optional[str] = None
    category: Optional[str] = None
    image: Optional[str] = None


def fold_text(value: Optional[str]) -> str:
    """Lowercase, strip diacritics and collapse whitespace."""
    decomposed = unicodedata.normalize("NFD", value or "")
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return re.sub(r"\s+", " ", stripped.lower()).strip()


def identity_key(ean: Optional[str], sku: Optional[str], url: str) -> str:
    for candidate in (ean, sku):
        if candidate and str(candidate).strip():
            return str(candidate).strip()
    return url


def derive_discount(price_base: Optional[int], price_final: int) -> Optional[int]:
    if not price_base or price_base <= price_final:
        return None
    pct = round((1 - price_final / price_base) * 100)
    return max(0, min(100, pct))


def _minor_units(value: Optional[Union[int, float, str]]) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return int(round(number))


def _usable_url(url: Optional[str]) -> Optional[str]:
    if not isinstance(url, str):
        return None
    url = url.strip()
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return None
    return url


def _availability(value: Optional[Union[str, bool]]) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bool):
        return "in_stock" if value else "out_of_stock"
    if not isinstance(value, str):
        return "unknown"
    text = value.strip().lower()
    if text in AVAILABILITY_VALUES:
        return text
    return _AVAILABILITY_ALIASES.get(text, "unknown")


def _clean_optional(value: Optional[str]) -> Optional[str]:
    if not isinstance(value, str):
        return None
    return value.strip() or None


def normalize_offer(raw: RawOffer, built_at: datetime) -> Optional[Offer]:
    """Canonical offer for ``raw``, or None when it has no usable URL or price."""
    url = _usable_url(raw.url)
    if url is None:
        return None
    price_final = _minor_units(raw.price_final)
    if price_final is None or price_final <= 0:
        return None

    price_base = _minor_units(raw.price_base)
    if price_base is not None and price_base <= price_final:
        price_base = None

    derived = derive_discount(price_base, price_final)
    provided = _minor_units(raw.discount_pct)
    if provided is not None:
        provided = max(0, min(100, provided))

    if derived is not None and (provided is None or abs(provided - derived) > _DISCOUNT_TOLERANCE):
        if provided is not None:
            logger.debug("Replacing discount %s%% with %s%% for %s", provided, derived, url)
        discount_pct = derived
    else:
        discount_pct = provided

    return Offer(
        identity_key=identity_key(raw.ean, raw.sku, url),
        store=_clean_optional(raw.store) or "unknown",
        title=re.sub(r"\s+", " ", raw.title if isinstance(raw.title, str) else "").strip(),
        url=url,
        price_final=price_final,
        price_base=price_base,
        discount_pct=discount_pct,
        availability=_availability(raw.availability),
        category=_clean_optional(raw.category),
        image=_clean_optional(raw.image),
        updated_at=built_at,
    )


def normalize_offers(raws: list[RawOffer], built_at: datetime) -> list[Offer]:
    out: list[Offer] = []
    for raw in raws:
        try:
            offer = normalize_offer(raw, built_at)
        except (TypeError, ValueError, AttributeError) as exc:
            logger.warning("Dropping unreadable offer from %s: %s", getattr(raw, "store", "?"), exc)
            continue
        if offer is not None:
            out.append(offer)
    rejected = len(raws) - len(out)
    if rejected:
        logger.debug("Normalizer rejected %d of %d raw offers", rejected, len(raws))
    return out
