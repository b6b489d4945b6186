from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Optional, Union
from urllib.request import Request, urlopen

from src.collectors.base import FetchOptions, RawOffer

DEFAULT_TIMEOUT_SECONDS = 10


def _fetch_json(url: str, timeout: float) -> object:
    req = Request(
        url,
        headers={
            "User-Agent": "Mozilla/5.0 (compatible; deals-feed/0.1)",
            "Accept": "application/json,text/plain,*/*",
        },
    )
    with urlopen(req, timeout=timeout) as resp:
        raw = resp.read().decode("utf-8", errors="ignore")
    return json.loads(raw)


def _first(item: dict[str, Any], *keys: str) -> Optional[Any]:
    for key in keys:
        value = item.get(key)
        if value is not None and value != "":
            return value
    return None


def _text(value: Optional[Any]) -> Optional[str]:
    if value is None or isinstance(value, (dict, list)):
        return None
    return str(value)


def _availability(value: Optional[Any]) -> Optional[Union[str, bool]]:
    if value is None or isinstance(value, (bool, str)):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    return None


def parse_offer(store: str, item: dict[str, Any], fetched_at: datetime) -> Optional[RawOffer]:
    title = _text(_first(item, "title", "name"))
    url = _text(_first(item, "url", "link"))
    if not title or not url:
        return None
    return RawOffer(
        store=_text(_first(item, "store")) or store,
        title=title,
        url=url,
        price_final=_first(item, "priceFinalCents", "price_final"),
        price_base=_first(item, "priceBaseCents", "price_base"),
        discount_pct=_first(item, "discountPct", "discount_pct"),
        availability=_availability(_first(item, "availability")),
        image=_text(_first(item, "image")),
        category=_text(_first(item, "category")),
        sku=_text(_first(item, "sku")),
        ean=_text(_first(item, "ean")),
        source="json_feed",
        fetched_at=fetched_at,
    )


class JsonFeedCollector:
    """Reads a JSON array (or ``{"items": [...]}``) of offers from ``url``."""

    def __init__(
        self,
        store: str,
        url: str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        options: Optional[FetchOptions] = None,
    ):
        self.store = store
        self.url = url
        self.timeout = timeout
        self.options = options or FetchOptions()

    def __call__(self) -> list[RawOffer]:
        payload = _fetch_json(self.url, self.timeout)
        if isinstance(payload, dict):
            payload = payload.get("items", [])
        if not isinstance(payload, list):
            raise ValueError(f"{self.url} did not return a list of offers")

        now = datetime.now(timezone.utc)
        wanted = {c.lower() for c in self.options.categories}
        out: list[RawOffer] = []
        for item in payload:
            if not isinstance(item, dict):
                continue
            offer = parse_offer(self.store, item, now)
            if offer is None:
                continue
            if wanted and (offer.category or "").lower() not in wanted:
                continue
            out.append(offer)
            if len(out) >= self.options.limit:
                break
        return out
