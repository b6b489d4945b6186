"""Deterministic daily windows over a large, quality-sorted offer pool.

The seed algorithms are frozen; changing them reshuffles every deployed feed.

* ``string_seed``: 31-multiplier rolling hash over the code points of the
  seed string, wrapped to a signed 32-bit integer after every step, then
  made non-negative with ``abs``.
* ``mulberry32``: 32-bit PRNG yielding floats in [0, 1).
* ``seeded_shuffle``: Fisher-Yates from the last index down, swapping ``i``
  with ``floor(rand() * (i + 1))``.
"""
from __future__ import annotations

import math
from collections import Counter
from datetime import date, datetime, tzinfo
from typing import Callable, Sequence, TypeVar

from src.curation.eligibility import effective_discount
from src.normalization.offer import Offer

T = TypeVar("T")

_MASK32 = 0xFFFFFFFF


def _to_int32(value: int) -> int:
    value &= _MASK32
    return value - (1 << 32) if value & 0x80000000 else value


def string_seed(text: str) -> int:
    h = 0
    for ch in text:
        h = _to_int32((h << 5) - h + ord(ch))
    return abs(h)


def _imul(a: int, b: int) -> int:
    return (a * b) & _MASK32


def mulberry32(seed: int) -> Callable[[], float]:
    state = seed & _MASK32

    def next_float() -> float:
        nonlocal state
        state = (state + 0x6D2B79F5) & _MASK32
        t = state
        t = _imul(t ^ (t >> 15), t | 1)
        t ^= (t + _imul(t ^ (t >> 7), t | 61)) & _MASK32
        return ((t ^ (t >> 14)) & _MASK32) / 4294967296

    return next_float


def seeded_shuffle(items: Sequence[T], seed: int) -> list[T]:
    out = list(items)
    rand = mulberry32(seed)
    for i in range(len(out) - 1, 0, -1):
        j = math.floor(rand() * (i + 1))
        out[i], out[j] = out[j], out[i]
    return out


def day_key(now: datetime, tz: tzinfo) -> str:
    return now.astimezone(tz).date().isoformat()


def daily_seed(region: str, locale: str, day: date | str) -> str:
    day_text = day.isoformat() if isinstance(day, date) else str(day)
    return f"daily:{region.upper()}:{locale}:{day_text}"


def quality_order(offers: list[Offer]) -> list[Offer]:
    """Discount descending, then title, then identity key: a total order."""
    return sorted(
        offers,
        key=lambda o: (-(effective_discount(o) or 0), o.title.lower(), o.identity_key),
    )


def window_index(pool_size: int, size: int, seed: int) -> int:
    window_count = math.ceil(pool_size / size)
    return seed % window_count


def select_window(pool: Sequence[T], seed_text: str, size: int, pinned: int = 5) -> list[T]:
    """Pick this seed's window from ``pool`` (already in quality order).

    Windows are consecutive slices of ``size``; a short tail window is topped
    up circularly from the front of the pool, so any non-empty pool yields
    exactly ``size`` items (a pool smaller than ``size`` repeats). Inside the
    window the ``pinned`` best items stay on top in quality order and the rest
    are shuffled with the same seed.
    """
    if size <= 0 or not pool:
        return []
    seed = string_seed(seed_text)
    start = window_index(len(pool), size, seed) * size
    laps: Counter[int] = Counter()
    slots: list[tuple[int, int]] = []
    for offset in range(size):
        position = (start + offset) % len(pool)
        # quality order within each pass over the pool
        slots.append((laps[position], position))
        laps[position] += 1
    window = [pool[p] for _, p in sorted(slots)]
    head, tail = window[:pinned], window[pinned:]
    return head + seeded_shuffle(tail, seed)
