from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone

from src.normalization.offer import Offer

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass(frozen=True)
class Feed:
    built_at: datetime
    items: tuple[Offer, ...]

    @classmethod
    def empty(cls) -> "Feed":
        return cls(built_at=EPOCH, items=())


class FeedStore:
    """Holds the last committed feed. Readers never block on a build."""

    def __init__(self) -> None:
        self._feed = Feed.empty()
        self._lock = threading.Lock()

    def current(self) -> Feed:
        return self._feed

    def commit(self, feed: Feed) -> bool:
        """Replace the current feed; empty or older feeds are refused."""
        with self._lock:
            if not feed.items:
                logger.warning("Refusing to commit an empty feed; keeping feed built at %s", self._feed.built_at)
                return False
            if feed.built_at < self._feed.built_at:
                logger.warning("Refusing to commit feed built at %s over newer %s", feed.built_at, self._feed.built_at)
                return False
            self._feed = feed
            return True
