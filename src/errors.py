from __future__ import annotations


class FeedError(Exception):
    """Base class for curation engine errors."""


class CollectorError(FeedError):
    def __init__(self, store: str, reason: str):
        super().__init__(f"collector {store!r} failed: {reason}")
        self.store = store
        self.reason = reason


class PersistenceError(FeedError):
    """Rotation memory could not be loaded or saved."""


class ConfigurationError(FeedError):
    def __init__(self, errors: list[str]):
        super().__init__(f"Configuration errors: {', '.join(errors)}")
        self.errors = errors


class BuildError(FeedError):
    """A build stage after collection failed; nothing was committed."""
