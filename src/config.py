"""Runtime configuration read from the environment (and an optional .env file)."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

from src.errors import ConfigurationError
from src.normalization.offer import fold_text

STRATEGIES = ("score", "window")
ROTATION_BACKENDS = ("file", "db")


def _split_keywords(raw: str) -> list[str]:
    return [kw.strip() for kw in (raw or "").split(",") if kw.strip()]


def _parse_sources(raw: str) -> list[tuple[str, str]]:
    out: list[tuple[str, str]] = []
    for chunk in _split_keywords(raw):
        store, sep, url = chunk.partition("=")
        if not sep:
            raise ValueError(f"FEED_SOURCES entry {chunk!r} must look like store=url")
        out.append((store.strip(), url.strip()))
    return out


@dataclass
class Settings:
    feed_size: int = 20
    min_discount: int = 10
    store_cap_ratio: float = 0.8
    category_cap_ratio: float = 0.7
    selection_strategy: str = "score"

    rotation_cooldown_hours: float = 72.0
    rotation_backend: str = "file"
    rotation_file: Path = Path("data/rotation.json")
    rotation_ttl_hours: float = 0.0

    keyword_filter_enabled: bool = False
    allow_keywords: list[str] = field(default_factory=list)
    block_keywords: list[str] = field(default_factory=list)

    discount_weight: float = 0.7
    availability_bonus: float = 5.0
    recency_bonus: float = 5.0
    cooldown_penalty: float = 30.0

    window_pinned_count: int = 5
    region: str = "BR"
    locale: str = "pt-BR"
    timezone: str = "America/Fortaleza"

    collector_timeout_seconds: float = 15.0
    build_timeout_seconds: float = 60.0
    build_interval_minutes: float = 30.0
    pool_cache_ttl_seconds: float = 6 * 3600

    feed_sources: list[tuple[str, str]] = field(default_factory=list)
    use_demo_collectors: bool = True
    db_path: Optional[Path] = None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        errors: list[str] = []

        def read(name: str, cast, default):
            raw = env.get(name)
            if raw is None or raw.strip() == "":
                return default
            try:
                return cast(raw.strip())
            except ValueError:
                errors.append(f"{name}={raw!r} is not a valid {cast.__name__}")
                return default

        def read_bool(name: str, default: bool) -> bool:
            raw = env.get(name)
            if raw is None or raw.strip() == "":
                return default
            return raw.strip().lower() in {"1", "true", "yes", "on"}

        try:
            sources = _parse_sources(env.get("FEED_SOURCES", ""))
        except ValueError as exc:
            errors.append(str(exc))
            sources = []

        db_path = env.get("APP_DB_PATH")
        settings = cls(
            feed_size=read("FEED_SIZE", int, 20),
            min_discount=read("FEED_MIN_DISCOUNT", int, 10),
            store_cap_ratio=read("FEED_STORE_CAP_RATIO", float, 0.8),
            category_cap_ratio=read("FEED_CATEGORY_CAP_RATIO", float, 0.7),
            selection_strategy=env.get("FEED_SELECTION_STRATEGY", "score").strip().lower(),
            rotation_cooldown_hours=read("ROTATION_COOLDOWN_HOURS", float, 72.0),
            rotation_backend=env.get("ROTATION_BACKEND", "file").strip().lower(),
            rotation_file=Path(env.get("ROTATION_FILE", "data/rotation.json")),
            rotation_ttl_hours=read("ROTATION_TTL_HOURS", float, 0.0),
            keyword_filter_enabled=read_bool("KEYWORD_FILTER_ENABLED", False),
            allow_keywords=_split_keywords(env.get("ALLOW_KEYWORDS", "")),
            block_keywords=_split_keywords(env.get("BLOCK_KEYWORDS", "")),
            discount_weight=read("SCORE_DISCOUNT_WEIGHT", float, 0.7),
            availability_bonus=read("SCORE_AVAILABILITY_BONUS", float, 5.0),
            recency_bonus=read("SCORE_RECENCY_BONUS", float, 5.0),
            cooldown_penalty=read("SCORE_COOLDOWN_PENALTY", float, 30.0),
            window_pinned_count=read("WINDOW_PINNED_COUNT", int, 5),
            region=env.get("FEED_REGION", "BR").strip(),
            locale=env.get("FEED_LOCALE", "pt-BR").strip(),
            timezone=env.get("FEED_TZ", "America/Fortaleza").strip(),
            collector_timeout_seconds=read("COLLECTOR_TIMEOUT_SECONDS", float, 15.0),
            build_timeout_seconds=read("BUILD_TIMEOUT_SECONDS", float, 60.0),
            build_interval_minutes=read("BUILD_INTERVAL_MINUTES", float, 30.0),
            pool_cache_ttl_seconds=read("POOL_CACHE_TTL_SECONDS", float, 6 * 3600.0),
            feed_sources=sources,
            use_demo_collectors=read_bool("USE_DEMO_COLLECTORS", True),
            db_path=Path(db_path) if db_path else None,
        )
        if errors:
            raise ConfigurationError(errors)
        settings.validate()
        return settings

    def validate(self) -> None:
        errors: list[str] = []
        if self.feed_size <= 0:
            errors.append("FEED_SIZE must be a positive integer")
        if not 0 <= self.min_discount <= 100:
            errors.append("FEED_MIN_DISCOUNT must be within 0..100")
        for name, ratio in (
            ("FEED_STORE_CAP_RATIO", self.store_cap_ratio),
            ("FEED_CATEGORY_CAP_RATIO", self.category_cap_ratio),
        ):
            if not 0 < ratio <= 1:
                errors.append(f"{name} must be within (0, 1]")
        if self.selection_strategy not in STRATEGIES:
            errors.append(f"FEED_SELECTION_STRATEGY must be one of {', '.join(STRATEGIES)}")
        if self.rotation_backend not in ROTATION_BACKENDS:
            errors.append(f"ROTATION_BACKEND must be one of {', '.join(ROTATION_BACKENDS)}")
        if self.rotation_cooldown_hours < 0:
            errors.append("ROTATION_COOLDOWN_HOURS must be >= 0")
        if self.rotation_ttl_hours < 0:
            errors.append("ROTATION_TTL_HOURS must be >= 0")
        if self.cooldown_penalty < 0:
            errors.append("SCORE_COOLDOWN_PENALTY must be >= 0")
        if self.window_pinned_count < 0:
            errors.append("WINDOW_PINNED_COUNT must be >= 0")
        if self.collector_timeout_seconds <= 0 or self.build_timeout_seconds <= 0:
            errors.append("collector/build timeouts must be positive")
        if self.build_interval_minutes <= 0:
            errors.append("BUILD_INTERVAL_MINUTES must be positive")

        allow = {fold_text(kw) for kw in self.allow_keywords}
        block = {fold_text(kw) for kw in self.block_keywords}
        if "" in allow or "" in block:
            errors.append("keyword lists must not contain blank entries")
        overlap = sorted((allow & block) - {""})
        if overlap:
            errors.append(f"keywords both allowed and blocked: {', '.join(overlap)}")

        try:
            ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError):
            errors.append(f"FEED_TZ {self.timezone!r} is not a known timezone")

        if errors:
            raise ConfigurationError(errors)

    @property
    def cooldown_seconds(self) -> float:
        return self.rotation_cooldown_hours * 3600

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


def load_settings() -> Settings:
    load_dotenv()
    return Settings.from_env()
