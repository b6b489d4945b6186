"""Feed build orchestration.

collect (concurrent, per-collector timeout) -> normalize -> dedupe -> filter
-> score + diversify | daily window -> commit feed -> persist rotation memory.

Curation between collection and commit is synchronous and in-memory, so a
build that is cancelled or fails before committing leaves no trace. Rotation
memory I/O runs in worker threads, off the event loop.
"""
from __future__ import annotations

import asyncio
import inspect
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Optional, Sequence

from src.cache.memory import TTLCache
from src.collectors.base import Collector, RawOffer
from src.config import Settings
from src.curation.dedup import dedupe_keep_cheapest
from src.curation.diversify import DiversityCaps, diversify
from src.curation.eligibility import KeywordPolicy, filter_eligible
from src.curation.feed import Feed, FeedStore
from src.curation.rotation import RotationMemory, RotationStore
from src.curation.scoring import ScoringWeights, score_offers
from src.curation.windowing import daily_seed, day_key, quality_order, select_window
from src.errors import BuildError, CollectorError, PersistenceError
from src.normalization.offer import Offer, normalize_offers

logger = logging.getLogger(__name__)

POOL_CACHE_KEY = "eligible_pool"


class BuildStage(str, Enum):
    IDLE = "idle"
    COLLECTING = "collecting"
    NORMALIZING = "normalizing"
    FILTERING = "filtering"
    SELECTING = "selecting"
    DIVERSIFYING = "diversifying"
    COMMITTING = "committing"


@dataclass
class CollectorResult:
    name: str
    count: int = 0
    error: Optional[str] = None
    elapsed_seconds: float = 0.0


@dataclass
class BuildReport:
    started_at: datetime
    strategy: str
    status: str = "running"
    finished_at: Optional[datetime] = None
    collectors: list[CollectorResult] = field(default_factory=list)
    counts: dict[str, int] = field(default_factory=dict)
    relaxation: Optional[str] = None
    seed: Optional[str] = None
    error: Optional[str] = None


def collector_name(fn: Collector) -> str:
    for attr in ("store", "__name__"):
        value = getattr(fn, attr, None)
        if isinstance(value, str) and value:
            return value
    inner = getattr(fn, "func", None)
    if inner is not None:
        return collector_name(inner)
    return repr(fn)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CurationEngine:
    def __init__(
        self,
        settings: Settings,
        rotation_store: RotationStore,
        clock: Callable[[], datetime] = _utcnow,
        pool_cache: Optional[TTLCache[str, list[Offer]]] = None,
    ):
        self.settings = settings
        self.rotation_store = rotation_store
        self.feed_store = FeedStore()
        self.pool_cache = pool_cache or TTLCache(settings.pool_cache_ttl_seconds)
        self.keywords = KeywordPolicy(
            enabled=settings.keyword_filter_enabled,
            allow=settings.allow_keywords,
            block=settings.block_keywords,
        )
        self.weights = ScoringWeights(
            discount_weight=settings.discount_weight,
            availability_bonus=settings.availability_bonus,
            recency_bonus=settings.recency_bonus,
            cooldown_penalty=settings.cooldown_penalty,
        )
        self.caps = DiversityCaps.from_ratios(
            settings.feed_size, settings.store_cap_ratio, settings.category_cap_ratio
        )
        self._clock = clock
        self._stage = BuildStage.IDLE
        self._inflight: Optional[asyncio.Future[Feed]] = None
        self._last_report: Optional[BuildReport] = None

    @property
    def stage(self) -> BuildStage:
        return self._stage

    @property
    def is_building(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    @property
    def last_report(self) -> Optional[BuildReport]:
        return self._last_report

    def get_current_feed(self) -> Feed:
        return self.feed_store.current()

    async def rebuild_feed(self, collectors: Sequence[Collector]) -> Feed:
        """Run one build, or join the build already in flight."""
        if self.is_building:
            logger.info("Build already in flight; joining it instead of starting another")
        else:
            self._inflight = asyncio.ensure_future(self._build(list(collectors)))
        return await asyncio.shield(self._inflight)

    def daily_window(self, region: str, locale: str, day: Optional[str] = None) -> list[Offer]:
        """Window of the cached eligible pool for a (region, locale, day) seed."""
        pool = self.pool_cache.get(POOL_CACHE_KEY)
        if not pool:
            return []
        day = day or day_key(self._clock(), self.settings.tzinfo)
        return select_window(
            pool,
            daily_seed(region, locale, day),
            self.settings.feed_size,
            self.settings.window_pinned_count,
        )

    async def _build(self, collectors: list[Collector]) -> Feed:
        now = self._clock()
        report = BuildReport(started_at=now, strategy=self.settings.selection_strategy)
        try:
            memory = await self._load_rotation()
            self._stage = BuildStage.COLLECTING
            raw = await self._collect(collectors, report)
            try:
                selected, pool = self._curate(raw, memory, now, report)
            except Exception as exc:
                report.status = "failed"
                report.error = str(exc)
                logger.exception("Feed build failed at stage %s", self._stage.value)
                raise BuildError(f"build failed while {self._stage.value}: {exc}") from exc
            self._stage = BuildStage.COMMITTING
            feed = self._commit(selected, pool, memory, now, report)
            if report.status == "committed":
                await self._persist_rotation(memory)
            return feed
        except asyncio.CancelledError:
            if report.status == "running":
                report.status = "cancelled"
                logger.warning("Feed build cancelled before commit")
            raise
        finally:
            self._stage = BuildStage.IDLE
            report.finished_at = self._clock()
            self._last_report = report

    async def _load_rotation(self) -> RotationMemory:
        try:
            return RotationMemory(await asyncio.to_thread(self.rotation_store.load_all))
        except PersistenceError as exc:
            logger.warning("Rotation memory unavailable, building without anti-repetition: %s", exc)
            return RotationMemory()

    async def _run_collector(self, fn: Collector) -> list[RawOffer]:
        if inspect.iscoroutinefunction(fn):
            pending = fn()
        else:
            pending = asyncio.to_thread(fn)
        result = await asyncio.wait_for(pending, timeout=self.settings.collector_timeout_seconds)
        if inspect.isawaitable(result):
            result = await asyncio.wait_for(result, timeout=self.settings.collector_timeout_seconds)
        return list(result or [])

    async def _timed_collector(self, fn: Collector, outcome: CollectorResult) -> list[RawOffer]:
        started = time.monotonic()
        try:
            return await self._run_collector(fn)
        finally:
            outcome.elapsed_seconds = round(time.monotonic() - started, 3)

    async def _collect(self, collectors: list[Collector], report: BuildReport) -> list[RawOffer]:
        outcomes = [CollectorResult(name=collector_name(fn)) for fn in collectors]
        report.collectors = outcomes
        if not collectors:
            logger.warning("No collectors configured")
            return []

        tasks = [
            asyncio.ensure_future(self._timed_collector(fn, outcome))
            for fn, outcome in zip(collectors, outcomes)
        ]
        try:
            _, pending = await asyncio.wait(tasks, timeout=self.settings.build_timeout_seconds)
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()

        collected: list[RawOffer] = []
        # collector order matters: on equal prices the later collector wins dedupe
        for task, outcome in zip(tasks, outcomes):
            if task in pending:
                error = CollectorError(outcome.name, "build collection ceiling reached")
            elif task.exception() is not None:
                exc = task.exception()
                reason = "timed out" if isinstance(exc, asyncio.TimeoutError) else str(exc) or type(exc).__name__
                error = CollectorError(outcome.name, reason)
            else:
                part = task.result()
                outcome.count = len(part)
                collected.extend(part)
                logger.info("Collector %s returned %d offers", outcome.name, len(part))
                continue
            outcome.error = error.reason
            logger.warning("%s", error)

        report.counts["collected"] = len(collected)
        logger.info("Collected %d raw offers from %d collectors", len(collected), len(collectors))
        return collected

    def _curate(
        self, raw: list[RawOffer], memory: RotationMemory, now: datetime, report: BuildReport
    ) -> tuple[list[Offer], list[Offer]]:
        self._stage = BuildStage.NORMALIZING
        offers = normalize_offers(raw, now)
        deduped = dedupe_keep_cheapest(offers)
        report.counts["normalized"] = len(offers)
        report.counts["deduplicated"] = len(deduped)
        logger.info("Normalized %d offers, %d after dedupe", len(offers), len(deduped))

        self._stage = BuildStage.FILTERING
        eligible = filter_eligible(deduped, self.keywords, self.settings.min_discount)
        report.relaxation = eligible.relaxation.value
        report.counts["eligible"] = len(eligible.offers)
        logger.info("%d eligible offers (relaxation=%s)", len(eligible.offers), eligible.relaxation.value)
        if not eligible.offers:
            return [], []

        pool = quality_order(eligible.offers)

        self._stage = BuildStage.SELECTING
        if self.settings.selection_strategy == "window":
            report.seed = daily_seed(self.settings.region, self.settings.locale, day_key(now, self.settings.tzinfo))
            selected = select_window(pool, report.seed, self.settings.feed_size, self.settings.window_pinned_count)
        else:
            cooldown = timedelta(seconds=self.settings.cooldown_seconds)
            scored = score_offers(eligible.offers, memory, now, cooldown, self.weights)
            self._stage = BuildStage.DIVERSIFYING
            picked = diversify(scored, self.caps)
            if scored and not picked:
                logger.warning("Diversity caps rejected all %d scored offers", len(scored))
            selected = [s.offer for s in picked]

        report.counts["selected"] = len(selected)
        return selected, pool

    def _commit(
        self, selected: list[Offer], pool: list[Offer], memory: RotationMemory, now: datetime, report: BuildReport
    ) -> Feed:
        if not selected:
            report.status = "empty"
            logger.warning("Build produced no offers; keeping feed built at %s", self.get_current_feed().built_at)
            return self.get_current_feed()

        feed = Feed(built_at=now, items=tuple(selected))
        if not self.feed_store.commit(feed):
            report.status = "empty"
            return self.get_current_feed()
        report.status = "committed"
        self.pool_cache.set(POOL_CACHE_KEY, pool)
        logger.info("Committed feed with %d offers", len(feed.items))

        memory.stamp((o.identity_key for o in selected), now)
        if self.settings.rotation_ttl_hours > 0:
            pruned = memory.prune(now - timedelta(hours=self.settings.rotation_ttl_hours))
            if pruned:
                logger.info("Pruned %d stale rotation entries", pruned)
        return feed

    async def _persist_rotation(self, memory: RotationMemory) -> None:
        try:
            await asyncio.to_thread(self.rotation_store.persist, memory.snapshot())
        except PersistenceError as exc:
            logger.error("Rotation memory not saved; feed kept: %s", exc)
