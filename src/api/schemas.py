from typing import Dict, List, Optional

from pydantic import BaseModel

from src.curation.engine import BuildReport
from src.curation.feed import Feed
from src.normalization.offer import Offer


class FeedItem(BaseModel):
    id: str
    store: str
    title: str
    url: str
    image: Optional[str]
    category: Optional[str]
    price_final: int
    price_base: Optional[int]
    discount_pct: Optional[int]
    availability: Optional[str]
    updated_at: str

    @classmethod
    def from_offer(cls, offer: Offer) -> "FeedItem":
        return cls(
            id=offer.identity_key,
            store=offer.store,
            title=offer.title,
            url=offer.url,
            image=offer.image,
            category=offer.category,
            price_final=offer.price_final,
            price_base=offer.price_base,
            discount_pct=offer.discount_pct,
            availability=offer.availability,
            updated_at=offer.updated_at.isoformat(),
        )


class FeedResponse(BaseModel):
    built_at: str
    items: List[FeedItem]

    @classmethod
    def from_feed(cls, feed: Feed) -> "FeedResponse":
        return cls(built_at=feed.built_at.isoformat(), items=[FeedItem.from_offer(o) for o in feed.items])


class DailyFeedResponse(BaseModel):
    region: str
    locale: str
    day: Optional[str]
    items: List[FeedItem]


class CollectorStatus(BaseModel):
    name: str
    count: int
    error: Optional[str]
    elapsed_seconds: float


class BuildStatus(BaseModel):
    started_at: str
    finished_at: Optional[str]
    status: str
    strategy: str
    relaxation: Optional[str]
    seed: Optional[str]
    error: Optional[str]
    counts: Dict[str, int]
    collectors: List[CollectorStatus]
    building: bool
    stage: str

    @classmethod
    def from_report(cls, report: BuildReport, building: bool, stage: str = "idle") -> "BuildStatus":
        return cls(
            started_at=report.started_at.isoformat(),
            finished_at=report.finished_at.isoformat() if report.finished_at else None,
            status=report.status,
            strategy=report.strategy,
            relaxation=report.relaxation,
            seed=report.seed,
            error=report.error,
            counts=dict(report.counts),
            collectors=[
                CollectorStatus(
                    name=c.name, count=c.count, error=c.error, elapsed_seconds=c.elapsed_seconds
                )
                for c in report.collectors
            ],
            building=building,
            stage=stage,
        )
