from datetime import timedelta

from src.curation.feed import Feed, FeedStore


def test_starts_empty() -> None:
    feed = FeedStore().current()
    assert feed.items == ()


def test_empty_feed_never_replaces_good_one(make_offer, now) -> None:
    store = FeedStore()
    good = Feed(built_at=now, items=(make_offer(),))
    assert store.commit(good)
    assert not store.commit(Feed(built_at=now + timedelta(minutes=30), items=()))
    assert store.current() is good


def test_older_feed_is_refused(make_offer, now) -> None:
    store = FeedStore()
    newer = Feed(built_at=now, items=(make_offer(),))
    store.commit(newer)
    assert not store.commit(Feed(built_at=now - timedelta(hours=1), items=(make_offer(),)))
    assert store.current() is newer
