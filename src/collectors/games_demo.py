from __future__ import annotations

from datetime import datetime, timedelta, timezone

from src.collectors.base import RawOffer


def collect_demo_games() -> list[RawOffer]:
    now = datetime.now(timezone.utc)
    return [
        RawOffer(
            store="Steam",
            title="Hollow Knight",
            url="https://store.steampowered.com/app/367520/",
            image="https://cdn.akamai.steamstatic.com/steam/apps/367520/header.jpg",
            price_final=1349,
            price_base=4699,
            category="Metroidvania",
            sku="steam:367520",
            source="steam",
            fetched_at=now - timedelta(hours=1),
        ),
        RawOffer(
            store="Steam",
            title="Hades",
            url="https://store.steampowered.com/app/1145360/",
            image="https://cdn.akamai.steamstatic.com/steam/apps/1145360/header.jpg",
            price_final=3699,
            price_base=7399,
            discount_pct=50,
            category="Roguelike",
            sku="steam:1145360",
            source="steam",
            fetched_at=now - timedelta(hours=1),
        ),
        RawOffer(
            store="Epic Games",
            title="Celeste",
            url="https://store.epicgames.com/p/celeste",
            price_final=2999,
            price_base=3699,
            category="Platformer",
            sku="epic:celeste",
            source="epic",
            fetched_at=now - timedelta(minutes=40),
        ),
        RawOffer(
            store="GOG",
            title="The Witcher 3: Wild Hunt – Game of the Year Edition",
            url="https://www.gog.com/game/the_witcher_3_wild_hunt_game_of_the_year_edition",
            price_final=2399,
            price_base=11999,
            category="RPG",
            sku="gog:1207664663",
            source="gog",
            fetched_at=now - timedelta(minutes=20),
        ),
    ]
