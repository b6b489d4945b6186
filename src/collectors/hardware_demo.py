from __future__ import annotations

from datetime import datetime, timedelta, timezone

from src.collectors.base import RawOffer


def collect_demo_hardware() -> list[RawOffer]:
    now = datetime.now(timezone.utc)
    return [
        RawOffer(
            store="Kabum",
            title="Placa de Vídeo RTX 4060 Ti 8GB GDDR6",
            url="https://www.kabum.com.br/produto/461699/placa-de-video-rtx-4060-ti",
            price_final=249990,
            price_base=329990,
            availability="in_stock",
            category="gpu",
            sku="KB-461699",
            ean="7899123400012",
            source="kabum",
            fetched_at=now - timedelta(minutes=12),
        ),
        RawOffer(
            store="Kabum",
            title="SSD NVMe 1TB M.2 2280 PCIe 4.0",
            url="https://www.kabum.com.br/produto/380285/ssd-nvme-1tb",
            price_final=39990,
            price_base=59990,
            availability="in_stock",
            category="storage",
            sku="KB-380285",
            source="kabum",
            fetched_at=now - timedelta(minutes=12),
        ),
        RawOffer(
            store="Pichau",
            title="Processador Ryzen 7 5700X3D AM4",
            url="https://www.pichau.com.br/processador-amd-ryzen-7-5700x3d",
            price_final=129990,
            price_base=169990,
            discount_pct=24,
            availability="in_stock",
            category="cpu",
            sku="PCH-5700X3D",
            source="pichau",
            fetched_at=now - timedelta(minutes=9),
        ),
        RawOffer(
            store="Pichau",
            title="Placa de Vídeo RTX 4060 Ti 8GB GDDR6",
            url="https://www.pichau.com.br/placa-de-video-rtx-4060-ti-8gb",
            price_final=244990,
            price_base=319990,
            availability="in_stock",
            category="gpu",
            ean="7899123400012",
            source="pichau",
            fetched_at=now - timedelta(minutes=9),
        ),
        RawOffer(
            store="Terabyte",
            title="Memória DDR5 32GB (2x16GB) 6000MHz",
            url="https://www.terabyteshop.com.br/produto/25871/memoria-ddr5-32gb",
            price_final=64990,
            price_base=79990,
            availability="preorder",
            category="memory",
            sku="TB-25871",
            source="terabyte",
            fetched_at=now - timedelta(minutes=5),
        ),
        RawOffer(
            store="Terabyte",
            title="Fonte 750W 80 Plus Gold Modular",
            url="https://www.terabyteshop.com.br/produto/19844/fonte-750w",
            price_final=54990,
            price_base=54990,
            availability="out_of_stock",
            category="psu",
            sku="TB-19844",
            source="terabyte",
            fetched_at=now - timedelta(minutes=5),
        ),
    ]
