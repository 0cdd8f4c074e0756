"""
Deterministic sample-data generator.

Produces:
  - 5 sellers
  - 20 products (SKU_001 .. SKU_020) with a unit cost and a list price
  - 200 receipts spread over Dec 2023
    - 1-4 line items each, sold at list price with 0-15 % discount
    - ~5 % reference an unknown seller (skipped by the analysis)
    - ~5 % carry an item with an unknown sku (counted at zero cost)

Run directly to print the ranking for the generated data:

    python -m sales_analytics.seed_data
"""

import random
from datetime import date, timedelta
from decimal import Decimal

from sales_analytics.models import LineItem, Product, PurchaseRecord, Seller
from sales_analytics.store import DataStore

SEED = 42
START = date(2023, 12, 1)
DAYS  = 31

SELLERS = [
    ("seller_1", "Alexey", "Petrov"),
    ("seller_2", "Ivan", "Smirnov"),
    ("seller_3", "Maria", "Volkova"),
    ("seller_4", "Nikolai", "Orlov"),
    ("seller_5", "Elena", "Sokolova"),
]

DISCOUNTS = [0, 0, 0, 5, 10, 15]


def seed(store: DataStore) -> None:
    rng = random.Random(SEED)

    # ── sellers ──────────────────────────────────────────────────────────────
    for seller_id, first_name, last_name in SELLERS:
        store.add_seller(Seller(id=seller_id, first_name=first_name, last_name=last_name))

    # ── products ─────────────────────────────────────────────────────────────
    list_prices: dict[str, Decimal] = {}
    for n in range(1, 21):
        sku = f"SKU_{n:03d}"
        cost = Decimal(str(round(rng.uniform(5, 200), 2)))
        # markup between 10 % and 80 %
        list_prices[sku] = (cost * Decimal(str(round(rng.uniform(1.1, 1.8), 2)))).quantize(Decimal("0.01"))
        store.add_product(Product(sku=sku, name=f"Product {n}", purchase_price=cost))

    skus = list(list_prices)
    seller_ids = [s[0] for s in SELLERS]

    # ── receipts ─────────────────────────────────────────────────────────────
    for n in range(1, 201):
        roll = rng.random()
        seller_id = "seller_unknown" if roll < 0.05 else rng.choice(seller_ids)

        items = []
        for _ in range(rng.randint(1, 4)):
            sku = rng.choice(skus)
            items.append(LineItem(
                sku=sku,
                sale_price=list_prices[sku],
                quantity=rng.randint(1, 5),
                discount=rng.choice(DISCOUNTS),
            ))
        if 0.05 <= roll < 0.10:
            items.append(LineItem(
                sku="SKU_DISCONTINUED",
                sale_price=Decimal(str(round(rng.uniform(10, 50), 2))),
                quantity=1,
                discount=0,
            ))

        store.add_purchase_record(PurchaseRecord(
            receipt_id=f"receipt_{n}",
            seller_id=seller_id,
            items=items,
            date=START + timedelta(days=rng.randrange(DAYS)),
        ))


if __name__ == "__main__":
    import logging

    from sales_analytics.engine import analyze
    from sales_analytics.logging_config import setup_logging

    setup_logging()
    log = logging.getLogger("sales_analytics.seed_data")

    sample = DataStore()
    seed(sample)
    for position, entry in enumerate(analyze(sample.dataset()), start=1):
        log.info(
            "%d. %-18s revenue=%10s profit=%10s bonus=%8s",
            position, entry.name, entry.revenue, entry.profit, entry.bonus,
        )
