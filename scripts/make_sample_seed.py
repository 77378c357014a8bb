#!/usr/bin/env python
from __future__ import annotations

import argparse
import json
from datetime import date, timedelta
from pathlib import Path


def build_seed(count: int, start: date) -> dict[str, list[dict]]:
    dealers = []
    orders = []
    products = []
    for index in range(1, count + 1):
        created = (start + timedelta(days=index)).isoformat()
        dealer_id = f"dealer-{index}"
        dealers.append(
            {
                "id": dealer_id,
                "name": f"Dealer {index}",
                "business_name": f"Dealer {index} Agro Traders",
                "phone": f"98{index:08d}",
                "city": "Pune" if index % 2 else "Nagpur",
                "state": "Maharashtra",
                "status": "active" if index % 3 else "inactive",
                "kyc_status": "verified" if index % 2 else "pending",
                "credit_limit": 50000 * index,
                "created_at": created,
            }
        )
        products.append(
            {
                "id": f"product-{index}",
                "sku": f"SKU-{index:04d}",
                "name": f"Bio Fertilizer {index}",
                "category": "fertilizer" if index % 2 else "pesticide",
                "price": 450 + 25 * index,
                "cost": 300 + 20 * index,
                "unit": "kg",
                "min_stock_level": 100,
                "created_at": created,
            }
        )
        orders.append(
            {
                "id": f"order-{index}",
                "order_number": f"SO-{index:05d}",
                "dealer_id": dealer_id,
                "dealer": {"name": f"Dealer {index}"},
                "order_date": created,
                "status": "pending" if index % 2 else "delivered",
                "payment_status": "unpaid" if index % 2 else "paid",
                "total_amount": 1250.5 * index,
                "created_at": created,
            }
        )
    return {"dealers": dealers, "products": products, "orders": orders}


def main() -> None:
    parser = argparse.ArgumentParser(description="Generate a JSON seed file for the in-memory store")
    parser.add_argument("--output", required=True, help="output path (.json)")
    parser.add_argument("--count", type=int, default=10, help="records per collection")
    parser.add_argument("--start", default="2024-01-01", help="first created_at date, YYYY-MM-DD")
    args = parser.parse_args()

    output = Path(args.output)
    output.parent.mkdir(parents=True, exist_ok=True)
    seed = build_seed(args.count, date.fromisoformat(args.start))
    with output.open("w", encoding="utf-8") as fp:
        json.dump(seed, fp, ensure_ascii=False, indent=2)

    print(f"seed file written: {output}")


if __name__ == "__main__":
    main()
