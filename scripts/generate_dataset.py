"""
Coffee Shop Sales Dataset Generator
Writes a synthetic sales_enriched.csv in the raw export layout (all text columns).
"""

import argparse
from datetime import datetime, timedelta
from pathlib import Path

import numpy as np
import polars as pl
from faker import Faker

OUTPUT_DIR = Path(__file__).parent.parent / "data"

# name, category, size, price, unit cost
MENU = [
    ("Cappuccino", "Hot Drinks", "Medium", 3.20, 0.85),
    ("Cappuccino", "Hot Drinks", "Large", 3.60, 1.00),
    ("Latte", "Hot Drinks", "Medium", 3.40, 0.95),
    ("Latte", "Hot Drinks", "Large", 3.80, 1.10),
    ("Flat White", "Hot Drinks", "Medium", 3.30, 0.90),
    ("Espresso", "Hot Drinks", "Small", 2.20, 0.45),
    ("Americano", "Hot Drinks", "Medium", 2.60, 0.50),
    ("Hot Chocolate", "Hot Drinks", "Large", 3.50, 1.20),
    ("Earl Grey Tea", "Tea", "Medium", 2.30, 0.30),
    ("Chai Latte", "Tea", "Large", 3.50, 1.15),
    ("Iced Latte", "Cold Drinks", "Large", 3.90, 1.30),
    ("Iced Americano", "Cold Drinks", "Large", 3.00, 0.70),
    ("Frappe", "Cold Drinks", "Large", 4.50, 1.80),
    ("Croissant", "Bakery", "Regular", 2.50, 0.90),
    ("Blueberry Muffin", "Bakery", "Regular", 2.80, 1.10),
    ("Banana Bread", "Bakery", "Regular", 2.90, 1.20),
    ("Ham & Cheese Toastie", "Food", "Regular", 5.20, 2.60),
    ("Avocado Toast", "Food", "Regular", 6.50, 3.40),
]

SHIFTS = [(7, 11, "Morning"), (11, 15, "Midday"), (15, 18, "Afternoon"), (18, 21, "Evening")]


def shift_for(hour: int) -> str:
    for start, end, name in SHIFTS:
        if start <= hour < end:
            return name
    return "Evening"


def generate_sales(n_orders: int = 2000, seed: int = 42, header_artifacts: int = 0) -> pl.DataFrame:
    print(f"📊 Generating {n_orders:,} orders...")

    rng = np.random.default_rng(seed)
    fake = Faker()
    Faker.seed(seed)

    base_date = datetime.now().replace(hour=0, minute=0, second=0, microsecond=0) - timedelta(days=90)
    popularity = rng.dirichlet(np.ones(len(MENU)) * 0.8)

    rows = []
    line_no = 0
    for order_no in range(1, n_orders + 1):
        created = base_date + timedelta(
            days=int(rng.integers(0, 90)),
            hours=int(rng.integers(7, 21)),
            minutes=int(rng.integers(0, 60)),
        )
        customer = fake.first_name()
        channel = "in" if rng.random() < 0.45 else "out"
        for menu_index in rng.choice(len(MENU), size=int(rng.integers(1, 5)), p=popularity):
            name, category, size, price, cost = MENU[menu_index]
            quantity = int(rng.choice([1, 1, 1, 2, 3]))
            revenue = round(quantity * price, 2)
            total_cost = round(quantity * cost, 2)
            contribution = round(revenue - total_cost, 2)
            line_no += 1
            rows.append({
                "row_id": str(line_no),
                "order_id": f"ORD-{order_no:06d}",
                "created_at": created.strftime("%Y-%m-%d %H:%M:%S"),
                "order_date": created.strftime("%d-%m-%Y"),
                "order_hour": str(created.hour),
                "shift_bucket": shift_for(created.hour),
                "day_of_week": created.strftime("%A"),
                "cust_name": customer,
                "in_or_out": channel,
                "item_id": f"IT{menu_index + 1:03d}",
                "sku": f"{category[:3].upper()}-{name[:3].upper()}-{size[0]}",
                "item_name": name,
                "item_cat": category,
                "item_size": size,
                "quantity": str(quantity),
                "item_price": f"{price:.2f}",
                "revenue": f"{revenue:.2f}",
                "unit_cost": f"{cost:.2f}",
                "total_cost": f"{total_cost:.2f}",
                "contribution": f"{contribution:.2f}",
                "margin_pct": f"{contribution / revenue * 100:.2f}%" if revenue else "",
            })

    columns = list(rows[0].keys())
    # Header rows re-imported as data, as seen in real exports
    for _ in range(header_artifacts):
        rows.insert(int(rng.integers(0, len(rows))), {col: col for col in columns})

    return pl.DataFrame(rows, schema={col: pl.Utf8 for col in columns})


def main():
    parser = argparse.ArgumentParser(description="Generate a synthetic coffee shop sales export")
    parser.add_argument("--orders", type=int, default=2000, help="Number of orders (default: 2000)")
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--header-artifacts", type=int, default=1, help="Header rows to embed as data")
    parser.add_argument("--output", type=Path, default=OUTPUT_DIR / "sales_enriched.csv")
    args = parser.parse_args()

    print("=" * 60)
    print("☕ Coffee Shop Sales Dataset Generator")
    print("=" * 60 + "\n")

    df = generate_sales(args.orders, args.seed, args.header_artifacts)

    args.output.parent.mkdir(parents=True, exist_ok=True)
    df.write_csv(args.output)

    size = args.output.stat().st_size / 1024
    print(f"   ✅ {args.output.name}: {df.height:,} rows ({size:.1f} KB)")


if __name__ == "__main__":
    main()
