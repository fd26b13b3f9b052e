"""
Marketplace Dataset Generator

Writes a synthetic food-delivery marketplace to the data lake's curated zone.

Usage:
    python scripts/generate_dataset.py --start 2024-01-01 --end 2024-03-31
    python scripts/generate_dataset.py --orders 50000 --output data/curated
"""

import argparse
from datetime import date, timedelta

from marketplace_analytics.config.logging import configure_logging
from marketplace_analytics.data.generators import DataGenerator


def main():
    today = date.today()
    parser = argparse.ArgumentParser(description="Generate synthetic marketplace data")
    parser.add_argument("--start", type=date.fromisoformat, default=today - timedelta(days=90),
                        help="First order date (default: 90 days ago)")
    parser.add_argument("--end", type=date.fromisoformat, default=today,
                        help="Last order date (default: today)")
    parser.add_argument("--users", type=int, default=1000, help="Number of customers")
    parser.add_argument("--restaurants", type=int, default=20, help="Number of restaurants")
    parser.add_argument("--orders", type=int, default=10000, help="Number of orders")
    parser.add_argument("--output", default=None, help="Output directory (default: curated zone)")
    parser.add_argument("--seed", type=int, default=42, help="Random seed")
    args = parser.parse_args()

    configure_logging()

    print("🚀 Generating marketplace dataset...")
    data = DataGenerator(output_dir=args.output, seed=args.seed).generate_all(
        start=args.start,
        end=args.end,
        n_users=args.users,
        n_restaurants=args.restaurants,
        n_orders=args.orders,
    )
    for name, df in data.items():
        print(f"   ✅ {name}: {df.height:,} rows")


if __name__ == "__main__":
    main()
