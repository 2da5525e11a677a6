"""
Concurrency Simulation Script

Registers a handful of customers, then fires concurrent add-to-cart calls for
the same (product, size) pairs and checks out every cart. Reports duplicate
cart lines (there should be none) and compares order totals with the
expected checkout totals.

Run from project root against a running server:
    python scripts/simulate.py --users 5 --adds 20
"""

import argparse
import asyncio
import os
import random
import sys
import time
import uuid
from collections import Counter
from datetime import datetime
from typing import Any

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from coffeeshop.client import ApiError, CoffeeShopClient  # noqa: E402
from coffeeshop.core import pricing  # noqa: E402

# Configuration
API_BASE_URL = "http://localhost:3000/api"
TOTAL_USERS = 5
ADDS_PER_USER = 20

FIRST_NAMES = ["An", "Binh", "Chi", "Dung", "Giang", "Hoa", "Khanh", "Linh", "Minh", "Trang"]
LAST_NAMES = ["Nguyen", "Tran", "Le", "Pham", "Hoang", "Vu", "Dang", "Bui"]
SIZES = ["S", "M", "L"]


def generate_random_customer() -> dict[str, str]:
    """Generate random customer info."""
    return {
        "first_name": random.choice(FIRST_NAMES),
        "last_name": random.choice(LAST_NAMES),
        "email": f"sim-{uuid.uuid4().hex[:10]}@mail.com",
        "password": "simulation-pass",
        "phone": f"09{random.randint(10000000, 99999999)}",
        "address": f"{random.randint(1, 300)} Le Loi, District 1",
    }


async def simulate_customer(base_url: str, user_num: int, adds: int) -> dict[str, Any]:
    """Hammer one cart with concurrent adds, then check it out."""
    customer = generate_random_customer()
    start_time = time.time()

    async with CoffeeShopClient(base_url) as client:
        try:
            await client.register(**customer)
            products = await client.list_products()
            # Few distinct lines so concurrent adds collide on the same row
            targets = [(random.choice(products)["id"], random.choice(SIZES)) for _ in range(2)]

            requested: Counter = Counter()
            calls = []
            for _ in range(adds):
                product_id, size = random.choice(targets)
                quantity = random.randint(1, 3)
                requested[(product_id, size)] += quantity
                calls.append(client.add_to_cart(product_id, quantity, size))
            await asyncio.gather(*calls)

            cart = await client.get_cart()
            rows = Counter((line["product_id"], line["size"]) for line in cart)
            duplicates = sum(count - 1 for count in rows.values() if count > 1)
            stored = Counter()
            for line in cart:
                stored[(line["product_id"], line["size"])] += line["quantity"]

            subtotal = pricing.subtotal(
                (line["product_price"], line["quantity"], line["size_price_modifier"])
                for line in cart
            )
            expected_total = pricing.calculate_totals(subtotal, "deliver").total
            order_id = await client.create_order(
                [
                    {
                        "product_id": line["product_id"],
                        "quantity": line["quantity"],
                        "size": line["size"],
                        "price": line["unit_price"],
                    }
                    for line in cart
                ],
                expected_total,
                delivery_method="deliver",
                payment_method=random.choice(["cash", "momo"]),
                address=customer["address"],
            )
            await client.clear_cart()

            orders = await client.get_orders()
            order = next((o for o in orders if o["id"] == order_id), None)
            if order is None:
                raise ApiError(f"Order {order_id} missing from history")
            return {
                "user_num": user_num,
                "success": True,
                "order_id": order_id,
                "duplicates": duplicates,
                "lost_quantity": sum((requested - stored).values()),
                "total": order["total_amount"],
                "total_matches": order["total_amount"] == expected_total,
                "time": round(time.time() - start_time, 3),
            }
        except ApiError as e:
            return {
                "user_num": user_num,
                "success": False,
                "error": str(e)[:100],
                "time": round(time.time() - start_time, 3),
            }


async def run_simulation(
    base_url: str = API_BASE_URL,
    num_users: int = TOTAL_USERS,
    adds: int = ADDS_PER_USER,
) -> dict[str, Any]:
    """Run all customers concurrently and print a report."""
    print("=" * 70)
    print("CART CONCURRENCY SIMULATION")
    print("=" * 70)
    print(f"Customers: {num_users}")
    print(f"Concurrent adds per customer: {adds}")
    print(f"Target: {base_url}")
    print(f"Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    start_time = time.time()
    results = await asyncio.gather(
        *(simulate_customer(base_url, i + 1, adds) for i in range(num_users))
    )
    total_time = round(time.time() - start_time, 2)

    successful = [r for r in results if r["success"]]
    failed = [r for r in results if not r["success"]]

    print("\n" + "=" * 70)
    print("SIMULATION RESULTS")
    print("=" * 70)
    print(f"\nSuccessful checkouts: {len(successful)}/{num_users}")
    print(f"Failed checkouts: {len(failed)}/{num_users}")
    print(f"Total time: {total_time}s")

    if successful:
        print(f"\nDuplicate cart rows: {sum(r['duplicates'] for r in successful)}")
        print(f"Lost quantity: {sum(r['lost_quantity'] for r in successful)}")
        print(f"Orders with mismatched total: {sum(not r['total_matches'] for r in successful)}")
        print(f"Revenue: {sum(r['total'] for r in successful):,.0f}")

    if failed:
        print("\nFailed customers (showing first 5):")
        for f in failed[:5]:
            print(f"   Customer #{f['user_num']}: {f.get('error', 'Unknown error')}")

    print("=" * 70)
    return {
        "total": num_users,
        "successful": len(successful),
        "failed": len(failed),
        "total_time": total_time,
        "results": results,
    }


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Cart concurrency simulation")
    parser.add_argument("--url", default=API_BASE_URL, help="API base url")
    parser.add_argument("--users", type=int, default=TOTAL_USERS, help="Number of customers")
    parser.add_argument("--adds", type=int, default=ADDS_PER_USER, help="Concurrent adds per customer")
    args = parser.parse_args()

    asyncio.run(run_simulation(args.url, args.users, args.adds))
