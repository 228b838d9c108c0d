# smartauto/scripts/check_db.py
import asyncio
from dotenv import load_dotenv
load_dotenv()

from smartauto.db import AsyncSessionLocal
from smartauto import aggregation, crud


async def main():
    async with AsyncSessionLocal() as db:
        products = await crud.list_products(db)
        for p in aggregation.low_stock(products):
            print(f"LOW STOCK {p['product_id']} {p['name']}: {p['stock']}")
        for o in await crud.query(db, "orders", limit=5):
            print(o["order_id"], o["customer_email"], o["total_price"], o["status"])

if __name__ == "__main__":
    asyncio.run(main())
