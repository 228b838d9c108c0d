# smartauto/seed_db.py
import asyncio, json
from pathlib import Path
from dotenv import load_dotenv
load_dotenv()

from smartauto.db import engine, AsyncSessionLocal, Base
from smartauto import crud, models  # noqa: F401

DATA_DIR = Path(__file__).resolve().parent / "data"
PRODUCTS_FILE = DATA_DIR / "products.json"

def load_products(path: Path = PRODUCTS_FILE):
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)

async def seed(path: Path = PRODUCTS_FILE):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    products = load_products(path)
    async with AsyncSessionLocal() as session:
        for p in products:
            await crud.upsert_product(session, {
                "product_id": p["product_id"],
                "name": p["name"],
                "price": p["price"],
                "stock": p.get("stock", 0),
            })
    print(f"Seeded DB with {len(products)} products")

if __name__ == "__main__":
    asyncio.run(seed())
