"""
Idempotent seed: demo catalog products and a demo user for local testing.
Upserts by product_id / user_id, so running it twice changes nothing.
"""
import asyncio
from datetime import datetime, timezone
import os

from motor.motor_asyncio import AsyncIOMotorClient

from models import Product, ProductType, PurchaseCatalog
from utils.settings import load_settings

DEMO_PRODUCTS = [
    Product(
        product_id="coins_500",
        catalog=PurchaseCatalog.IN_APP_PURCHASES,
        name="500 Coins",
        description="A handful of coins to spend in RewardPlay.",
        image_url="https://placehold.co/600x400?text=500+Coins",
        price=4.99,
        type=ProductType.COINS,
        amount=500,
    ),
    Product(
        product_id="spins_10",
        catalog=PurchaseCatalog.IN_APP_PURCHASES,
        name="10 Spins",
        description="Ten extra spins of the reward wheel.",
        image_url="https://placehold.co/600x400?text=10+Spins",
        price=1.99,
        type=ProductType.SPINS,
        amount=10,
    ),
    Product(
        product_id="tshirt",
        catalog=PurchaseCatalog.IN_APP_PURCHASES,
        name="RewardPlay T-Shirt",
        description="Shipped to your door.",
        image_url="https://placehold.co/600x400?text=T-Shirt",
        price=19.99,
        type=ProductType.PHYSICAL,
    ),
    Product(
        product_id="cats",
        catalog=PurchaseCatalog.STICKER_PACKS,
        name="Cats",
        description="Twelve cat stickers.",
        image_url="https://placehold.co/600x400?text=Cats",
        price=200,
        type=ProductType.STICKER_PACK,
    ),
]


async def seed_database():
    settings = load_settings()
    seed_user_id = os.environ.get("SEED_USER_ID", "").strip()
    seed_user_coins = int(os.environ.get("SEED_USER_COINS", "250"))
    client = AsyncIOMotorClient(settings.mongo_url)
    db = client[settings.db_name]

    print("Seeding database (idempotent)...")
    now = datetime.now(timezone.utc)

    for product in DEMO_PRODUCTS:
        doc = product.model_dump(exclude={"catalog"})
        doc["updated_at"] = now
        await db[product.catalog.value].update_one(
            {"product_id": product.product_id},
            {"$set": doc},
            upsert=True,
        )
        print(f"  {product.catalog.value}/{product.product_id}: {product.name}")

    if seed_user_id:
        await db.users.update_one(
            {"user_id": seed_user_id},
            {"$setOnInsert": {"user_id": seed_user_id, "coins": seed_user_coins, "created_at": now}},
            upsert=True,
        )
        print(f"  user {seed_user_id}: ensured (coins={seed_user_coins} if new)")
    else:
        print("  user: skipped (set SEED_USER_ID to create)")

    client.close()
    print("Done.")


if __name__ == "__main__":
    asyncio.run(seed_database())
