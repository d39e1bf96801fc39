from motor.motor_asyncio import AsyncIOMotorClient
import logging

from models import PurchaseCatalog

logger = logging.getLogger(__name__)


class Database:
    """Owns the MongoDB client for the lifetime of the bot process."""

    def __init__(self, mongo_url: str, db_name: str):
        self.mongo_url = mongo_url
        self.db_name = db_name
        self.client: AsyncIOMotorClient = None
        self.db = None

    async def connect(self):
        try:
            self.client = AsyncIOMotorClient(self.mongo_url)
            self.db = self.client[self.db_name]
            # Verify connection
            await self.db.command("ping")
            logger.info(f"Connected to MongoDB: {self.db_name}")

            await self._create_indexes()
        except Exception as e:
            logger.error(f"Failed to connect to MongoDB: {e}")
            raise

    async def close(self):
        if self.client:
            self.client.close()
            logger.info("MongoDB connection closed")

    def get_db(self):
        return self.db

    async def _create_indexes(self):
        """Create MongoDB indexes for product lookups, balances and the payment ledger."""
        try:
            for catalog in PurchaseCatalog:
                await self.db[catalog.value].create_index("product_id", unique=True)

            await self.db.users.create_index("user_id", unique=True)
            await self.db.spin_status.create_index("user_id", unique=True)

            # Duplicate successful_payment deliveries must not grant twice
            await self.db.payment_ledger.create_index("telegram_payment_charge_id", unique=True)
            await self.db.payment_ledger.create_index([("user_id", 1), ("created_at", -1)])
            await self.db.payment_ledger.create_index("status")
            logger.info("MongoDB indexes created/verified")
        except Exception as e:
            # Indexes may already exist, log but don't fail
            logger.warning(f"Index creation note: {e}")
