"""User coin balance and purchased-spin counter.

Grants use $inc, so concurrent grants for the same user commute.
Coin debits are a single conditional update: the balance check and the
decrement happen in one document write, never as read-then-write.
"""
from datetime import datetime, timezone
from typing import Optional, Union
import logging

logger = logging.getLogger(__name__)

Number = Union[int, float]


class UserNotFoundError(LookupError):
    """User record does not exist."""
    pass


class UserWallet:
    def __init__(self, db):
        self.db = db

    async def get_coin_balance(self, user_id: str) -> Optional[Number]:
        user = await self.db.users.find_one({"user_id": user_id}, {"_id": 0, "coins": 1})
        if not user:
            return None
        return user.get("coins", 0)

    async def add_coins(self, user_id: str, amount: int) -> None:
        if amount <= 0:
            raise ValueError("Amount must be positive for adding coins")

        result = await self.db.users.update_one(
            {"user_id": user_id},
            {
                "$inc": {"coins": amount},
                "$set": {"updated_at": datetime.now(timezone.utc)},
            },
        )
        if result.matched_count == 0:
            raise UserNotFoundError(f"User {user_id} not found")
        logger.info(f"Awarded {amount} coins to user {user_id}.")

    async def add_purchased_spins(self, user_id: str, amount: int) -> None:
        """Spin status is a per-user record, created on first grant."""
        if amount <= 0:
            raise ValueError("Amount must be positive for adding spins")

        await self.db.spin_status.update_one(
            {"user_id": user_id},
            {
                "$inc": {"purchased_spins_remaining": amount},
                "$set": {"updated_at": datetime.now(timezone.utc)},
            },
            upsert=True,
        )
        logger.info(f"Awarded {amount} spins to user {user_id}.")

    async def debit_coins_if_sufficient(self, user_id: str, amount: Number) -> bool:
        """Deduct `amount` coins only if the current balance covers it.

        Returns False (and changes nothing) when the user is missing or short.
        """
        if amount <= 0:
            raise ValueError("Amount must be positive for deduction")

        result = await self.db.users.update_one(
            {"user_id": user_id, "coins": {"$gte": amount}},
            {
                "$inc": {"coins": -amount},
                "$set": {"updated_at": datetime.now(timezone.utc)},
            },
        )
        if result.modified_count == 0:
            logger.warning(f"Insufficient coins for user {user_id}. Needs {amount}")
            return False

        logger.info(f"Deducted {amount} coins from user {user_id}.")
        return True
