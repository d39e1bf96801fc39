"""Payment ledger - exactly-once entitlement grants per Telegram charge.

Every successful_payment is recorded by telegram_payment_charge_id before any
entitlement is applied. A charge that is already PROCESSED or still
PROCESSING is a duplicate delivery and must not grant again. FAILED charges
may be re-attempted.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from pymongo.errors import DuplicateKeyError

from models import PaymentLedgerEntry, PaymentLedgerStatus

logger = logging.getLogger(__name__)


class PaymentLedger:
    def __init__(self, db):
        self.db = db

    async def claim(self, entry: PaymentLedgerEntry) -> bool:
        """Record the charge as PROCESSING. Returns False for a duplicate delivery."""
        charge_id = entry.telegram_payment_charge_id
        existing = await self.db.payment_ledger.find_one(
            {"telegram_payment_charge_id": charge_id}, {"_id": 0}
        )

        if existing:
            status = existing.get("status")
            if status in (PaymentLedgerStatus.PROCESSED.value, PaymentLedgerStatus.PROCESSING.value):
                logger.info(f"Payment {charge_id} already {status.lower()} - skipping")
                return False

            # Only one delivery can move the entry out of FAILED
            result = await self.db.payment_ledger.update_one(
                {"telegram_payment_charge_id": charge_id, "status": PaymentLedgerStatus.FAILED.value},
                {"$set": {"status": PaymentLedgerStatus.PROCESSING.value, "error": None}},
            )
            if result.modified_count != 1:
                logger.info(f"Payment {charge_id} reopened by another delivery - skipping")
                return False
            logger.info(f"Payment {charge_id} previously failed - reprocessing")
            return True

        try:
            await self.db.payment_ledger.insert_one(entry.model_dump())
        except DuplicateKeyError:
            logger.info(f"Payment {charge_id} duplicate insert (race) - skipping")
            return False
        return True

    async def mark_processed(self, charge_id: str) -> None:
        await self._set_status(charge_id, PaymentLedgerStatus.PROCESSED)

    async def mark_failed(self, charge_id: str, error: Optional[str]) -> None:
        await self._set_status(charge_id, PaymentLedgerStatus.FAILED, error=error)

    async def _set_status(self, charge_id: str, status: PaymentLedgerStatus, error: Optional[str] = None) -> None:
        await self.db.payment_ledger.update_one(
            {"telegram_payment_charge_id": charge_id},
            {
                "$set": {
                    "status": status.value,
                    "error": error,
                    "processed_at": datetime.now(timezone.utc),
                }
            },
        )
