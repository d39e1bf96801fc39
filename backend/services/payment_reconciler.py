"""Payment Reconciler

Handles the two payment lifecycle events Telegram delivers after an invoice is paid:
- pre_checkout_query: always approved (no stock or fraud check is performed)
- successful_payment: decode payload, claim the charge in the ledger,
  re-fetch the product and apply the entitlement

Entitlements:
- inAppPurchases / coins  -> users.coins += amount
- inAppPurchases / spins  -> spin_status.purchased_spins_remaining += amount
- inAppPurchases / physical -> nothing granted, order confirmation only
- stickerPacks            -> users.coins -= price, only if the balance covers it

Every failure is logged and answered with a contact-support message.
"""
import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from models import PaymentLedgerEntry, Product, ProductType, PurchaseCatalog
from services.messaging import TelegramMessenger
from services.payment_ledger import PaymentLedger
from services.product_catalog import ProductCatalog
from services.user_wallet import Number, UserWallet
from utils.invoice_payload import decode_invoice_payload

logger = logging.getLogger(__name__)

CONTACT_SUPPORT_MESSAGE = "There was an issue processing your purchase. Please contact support."
ALREADY_PROCESSED_MESSAGE = "This payment has already been processed."


class UnsupportedProductError(Exception):
    """Product has no entitlement rule."""
    pass


@dataclass
class CompletedPayment:
    """Transport-free view of aiogram's SuccessfulPayment."""
    invoice_payload: str
    total_amount: int
    currency: str
    telegram_payment_charge_id: str
    provider_payment_charge_id: Optional[str] = None

    @classmethod
    def from_telegram(cls, payment) -> "CompletedPayment":
        return cls(
            invoice_payload=payment.invoice_payload,
            total_amount=payment.total_amount,
            currency=payment.currency,
            telegram_payment_charge_id=payment.telegram_payment_charge_id,
            provider_payment_charge_id=payment.provider_payment_charge_id,
        )


def _format_amount(amount: int) -> str:
    return f"{amount:,}"


def _coin_price(price: float) -> Number:
    return int(price) if float(price).is_integer() else price


class PaymentReconciler:
    def __init__(
        self,
        catalog: ProductCatalog,
        wallet: UserWallet,
        ledger: PaymentLedger,
        messenger: TelegramMessenger,
    ):
        self.catalog = catalog
        self.wallet = wallet
        self.ledger = ledger
        self.messenger = messenger

    async def handle_pre_checkout(self, pre_checkout_query_id: str, payer_name: Optional[str] = None) -> None:
        logger.info(f"Answering pre-checkout query for {payer_name}")
        try:
            await self.messenger.answer_pre_checkout(pre_checkout_query_id, ok=True)
        except Exception:
            logger.exception(f"Error answering pre-checkout query {pre_checkout_query_id}")

    async def handle_successful_payment(self, chat_id: int, payment: CompletedPayment) -> bool:
        """Apply the entitlement for a completed payment. Returns True if it was granted."""
        logger.info(f"Successful payment received from chat {chat_id}")
        charge_id = payment.telegram_payment_charge_id
        claimed = False

        try:
            payload = decode_invoice_payload(payment.invoice_payload)

            claimed = await self.ledger.claim(PaymentLedgerEntry(
                telegram_payment_charge_id=charge_id,
                provider_payment_charge_id=payment.provider_payment_charge_id,
                chat_id=chat_id,
                user_id=payload.user_id,
                catalog=payload.catalog,
                product_id=payload.product_id,
                total_amount=payment.total_amount,
                currency=payment.currency,
            ))
            if not claimed:
                await self._notify_safely(chat_id, ALREADY_PROCESSED_MESSAGE)
                return False

            product = await self.catalog.require_product(payload.catalog, payload.product_id)
            granted, reply = await self._apply_entitlement(payload.user_id, product)
        except Exception as e:
            logger.exception(f"Error processing successful payment {charge_id}")
            if claimed:
                await self._mark_failed_safely(charge_id, str(e))
            await self._notify_safely(chat_id, CONTACT_SUPPORT_MESSAGE)
            return False

        # Past this point the entitlement is applied; the charge must never become FAILED
        await self._mark_processed_safely(charge_id)
        await self._notify_safely(chat_id, reply)
        return granted

    async def _apply_entitlement(self, user_id: str, product: Product) -> Tuple[bool, str]:
        """Apply the entitlement and return (granted, reply text)."""
        if product.catalog == PurchaseCatalog.STICKER_PACKS:
            return await self._purchase_sticker_pack(user_id, product)

        if product.type == ProductType.COINS:
            await self.wallet.add_coins(user_id, product.amount)
            return True, (
                f"Thank you for your purchase! {_format_amount(product.amount)} coins have been added to your account."
            )

        if product.type == ProductType.SPINS:
            await self.wallet.add_purchased_spins(user_id, product.amount)
            return True, (
                f"Thank you for your purchase! {_format_amount(product.amount)} spins have been added to your account."
            )

        if product.type == ProductType.PHYSICAL:
            logger.info(f"User {user_id} ordered physical product {product.product_id}.")
            return True, (
                f'Thank you for your purchase! Your order for "{product.name}" has been received '
                f"and will be shipped to the address you provided."
            )

        raise UnsupportedProductError(
            f"No entitlement rule for {product.catalog.value}/{product.product_id} (type={product.type})"
        )

    async def _purchase_sticker_pack(self, user_id: str, product: Product) -> Tuple[bool, str]:
        # The pack itself is not recorded on the user; only the coin debit is persisted.
        price = _coin_price(product.price)
        if await self.wallet.debit_coins_if_sufficient(user_id, price):
            logger.info(f"User {user_id} purchased sticker pack {product.product_id} for {price} coins.")
            return True, f'Thank you for your purchase! You\'ve unlocked the "{product.name}" sticker pack.'

        balance = await self.wallet.get_coin_balance(user_id)
        logger.info(
            f"User {user_id} has insufficient coins for sticker pack {product.product_id} "
            f"(balance={balance}, price={price})."
        )
        return False, f'Sorry, you do not have enough coins to purchase the "{product.name}" sticker pack.'

    async def _mark_processed_safely(self, charge_id: str) -> None:
        # Left PROCESSING on failure, so a redelivery is treated as a duplicate
        try:
            await self.ledger.mark_processed(charge_id)
        except Exception:
            logger.exception(f"Failed to record ledger success for payment {charge_id}")

    async def _mark_failed_safely(self, charge_id: str, error: str) -> None:
        try:
            await self.ledger.mark_failed(charge_id, error)
        except Exception:
            logger.exception(f"Failed to record ledger failure for payment {charge_id}")

    async def _notify_safely(self, chat_id: int, text: str) -> None:
        try:
            await self.messenger.send_message(chat_id, text)
        except Exception:
            logger.exception(f"Failed to send reply to chat {chat_id}")
