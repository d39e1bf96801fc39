"""Purchase Orchestrator

Turns a purchase intent (deep link or /purchase command) into a Telegram invoice:
- Validates the catalog
- Resolves the product
- Prices it in USD cents (physical goods) or Telegram Stars (digital goods)
- Sends the invoice with an encoded payload for later reconciliation

Every failure ends with a user-visible reply; nothing propagates to the polling loop.
"""
import logging
from typing import Optional

from models import (
    InvoiceLineItem,
    InvoiceRequest,
    Product,
    PurchaseCatalog,
    PHYSICAL_CURRENCY,
    STARS_CURRENCY,
)
from services.messaging import TelegramMessenger
from services.pricing import coins_to_stars, usd_to_cents, usd_to_stars
from services.product_catalog import ProductCatalog
from utils.invoice_payload import encode_invoice_payload

logger = logging.getLogger(__name__)

INVALID_PURCHASE_TYPE_MESSAGE = "Invalid purchase type."
PRODUCT_NOT_FOUND_MESSAGE = "Sorry, that product could not be found."
PHYSICAL_PROVIDER_MISSING_MESSAGE = "The payment provider for physical goods is not configured."
INVOICE_ERROR_MESSAGE = "Sorry, there was an error creating your payment request."


class PhysicalProviderNotConfigured(Exception):
    """No real-currency payment provider token is configured."""
    pass


class PurchaseOrchestrator:
    def __init__(
        self,
        catalog: ProductCatalog,
        messenger: TelegramMessenger,
        physical_provider_token: Optional[str] = None,
    ):
        self.catalog = catalog
        self.messenger = messenger
        self.physical_provider_token = physical_provider_token

    async def request_purchase(self, chat_id: int, user_id: str, catalog: str, product_id: str) -> bool:
        """Send an invoice for (catalog, product_id). Returns True if an invoice was sent."""
        logger.info(f"Purchase command received from {user_id} for {catalog} {product_id}")

        try:
            purchase_catalog = PurchaseCatalog(catalog)
        except ValueError:
            await self._notify_safely(chat_id, INVALID_PURCHASE_TYPE_MESSAGE)
            return False

        try:
            product = await self.catalog.get_product(purchase_catalog, product_id)
            if product is None:
                await self.messenger.send_message(chat_id, PRODUCT_NOT_FOUND_MESSAGE)
                return False

            try:
                invoice = self.build_invoice(product, user_id)
            except PhysicalProviderNotConfigured:
                logger.error("TELEGRAM_PHYSICAL_PROVIDER_TOKEN is not set for physical goods.")
                await self.messenger.send_message(chat_id, PHYSICAL_PROVIDER_MISSING_MESSAGE)
                return False

            await self.messenger.send_invoice(chat_id, invoice)
            return True
        except Exception:
            logger.exception(f"Error creating invoice for user {user_id}, product {catalog}/{product_id}")
            await self._notify_safely(chat_id, INVOICE_ERROR_MESSAGE)
            return False

    def build_invoice(self, product: Product, user_id: str) -> InvoiceRequest:
        payload = encode_invoice_payload(product.catalog.value, product.product_id, user_id)
        invoice = InvoiceRequest(
            title=product.name,
            description=product.description,
            payload=payload,
            photo_url=product.image_url,
            currency=STARS_CURRENCY,
            prices=[],
        )

        if product.is_physical:
            # Physical goods paid with real currency
            if not self.physical_provider_token:
                raise PhysicalProviderNotConfigured()
            invoice.provider_token = self.physical_provider_token
            invoice.currency = PHYSICAL_CURRENCY
            invoice.need_shipping_address = True
            amount = usd_to_cents(product.price)
        elif product.catalog == PurchaseCatalog.STICKER_PACKS:
            # Sticker packs are priced in coins
            amount = coins_to_stars(product.price)
        else:
            amount = usd_to_stars(product.price)

        invoice.prices = [InvoiceLineItem(label=product.name, amount=amount)]
        return invoice

    async def _notify_safely(self, chat_id: int, text: str) -> None:
        try:
            await self.messenger.send_message(chat_id, text)
        except Exception:
            logger.exception(f"Failed to send error reply to chat {chat_id}")
