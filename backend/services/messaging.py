"""Outbound Telegram calls used by the purchase and payment services.

Services only talk to TelegramMessenger, never to aiogram directly, so tests
can swap in an AsyncMock.
"""
import logging
from typing import Optional

from aiogram import Bot
from aiogram.types import LabeledPrice

from models import InvoiceRequest

logger = logging.getLogger(__name__)


class TelegramMessenger:
    def __init__(self, bot: Bot):
        self.bot = bot

    async def send_message(self, chat_id: int, text: str) -> None:
        await self.bot.send_message(chat_id=chat_id, text=text)

    async def send_invoice(self, chat_id: int, invoice: InvoiceRequest) -> None:
        await self.bot.send_invoice(
            chat_id=chat_id,
            title=invoice.title,
            description=invoice.description,
            payload=invoice.payload,
            provider_token=invoice.provider_token,
            currency=invoice.currency,
            prices=[LabeledPrice(label=item.label, amount=item.amount) for item in invoice.prices],
            photo_url=invoice.photo_url,
            photo_width=invoice.photo_width,
            photo_height=invoice.photo_height,
            need_shipping_address=invoice.need_shipping_address,
        )
        logger.info(
            "Invoice sent chat_id=%s currency=%s amount=%s",
            chat_id, invoice.currency, sum(item.amount for item in invoice.prices),
        )

    async def answer_pre_checkout(self, pre_checkout_query_id: str, ok: bool, error_message: Optional[str] = None) -> None:
        await self.bot.answer_pre_checkout_query(
            pre_checkout_query_id=pre_checkout_query_id,
            ok=ok,
            error_message=error_message,
        )
