"""
TelegramMessenger: thin wrapper over the aiogram Bot calls.
"""
import pytest
from unittest.mock import AsyncMock, MagicMock

from models import InvoiceLineItem, InvoiceRequest
from services.messaging import TelegramMessenger

pytestmark = pytest.mark.asyncio


def _bot():
    bot = MagicMock()
    bot.send_message = AsyncMock()
    bot.send_invoice = AsyncMock()
    bot.answer_pre_checkout_query = AsyncMock()
    return bot


async def test_answer_pre_checkout_without_error_message():
    bot = _bot()

    await TelegramMessenger(bot).answer_pre_checkout("pcq_1", ok=True)

    bot.answer_pre_checkout_query.assert_awaited_once_with(
        pre_checkout_query_id="pcq_1", ok=True, error_message=None
    )


async def test_answer_pre_checkout_rejection_carries_message():
    bot = _bot()

    await TelegramMessenger(bot).answer_pre_checkout("pcq_1", ok=False, error_message="Out of stock")

    assert bot.answer_pre_checkout_query.call_args.kwargs["error_message"] == "Out of stock"


async def test_send_invoice_builds_labeled_prices():
    bot = _bot()
    invoice = InvoiceRequest(
        title="500 Coins",
        description="Coins",
        payload="inAppPurchases|coins_500|777",
        currency="XTR",
        prices=[InvoiceLineItem(label="500 Coins", amount=564)],
    )

    await TelegramMessenger(bot).send_invoice(42, invoice)

    kwargs = bot.send_invoice.call_args.kwargs
    assert kwargs["chat_id"] == 42
    assert kwargs["currency"] == "XTR"
    assert [(p.label, p.amount) for p in kwargs["prices"]] == [("500 Coins", 564)]
    assert kwargs["need_shipping_address"] is False
