"""
Telegram update handlers.

Commands:
- /start                                 -> welcome message with the chat id
- /start purchase-<catalog>-<productId>  -> deep-link purchase
- /purchase <catalog> <productId>        -> manual purchase (testing)

Payment events:
- pre_checkout_query  -> PaymentReconciler.handle_pre_checkout
- successful_payment  -> PaymentReconciler.handle_successful_payment

Services arrive as keyword arguments from the dispatcher's workflow data
(see server.build_dispatcher). Anything else is ignored.
"""
import re
import logging
from typing import Optional, Tuple

from aiogram import F, Router
from aiogram.filters import Command, CommandObject, CommandStart
from aiogram.types import Message, PreCheckoutQuery

from services.payment_reconciler import CompletedPayment, PaymentReconciler
from services.purchase_orchestrator import PurchaseOrchestrator

logger = logging.getLogger(__name__)

router = Router(name="bot_commands")

# Catalog names never contain "-"; product ids may.
DEEP_LINK_PURCHASE_PATTERN = re.compile(r"^purchase-([^-]+)-(.+)$")


def welcome_text(chat_id: int) -> str:
    return (
        f"Welcome to RewardPlay! Your Chat ID is: {chat_id}. "
        "You can use this to link your account in the app."
    )


def parse_start_args(args: Optional[str]) -> Optional[Tuple[str, str]]:
    """Return (catalog, product_id) for a purchase deep link, else None."""
    match = DEEP_LINK_PURCHASE_PATTERN.match((args or "").strip())
    if not match:
        return None
    return match.group(1), match.group(2)


def parse_purchase_args(args: Optional[str]) -> Optional[Tuple[str, str]]:
    """Return (catalog, product_id) for `/purchase <catalog> <productId>`, else None."""
    parts = (args or "").split()
    if len(parts) != 2:
        return None
    return parts[0], parts[1]


def _sender_id(message: Message) -> Optional[str]:
    return str(message.from_user.id) if message.from_user else None


@router.message(CommandStart())
async def cmd_start(message: Message, command: CommandObject, purchase_orchestrator: PurchaseOrchestrator) -> None:
    chat_id = message.chat.id
    if not command.args:
        await message.answer(welcome_text(chat_id))
        return

    parsed = parse_start_args(command.args)
    user_id = _sender_id(message)
    if parsed is None or user_id is None:
        return

    catalog, product_id = parsed
    await purchase_orchestrator.request_purchase(chat_id, user_id, catalog, product_id)


@router.message(Command("purchase"))
async def cmd_purchase(message: Message, command: CommandObject, purchase_orchestrator: PurchaseOrchestrator) -> None:
    parsed = parse_purchase_args(command.args)
    user_id = _sender_id(message)
    if parsed is None or user_id is None:
        return

    catalog, product_id = parsed
    await purchase_orchestrator.request_purchase(message.chat.id, user_id, catalog, product_id)


@router.pre_checkout_query()
async def on_pre_checkout_query(pre_checkout_query: PreCheckoutQuery, payment_reconciler: PaymentReconciler) -> None:
    payer_name = pre_checkout_query.from_user.first_name if pre_checkout_query.from_user else None
    await payment_reconciler.handle_pre_checkout(pre_checkout_query.id, payer_name)


@router.message(F.successful_payment)
async def on_successful_payment(message: Message, payment_reconciler: PaymentReconciler) -> None:
    payment = CompletedPayment.from_telegram(message.successful_payment)
    await payment_reconciler.handle_successful_payment(message.chat.id, payment)
