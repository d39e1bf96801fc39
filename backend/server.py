"""RewardPlay payments bot: long-polling entry point.

Startup order: settings -> MongoDB -> bot + services -> polling.
Missing credentials or an unreachable database exit with status 1.
"""
import asyncio
import logging
from typing import Optional

from aiogram import Bot, Dispatcher

from database import Database
from routes import bot_commands
from services.messaging import TelegramMessenger
from services.payment_ledger import PaymentLedger
from services.payment_reconciler import PaymentReconciler
from services.product_catalog import ProductCatalog
from services.purchase_orchestrator import PurchaseOrchestrator
from services.user_wallet import UserWallet
from utils.settings import BotSettings, ConfigurationError, load_settings

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def build_dispatcher(db, bot: Bot, physical_provider_token: Optional[str] = None) -> Dispatcher:
    """Wire services onto a Dispatcher; handlers receive them by keyword name."""
    messenger = TelegramMessenger(bot)
    catalog = ProductCatalog(db)

    dp = Dispatcher()
    dp["purchase_orchestrator"] = PurchaseOrchestrator(
        catalog=catalog,
        messenger=messenger,
        physical_provider_token=physical_provider_token,
    )
    dp["payment_reconciler"] = PaymentReconciler(
        catalog=catalog,
        wallet=UserWallet(db),
        ledger=PaymentLedger(db),
        messenger=messenger,
    )
    dp.include_router(bot_commands.router)
    return dp


async def run(settings: BotSettings) -> None:
    database = Database(settings.mongo_url, settings.db_name)
    await database.connect()

    bot = Bot(token=settings.telegram_bot_token)
    dp = build_dispatcher(database.get_db(), bot, settings.physical_provider_token)

    logger.info("Telegram Bot started with polling...")
    try:
        await dp.start_polling(bot)
    finally:
        await bot.session.close()
        await database.close()


def main() -> None:
    try:
        settings = load_settings()
    except ConfigurationError as e:
        configure_logging()
        logger.critical(f"CRITICAL: {e}")
        raise SystemExit(1)

    configure_logging(settings.log_level)
    try:
        asyncio.run(run(settings))
    except KeyboardInterrupt:
        logger.info("RewardPlay Bot Server stopped")
    except Exception:
        logger.exception("RewardPlay Bot Server failed to start")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
