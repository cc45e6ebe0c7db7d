# main.py
import asyncio
import logging

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode

from bot.config import load_settings
from bot.context import AppContext
from bot.handlers import register_all_handlers
from bot.repository import build_storage

logger = logging.getLogger(__name__)


async def main():
    settings = load_settings()

    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    storage = build_storage(settings)

    if settings.storage_backend == "postgres":
        from bot.db import init_db

        init_db(settings)

    if not settings.admin_enabled:
        logger.warning("ADMIN_CHAT_ID is not set, operator notifications are disabled")

    ctx = AppContext(settings=settings, orders=storage, chat_log=storage)

    bot = Bot(
        token=settings.tg_bot_token,
        default=DefaultBotProperties(parse_mode=ParseMode.HTML),
    )

    dp = Dispatcher()
    register_all_handlers(dp, ctx)

    try:
        await dp.start_polling(bot)
    finally:
        await storage.close()
        await bot.session.close()


if __name__ == "__main__":
    asyncio.run(main())
