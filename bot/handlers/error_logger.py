# bot/handlers/error_logger.py
import html
import logging

from aiogram.exceptions import TelegramAPIError

from bot.config import Settings

logger = logging.getLogger(__name__)


async def report_error(
        bot,
        settings: Settings,
        *,
        where: str,
        exc: BaseException,
        chat_id: int | None = None,
) -> None:
    """
    Sends a storage failure to ERROR_CHAT_ID (if configured).
    Never raises: the caller is already on its failure path.
    """
    if not settings.error_chat_id:
        return

    error_text = (
        f"⚠️ <b>{html.escape(where)}</b>\n"
        f"👤 Chat: {chat_id}\n\n"
        f"{html.escape(type(exc).__name__)}: {html.escape(str(exc))}"
    )

    try:
        await bot.send_message(settings.error_chat_id, error_text)
    except TelegramAPIError as e:
        logger.error(
            "Failed to send error report to error_chat_id=%s: %s",
            settings.error_chat_id,
            e,
        )
