# bot/handlers/messaging.py
import logging

from aiogram.exceptions import TelegramAPIError

logger = logging.getLogger(__name__)


async def safe_send(bot, chat_id: int, text: str, **kwargs) -> bool:
    """
    Best-effort send. Telegram errors are logged and swallowed, state is never
    rolled back because of them. Returns True if the message went out.
    """
    try:
        await bot.send_message(chat_id, text, **kwargs)
        return True
    except TelegramAPIError as e:
        logger.warning("Failed to send message to chat_id=%s: %s", chat_id, e)
        return False
