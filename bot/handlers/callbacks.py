# bot/handlers/callbacks.py
import logging

from aiogram import Dispatcher
from aiogram.types import CallbackQuery

from ..context import AppContext
from ..keyboards import REPLY_CALLBACK_PREFIX
from .live_chat import bind_operator

logger = logging.getLogger(__name__)

NOT_OPERATOR_ALERT = "⛔ Only the support operator can reply to customers."


def parse_reply_payload(data: str) -> int | None:
    """'reply_12345' -> 12345. Anything else -> None."""
    if not data.startswith(REPLY_CALLBACK_PREFIX):
        return None
    raw_id = data[len(REPLY_CALLBACK_PREFIX):]
    try:
        return int(raw_id)
    except ValueError:
        return None


async def handle_callback(bot, ctx: AppContext, *, chat_id: int, data: str) -> str | None:
    """
    Inline button press from ``chat_id``. Returns an alert text for the
    callback answer, or None.
    """
    customer_id = parse_reply_payload(data or "")
    if customer_id is None:
        logger.debug("Ignoring callback data=%r from chat=%s", data, chat_id)
        return None

    admin_id = ctx.settings.admin_chat_id
    if admin_id is not None and chat_id != admin_id:
        logger.warning("Reply callback from non-operator chat=%s (customer=%s)", chat_id, customer_id)
        return NOT_OPERATOR_ALERT

    async with ctx.sessions.lock(chat_id):
        await bind_operator(bot, ctx, chat_id, customer_id)
    return None


def register_callback_handlers(dp: Dispatcher, ctx: AppContext) -> None:
    @dp.callback_query()
    async def on_callback(callback: CallbackQuery):
        if callback.message is not None:
            chat_id = callback.message.chat.id
        else:
            chat_id = callback.from_user.id

        alert = None
        try:
            alert = await handle_callback(callback.bot, ctx, chat_id=chat_id, data=callback.data or "")
        finally:
            await callback.answer(alert, show_alert=bool(alert))
