# bot/handlers/tracking.py
import logging

from ..context import AppContext
from ..models import ConversationState
from ..repository import StorageError
from .error_logger import report_error
from .menu import show_main_menu
from .messaging import safe_send
from .order_utils import build_tracking_text, normalize_order_id

logger = logging.getLogger(__name__)

NOT_FOUND_TEXT = "❌ Order not found. Please check the ID and try again."


async def start_tracking(bot, ctx: AppContext, chat_id: int) -> None:
    ctx.sessions.set_state(chat_id, ConversationState.AWAITING_TRACKING)
    await safe_send(bot, chat_id, "🔎 Enter your order ID (e.g., NFC-XXXXXX):")


async def handle_tracking_input(bot, ctx: AppContext, chat_id: int, text: str) -> None:
    """One lookup per entry: found or not, the user goes back to the menu."""
    order_id = normalize_order_id(text)

    try:
        order = await ctx.orders.get_order(order_id)
    except StorageError as e:
        logger.exception("Failed to read order %s for chat=%s: %s", order_id, chat_id, e)
        await safe_send(bot, chat_id, "⚠️ Tracking is temporarily unavailable. Please try again.")
        await report_error(bot, ctx.settings, where="track order", exc=e, chat_id=chat_id)
        return

    if order:
        order.order_id = order_id
        await safe_send(bot, chat_id, build_tracking_text(order))
    else:
        logger.info("Tracking: order %r not found (chat=%s)", order_id, chat_id)
        await safe_send(bot, chat_id, NOT_FOUND_TEXT)

    await show_main_menu(bot, ctx, chat_id)
