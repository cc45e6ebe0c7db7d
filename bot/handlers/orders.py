# bot/handlers/orders.py
import html
import logging

from ..context import AppContext
from ..models import ConversationState, OrderRecord, UserSession
from ..repository import StorageError
from .error_logger import report_error
from .menu import show_main_menu
from .messaging import safe_send
from .order_utils import build_admin_order_text, generate_order_id, make_timestamp

logger = logging.getLogger(__name__)


async def start_order(bot, ctx: AppContext, chat_id: int) -> None:
    ctx.sessions.set_state(chat_id, ConversationState.AWAITING_NAME)
    await safe_send(bot, chat_id, "👤 Enter your full name:")


async def handle_order_input(bot, ctx: AppContext, chat_id: int, session: UserSession, text: str) -> None:
    """
    name -> phone -> address. One field per message, no validation.
    Input states without a step of their own are ignored.
    """
    if session.state == ConversationState.AWAITING_NAME:
        session.name = text
        session.state = ConversationState.AWAITING_PHONE
        await safe_send(bot, chat_id, "📞 Enter your phone number:")
        return

    if session.state == ConversationState.AWAITING_PHONE:
        session.phone = text
        session.state = ConversationState.AWAITING_ADDRESS
        await safe_send(bot, chat_id, "📍 Enter your address:")
        return

    if session.state == ConversationState.AWAITING_ADDRESS:
        session.address = text
        await place_order(bot, ctx, chat_id, session)
        return

    logger.debug("No order step for state=%s chat=%s, ignoring", session.state.value, chat_id)


async def place_order(bot, ctx: AppContext, chat_id: int, session: UserSession) -> OrderRecord | None:
    order = OrderRecord(
        order_id=generate_order_id(),
        name=session.name or "",
        phone=session.phone or "",
        address=session.address or "",
        date=make_timestamp(),
    )

    try:
        await ctx.orders.put_order(order.order_id, order)
    except StorageError as e:
        # session stays in AWAITING_ADDRESS, resending the address retries
        logger.exception("Failed to save order %s for chat=%s: %s", order.order_id, chat_id, e)
        await safe_send(
            bot,
            chat_id,
            "⚠️ Could not place your order right now. Please send your address again.",
        )
        await report_error(bot, ctx.settings, where="save order", exc=e, chat_id=chat_id)
        return None

    logger.info("Order saved: id=%s chat=%s", order.order_id, chat_id)

    await safe_send(
        bot,
        chat_id,
        f"✅ Order placed! Your order ID is: <b>{html.escape(order.order_id)}</b>",
    )

    if ctx.settings.admin_chat_id:
        await safe_send(bot, ctx.settings.admin_chat_id, build_admin_order_text(order))

    await show_main_menu(bot, ctx, chat_id)
    return order
