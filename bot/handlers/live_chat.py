# bot/handlers/live_chat.py
import html
import logging

from ..context import AppContext
from ..keyboards import reply_to_user_keyboard
from ..models import ChatMessage, ConversationState, SenderRole, UserSession
from ..repository import StorageError
from .error_logger import report_error
from .menu import show_main_menu
from .messaging import safe_send

logger = logging.getLogger(__name__)


async def _log_chat_message(bot, ctx: AppContext, conversation_id: int, text: str, sender: SenderRole) -> None:
    try:
        await ctx.chat_log.append_chat_message(conversation_id, ChatMessage(message=text, sender=sender))
    except StorageError as e:
        # the message is already delivered, relay state stays as it is
        logger.exception("Failed to log %s message for conversation=%s: %s", sender.value, conversation_id, e)
        await report_error(bot, ctx.settings, where="append chat message", exc=e, chat_id=conversation_id)


# ======================================================================
# USER SIDE
# ======================================================================

async def start_live_chat(bot, ctx: AppContext, chat_id: int, user_name: str) -> None:
    admin_id = ctx.settings.admin_chat_id

    ctx.sessions.reset(chat_id, ConversationState.CHATTING)
    ctx.relays.bind(chat_id, admin_id)

    await safe_send(
        bot,
        chat_id,
        "💬 You are now connected to a support agent. Type your message below.",
    )

    if admin_id:
        await safe_send(
            bot,
            admin_id,
            f"👤 {html.escape(user_name)} started a live chat.",
            reply_markup=reply_to_user_keyboard(chat_id),
        )

    logger.info("Live chat started: chat=%s admin=%s", chat_id, admin_id)


async def forward_user_message(bot, ctx: AppContext, chat_id: int, user_name: str, text: str) -> None:
    admin_id = ctx.relays.get(chat_id)
    if admin_id:
        await safe_send(bot, admin_id, f"📨 {html.escape(user_name)}: {html.escape(text)}")
    else:
        logger.debug("Live chat message from chat=%s has no operator to forward to", chat_id)

    await _log_chat_message(bot, ctx, chat_id, text, SenderRole.USER)


async def end_live_chat(bot, ctx: AppContext, chat_id: int, user_name: str) -> None:
    """/end from the user. Works in any state, notifies the operator only if a chat was bound."""
    existed, admin_id = ctx.relays.unbind(chat_id)
    ctx.sessions.reset(chat_id)
    if existed and admin_id:
        # operator was replying to this user -> close the operator side too
        ctx.sessions.discard_if(admin_id, ConversationState.ADMIN_REPLYING, customer_id=chat_id)

    await safe_send(bot, chat_id, "✅ Live chat ended.")

    if existed and admin_id:
        await safe_send(bot, admin_id, f"❌ {html.escape(user_name)} ended the live chat.")

    logger.info("Live chat ended by user: chat=%s was_bound=%s admin=%s", chat_id, existed, admin_id)

    await show_main_menu(bot, ctx, chat_id)


async def leave_live_chat(bot, ctx: AppContext, chat_id: int, user_name: str) -> None:
    """
    User left CHATTING through /start or a menu button. Drops the binding and
    tells the operator; the caller moves the session on.
    """
    existed, admin_id = ctx.relays.unbind(chat_id)
    if not (existed and admin_id):
        return

    ctx.sessions.discard_if(admin_id, ConversationState.ADMIN_REPLYING, customer_id=chat_id)
    await safe_send(bot, admin_id, f"❌ {html.escape(user_name)} left the live chat.")

    logger.info("Live chat left via menu: chat=%s admin=%s", chat_id, admin_id)


# ======================================================================
# OPERATOR SIDE
# ======================================================================

async def bind_operator(bot, ctx: AppContext, admin_id: int, customer_id: int) -> None:
    """Reply button: route the operator's next messages to ``customer_id``."""
    ctx.relays.bind(customer_id, admin_id)
    session = ctx.sessions.reset(admin_id, ConversationState.ADMIN_REPLYING)
    session.customer_id = customer_id

    logger.info("Operator %s is replying to chat=%s", admin_id, customer_id)

    await safe_send(
        bot,
        admin_id,
        "✉️ You can now reply to the customer. Type your message.\n"
        "Send /endchat to close the chat.",
    )


async def forward_admin_reply(bot, ctx: AppContext, admin_id: int, session: UserSession, text: str) -> None:
    customer_id = session.customer_id
    if not customer_id:
        logger.debug("Operator %s is replying without a customer, message dropped", admin_id)
        return

    await safe_send(bot, customer_id, f"👤 Support: {html.escape(text)}")
    await _log_chat_message(bot, ctx, customer_id, text, SenderRole.ADMIN)


async def end_admin_chat(bot, ctx: AppContext, admin_id: int, session: UserSession) -> None:
    """/endchat from the operator."""
    customer_id = session.customer_id

    if customer_id:
        ctx.relays.unbind(customer_id)
        ctx.sessions.reset(customer_id)
    ctx.sessions.discard(admin_id)

    if customer_id:
        await safe_send(bot, customer_id, "❌ The support agent ended the chat.")
        await show_main_menu(bot, ctx, customer_id)

    await safe_send(bot, admin_id, "✅ Chat closed.")

    logger.info("Live chat closed by operator %s: chat=%s", admin_id, customer_id)
