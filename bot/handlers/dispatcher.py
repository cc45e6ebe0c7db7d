# bot/handlers/dispatcher.py
import logging

from aiogram import Dispatcher
from aiogram.types import Message

from ..context import AppContext
from ..keyboards import LIVE_CHAT_LABEL, ORDER_LABEL, TRACK_LABEL
from ..models import ConversationState, InboundMessage
from .live_chat import (
    end_admin_chat,
    end_live_chat,
    forward_admin_reply,
    forward_user_message,
    leave_live_chat,
    start_live_chat,
)
from .menu import show_main_menu
from .orders import handle_order_input, start_order
from .tracking import handle_tracking_input, start_tracking

logger = logging.getLogger(__name__)

CMD_START = "/start"
CMD_END = "/end"
CMD_ENDCHAT = "/endchat"


def parse_command(text: str) -> str | None:
    """'/start@my_bot payload' -> '/start'. Plain text -> None."""
    if not text.startswith("/"):
        return None
    head = text.split(maxsplit=1)[0]
    return head.split("@", 1)[0].lower()


async def dispatch_message(bot, ctx: AppContext, event: InboundMessage) -> None:
    """
    Entry point for every inbound message. The sender's lock is held for the
    whole event, so one user's transitions never interleave.
    """
    async with ctx.sessions.lock(event.chat_id):
        await _route(bot, ctx, event)


async def _route(bot, ctx: AppContext, event: InboundMessage) -> None:
    chat_id = event.chat_id
    text = event.text

    session = ctx.sessions.get_or_create(chat_id)

    logger.info(
        "Inbound msg chat=%s from=%s state=%s text=%r",
        chat_id,
        event.sender_name,
        session.state.value,
        text,
    )

    if not text:
        logger.debug("Empty/non-text message from chat=%s, ignoring", chat_id)
        return

    command = parse_command(text)

    # 1) Operator replying: everything except /endchat goes to the customer
    if session.state == ConversationState.ADMIN_REPLYING:
        if command == CMD_ENDCHAT:
            await end_admin_chat(bot, ctx, chat_id, session)
        else:
            await forward_admin_reply(bot, ctx, chat_id, session, text)
        return

    # 2) /end works in any state
    if command == CMD_END:
        await end_live_chat(bot, ctx, chat_id, event.sender_name)
        return

    # /endchat outside ADMIN_REPLYING falls through to default handling

    # 3) Commands and menu buttons. Leaving CHATTING this way releases the operator
    if session.state == ConversationState.CHATTING and (
            command == CMD_START or text in (ORDER_LABEL, TRACK_LABEL)
    ):
        await leave_live_chat(bot, ctx, chat_id, event.sender_name)

    if command == CMD_START:
        await show_main_menu(bot, ctx, chat_id)
        return

    if text == ORDER_LABEL:
        await start_order(bot, ctx, chat_id)
        return

    if text == TRACK_LABEL:
        await start_tracking(bot, ctx, chat_id)
        return

    if text == LIVE_CHAT_LABEL:
        await start_live_chat(bot, ctx, chat_id, event.sender_name)
        return

    # 4) Free-text input states
    if session.state.collects_input:
        if session.state == ConversationState.AWAITING_TRACKING:
            await handle_tracking_input(bot, ctx, chat_id, text)
        else:
            await handle_order_input(bot, ctx, chat_id, session, text)
        return

    # 5) Live chat
    if session.state == ConversationState.CHATTING:
        await forward_user_message(bot, ctx, chat_id, event.sender_name, text)
        return

    # 6) Unmatched text in MAIN_MENU: no-op
    logger.debug("No route for chat=%s state=%s text=%r", chat_id, session.state.value, text)


def register_message_handlers(dp: Dispatcher, ctx: AppContext) -> None:
    # One catch-all handler: routing order matters more than aiogram filters allow
    @dp.message()
    async def on_message(message: Message):
        if message.from_user is not None and message.from_user.is_bot:
            return
        await dispatch_message(message.bot, ctx, InboundMessage.from_message(message))
