# bot/handlers/menu.py
from ..context import AppContext
from ..keyboards import main_menu_keyboard
from .messaging import safe_send

MAIN_MENU_TEXT = "Choose an option:"


async def show_main_menu(bot, ctx: AppContext, chat_id: int) -> None:
    """Reset the user to MAIN_MENU and send the three-button keyboard."""
    ctx.sessions.reset(chat_id)
    await safe_send(bot, chat_id, MAIN_MENU_TEXT, reply_markup=main_menu_keyboard())
