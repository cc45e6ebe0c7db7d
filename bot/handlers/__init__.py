from aiogram import Dispatcher

from .callbacks import register_callback_handlers
from .dispatcher import register_message_handlers
from ..context import AppContext


def register_all_handlers(dp: Dispatcher, ctx: AppContext) -> None:
    register_callback_handlers(dp, ctx)
    register_message_handlers(dp, ctx)
