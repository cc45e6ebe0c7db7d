# bot/keyboards.py
from aiogram.types import (
    InlineKeyboardButton,
    InlineKeyboardMarkup,
    KeyboardButton,
    ReplyKeyboardMarkup,
)

ORDER_LABEL = "📦 Order NFC Card"
TRACK_LABEL = "📍 Track Order"
LIVE_CHAT_LABEL = "💬 Live Chat"

REPLY_CALLBACK_PREFIX = "reply_"


def main_menu_keyboard() -> ReplyKeyboardMarkup:
    return ReplyKeyboardMarkup(
        keyboard=[
            [KeyboardButton(text=ORDER_LABEL)],
            [KeyboardButton(text=TRACK_LABEL)],
            [KeyboardButton(text=LIVE_CHAT_LABEL)],
        ],
        resize_keyboard=True,
    )


def reply_to_user_keyboard(user_chat_id: int) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [
                InlineKeyboardButton(
                    text="Reply",
                    callback_data=f"{REPLY_CALLBACK_PREFIX}{user_chat_id}",
                )
            ]
        ]
    )
