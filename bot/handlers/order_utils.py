# bot/handlers/order_utils.py
import html
import random
import string
from datetime import datetime

from ..models import OrderRecord

ORDER_ID_PREFIX = "NFC-"
ORDER_ID_LENGTH = 8
ORDER_ID_ALPHABET = string.ascii_uppercase + string.digits  # base-36

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def generate_order_id() -> str:
    """
    NFC-XXXXXXXX. Existing ids are not checked, a collision overwrites.
    """
    suffix = "".join(random.choices(ORDER_ID_ALPHABET, k=ORDER_ID_LENGTH))
    return ORDER_ID_PREFIX + suffix


def make_timestamp(now: datetime | None = None) -> str:
    return (now or datetime.now()).strftime(TIMESTAMP_FORMAT)


def normalize_order_id(text: str) -> str:
    return (text or "").strip().upper()


def build_admin_order_text(order: OrderRecord) -> str:
    return (
        "📬 New order:\n"
        f"Name: {html.escape(order.name)}\n"
        f"Phone: {html.escape(order.phone)}\n"
        f"Address: {html.escape(order.address)}\n"
        f"Order ID: {html.escape(order.order_id)}"
    )


def build_tracking_text(order: OrderRecord) -> str:
    return (
        f"📦 Order ID: {html.escape(order.order_id)}\n"
        f"👤 Name: {html.escape(order.name)}\n"
        f"📞 Phone: {html.escape(order.phone)}\n"
        f"📍 Address: {html.escape(order.address)}\n"
        f"📅 Date: {html.escape(order.date)}\n"
        f"🚚 Status: <b>{html.escape(order.status)}</b>"
    )
