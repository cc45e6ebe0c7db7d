# bot/context.py
from dataclasses import dataclass, field

from .config import Settings
from .repository import ChatLog, OrderRepository
from .storage import RelayMap, SessionStore


@dataclass
class AppContext:
    """Everything the handlers share for the lifetime of the bot process."""

    settings: Settings
    orders: OrderRepository
    chat_log: ChatLog
    sessions: SessionStore = field(default_factory=SessionStore)
    relays: RelayMap = field(default_factory=RelayMap)
