# bot/models.py
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

ORDER_STATUS_PENDING = "Pending"


class ConversationState(str, Enum):
    MAIN_MENU = "main_menu"
    AWAITING_NAME = "awaiting_name"
    AWAITING_PHONE = "awaiting_phone"
    AWAITING_ADDRESS = "awaiting_address"
    AWAITING_TRACKING = "awaiting_tracking"
    CHATTING = "chatting"
    ADMIN_REPLYING = "admin_replying"

    @property
    def collects_input(self) -> bool:
        """
        Free-text input states. Everything in this category is routed to the
        tracking handler (AWAITING_TRACKING) or to the order flow (the rest).
        """
        return self in INPUT_COLLECTION_STATES


INPUT_COLLECTION_STATES = frozenset(
    {
        ConversationState.AWAITING_NAME,
        ConversationState.AWAITING_PHONE,
        ConversationState.AWAITING_ADDRESS,
        ConversationState.AWAITING_TRACKING,
    }
)


class SenderRole(str, Enum):
    USER = "user"
    ADMIN = "admin"


@dataclass
class UserSession:
    state: ConversationState = ConversationState.MAIN_MENU

    # order flow
    name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None

    # only on the operator's session while ADMIN_REPLYING
    customer_id: Optional[int] = None


@dataclass
class InboundMessage:
    chat_id: int
    text: str
    sender_name: str = "User"

    @classmethod
    def from_message(cls, message) -> "InboundMessage":
        user = message.from_user
        return cls(
            chat_id=message.chat.id,
            text=message.text or message.caption or "",
            sender_name=(user.first_name if user and user.first_name else "User"),
        )


@dataclass
class OrderRecord:
    order_id: str
    name: str
    phone: str
    address: str
    date: str
    status: str = ORDER_STATUS_PENDING

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "phone": self.phone,
            "address": self.address,
            "status": self.status,
            "date": self.date,
            "orderId": self.order_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], order_id: Optional[str] = None) -> "OrderRecord":
        return cls(
            order_id=data.get("orderId") or order_id or "",
            name=data.get("name", ""),
            phone=data.get("phone", ""),
            address=data.get("address", ""),
            date=data.get("date", ""),
            status=data.get("status", ORDER_STATUS_PENDING),
        )


@dataclass
class ChatMessage:
    message: str
    sender: SenderRole
    timestamp: int = field(default_factory=lambda: int(time.time() * 1000))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "sender": self.sender.value,
            "timestamp": self.timestamp,
        }
