# bot/repository.py
import logging
from typing import Dict, List, Optional, Protocol

from .config import Settings
from .models import ChatMessage, OrderRecord

logger = logging.getLogger(__name__)


class StorageError(RuntimeError):
    """Any failure of the persistence backend (driver error chained)."""


class OrderRepository(Protocol):
    async def put_order(self, order_id: str, record: OrderRecord) -> None: ...

    async def get_order(self, order_id: str) -> Optional[OrderRecord]: ...


class ChatLog(Protocol):
    async def append_chat_message(self, conversation_id: int, entry: ChatMessage) -> None: ...


class InMemoryStorage:
    """
    Dict-backed orders + chat log. Used when STORAGE_BACKEND=memory and in tests.
    """

    def __init__(self) -> None:
        self._orders: Dict[str, Dict] = {}
        self._chats: Dict[int, List[Dict]] = {}

    async def put_order(self, order_id: str, record: OrderRecord) -> None:
        self._orders[order_id] = record.to_dict()

    async def get_order(self, order_id: str) -> Optional[OrderRecord]:
        data = self._orders.get(order_id)
        if data is None:
            return None
        return OrderRecord.from_dict(data, order_id=order_id)

    async def append_chat_message(self, conversation_id: int, entry: ChatMessage) -> None:
        self._chats.setdefault(conversation_id, []).append(entry.to_dict())

    # Test / debug helpers
    def list_orders(self) -> Dict[str, Dict]:
        return self._orders

    def chat_history(self, conversation_id: int) -> List[Dict]:
        return list(self._chats.get(conversation_id, []))

    async def close(self) -> None:
        return None


def build_storage(settings: Settings):
    """
    Picks the backend named by STORAGE_BACKEND:
      - memory   -> InMemoryStorage
      - postgres -> PostgresStorage (psycopg2)
      - firebase -> RealtimeDBClient (Firebase RTDB REST, aiohttp)
    """
    backend = settings.storage_backend

    if backend == "postgres":
        from .db import PostgresStorage

        logger.info("Using postgres storage")
        return PostgresStorage(settings)

    if backend == "firebase":
        from .api_client import RealtimeDBClient

        logger.info("Using firebase realtime database storage: %s", settings.firebase_db_url)
        return RealtimeDBClient(settings)

    if backend != "memory":
        raise RuntimeError(f"Unknown storage backend: {backend}")

    logger.warning("Using in-memory storage, orders are lost on restart")
    return InMemoryStorage()
