# bot/db.py
import asyncio
import logging
from typing import Any, Dict, Optional

import psycopg2
from psycopg2.extras import Json

from .config import Settings
from .models import ChatMessage, OrderRecord
from .repository import StorageError

logger = logging.getLogger(__name__)

_connection = None


def _get_connection(settings: Settings):
    """
    One global connection, autocommit on.
    """
    global _connection
    if _connection is None or _connection.closed:
        if not settings.db_dsn:
            raise RuntimeError("DB_DSN is not set, cannot connect to Postgres.")
        _connection = psycopg2.connect(settings.db_dsn)
        _connection.autocommit = True
    return _connection


def init_db(settings: Settings) -> None:
    """
    Creates the orders and chat_messages tables.
    """
    conn = _get_connection(settings)
    with conn.cursor() as cur:
        # === orders ===
        # payload mirrors the realtime database document: name, phone,
        # address, status, date, orderId
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS orders (
                order_id    TEXT PRIMARY KEY,
                payload     JSONB NOT NULL,
                created_at  TIMESTAMPTZ NOT NULL DEFAULT now()
            );
            """
        )

        # === chat_messages ===
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS chat_messages (
                id              SERIAL PRIMARY KEY,
                conversation_id BIGINT NOT NULL,
                message         TEXT,
                sender          TEXT NOT NULL,
                sent_at         BIGINT NOT NULL
            );
            """
        )
        cur.execute(
            """
            CREATE INDEX IF NOT EXISTS chat_messages_conversation_idx
            ON chat_messages (conversation_id, id);
            """
        )


# ======================================================================
# ORDERS
# ======================================================================

def save_order_row(settings: Settings, order_id: str, payload: Dict[str, Any]) -> None:
    conn = _get_connection(settings)
    with conn.cursor() as cur:
        cur.execute(
            """
            INSERT INTO orders (order_id, payload)
            VALUES (%s, %s)
            ON CONFLICT (order_id) DO UPDATE SET payload = EXCLUDED.payload;
            """,
            (order_id, Json(payload)),
        )


def get_order_row(settings: Settings, order_id: str) -> Optional[Dict[str, Any]]:
    conn = _get_connection(settings)
    with conn.cursor() as cur:
        cur.execute(
            """
            SELECT payload
            FROM orders
            WHERE order_id = %s;
            """,
            (order_id,),
        )
        row = cur.fetchone()
        if not row:
            return None
        return row[0]


# ======================================================================
# CHAT LOG
# ======================================================================

def save_chat_message_row(
        settings: Settings,
        *,
        conversation_id: int,
        message: str,
        sender: str,
        sent_at: int,
) -> int:
    conn = _get_connection(settings)
    with conn.cursor() as cur:
        cur.execute(
            """
            INSERT INTO chat_messages (conversation_id, message, sender, sent_at)
            VALUES (%s, %s, %s, %s)
            RETURNING id;
            """,
            (conversation_id, message, sender, sent_at),
        )
        row = cur.fetchone()
        return row[0]


class PostgresStorage:
    """
    Order repository + chat log on top of the functions above.
    psycopg2 blocks, so every call goes through asyncio.to_thread.
    """

    def __init__(self, settings: Settings):
        self.settings = settings

    async def put_order(self, order_id: str, record: OrderRecord) -> None:
        try:
            await asyncio.to_thread(save_order_row, self.settings, order_id, record.to_dict())
        except psycopg2.Error as e:
            raise StorageError(f"Failed to save order {order_id}: {e}") from e

    async def get_order(self, order_id: str) -> Optional[OrderRecord]:
        try:
            payload = await asyncio.to_thread(get_order_row, self.settings, order_id)
        except psycopg2.Error as e:
            raise StorageError(f"Failed to read order {order_id}: {e}") from e
        if payload is None:
            return None
        return OrderRecord.from_dict(payload, order_id=order_id)

    async def append_chat_message(self, conversation_id: int, entry: ChatMessage) -> None:
        try:
            row_id = await asyncio.to_thread(
                save_chat_message_row,
                self.settings,
                conversation_id=conversation_id,
                message=entry.message,
                sender=entry.sender.value,
                sent_at=entry.timestamp,
            )
        except psycopg2.Error as e:
            raise StorageError(f"Failed to append chat message for {conversation_id}: {e}") from e
        logger.debug("chat_messages row id=%s conversation=%s", row_id, conversation_id)

    async def close(self) -> None:
        global _connection
        if _connection is not None and not _connection.closed:
            _connection.close()
        _connection = None
