# bot/api_client.py
import asyncio
import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import aiohttp

from .config import Settings
from .models import ChatMessage, OrderRecord
from .repository import StorageError

logger = logging.getLogger(__name__)

INVALID_KEY_CHARS = set(".#$[]/")


class RealtimeDBClient:
    """
    Firebase Realtime Database over its REST API:
      orders/<orderId>            PUT / GET
      chats/<conversationId>      POST (RTDB generates the push id)
    """

    def __init__(self, settings: Settings, session: Optional[aiohttp.ClientSession] = None):
        self.base_url = (settings.firebase_db_url or "").rstrip("/")
        self.auth_token = settings.firebase_auth_token
        self._session = session

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self._session

    def _build_params(self) -> Dict[str, str]:
        if self.auth_token:
            return {"auth": self.auth_token}
        return {}

    async def request_json(self, method: str, path: str, data: Optional[Dict[str, Any]] = None) -> Any:
        # every segment is percent-encoded, user text must not reach the query string
        url = f"{self.base_url}/{quote(path, safe='/')}.json"
        session = self._get_session()

        try:
            async with session.request(method, url, json=data, params=self._build_params()) as resp:
                text = await resp.text()
                if resp.status >= 400:
                    logger.error("%s %s failed (%s): %s", method, url, resp.status, text)
                    raise StorageError(f"Realtime DB error {resp.status}: {text}")
                return await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            # ValueError: non-JSON body (e.g. an HTML error page)
            raise StorageError(f"Realtime DB request {method} {url} failed: {e}") from e

    async def put_order(self, order_id: str, record: OrderRecord) -> None:
        await self.request_json("PUT", f"orders/{order_id}", record.to_dict())

    async def get_order(self, order_id: str) -> Optional[OrderRecord]:
        # not a valid RTDB key, so it can't name a stored order
        if not order_id or any(ch in INVALID_KEY_CHARS for ch in order_id):
            return None

        data = await self.request_json("GET", f"orders/{order_id}")
        # RTDB returns null for missing paths
        if not data:
            return None
        return OrderRecord.from_dict(data, order_id=order_id)

    async def append_chat_message(self, conversation_id: int, entry: ChatMessage) -> None:
        result = await self.request_json("POST", f"chats/{conversation_id}", entry.to_dict())
        logger.debug("Chat message pushed: conversation=%s key=%s", conversation_id, (result or {}).get("name"))

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
