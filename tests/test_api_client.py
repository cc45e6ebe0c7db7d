import asyncio
import json

import aiohttp
import pytest

from bot.api_client import RealtimeDBClient
from bot.models import ChatMessage, OrderRecord, SenderRole
from bot.repository import StorageError, build_storage, InMemoryStorage
from conftest import make_settings


class FakeResponse:
    def __init__(self, status, body):
        self.status = status
        self._body = body

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    async def text(self):
        return json.dumps(self._body)

    async def json(self, content_type=None):
        return self._body


class FakeSession:
    closed = False

    def __init__(self, *responses, error=None):
        self.responses = list(responses)
        self.requests = []
        self.error = error

    def request(self, method, url, json=None, params=None):
        if self.error:
            raise self.error
        self.requests.append((method, url, json, params))
        return self.responses.pop(0)

    async def close(self):
        self.closed = True


@pytest.fixture
def settings():
    return make_settings(
        storage_backend="firebase",
        firebase_db_url="https://example-rtdb.firebaseio.com/",
        firebase_auth_token="secret",
    )


async def test_put_order(settings):
    session = FakeSession(FakeResponse(200, {}))
    client = RealtimeDBClient(settings, session=session)
    order = OrderRecord("NFC-AB12CD34", "Alice", "555", "1 Main St", "2024-03-05 07:08:09")

    await client.put_order(order.order_id, order)

    [(method, url, body, params)] = session.requests
    assert method == "PUT"
    assert url == "https://example-rtdb.firebaseio.com/orders/NFC-AB12CD34.json"
    assert body == order.to_dict()
    assert params == {"auth": "secret"}


async def test_get_order_found_and_missing(settings):
    order = OrderRecord("NFC-AB12CD34", "Alice", "555", "1 Main St", "2024-03-05 07:08:09")
    session = FakeSession(FakeResponse(200, order.to_dict()), FakeResponse(200, None))
    client = RealtimeDBClient(settings, session=session)

    assert await client.get_order("NFC-AB12CD34") == order
    assert await client.get_order("NFC-ZZZZZZZZ") is None


async def test_get_order_with_invalid_key_skips_request(settings):
    session = FakeSession()
    client = RealtimeDBClient(settings, session=session)

    assert await client.get_order("NFC-1/../x") is None
    assert await client.get_order("") is None
    assert session.requests == []


async def test_append_chat_message_pushes(settings):
    session = FakeSession(FakeResponse(200, {"name": "-Nabc"}))
    client = RealtimeDBClient(settings, session=session)

    await client.append_chat_message(
        101, ChatMessage(message="hi", sender=SenderRole.USER, timestamp=1700000000000)
    )

    [(method, url, body, _)] = session.requests
    assert method == "POST"
    assert url.endswith("/chats/101.json")
    assert body == {"message": "hi", "sender": "user", "timestamp": 1700000000000}


async def test_http_error_raises_storage_error(settings):
    session = FakeSession(FakeResponse(401, {"error": "Permission denied"}))
    client = RealtimeDBClient(settings, session=session)

    with pytest.raises(StorageError, match="401"):
        await client.get_order("NFC-AB12CD34")


async def test_client_error_raises_storage_error(settings):
    session = FakeSession(error=aiohttp.ClientConnectionError("boom"))
    client = RealtimeDBClient(settings, session=session)

    with pytest.raises(StorageError):
        await client.put_order("NFC-AB12CD34", OrderRecord("NFC-AB12CD34", "A", "1", "x", "d"))


async def test_close(settings):
    session = FakeSession()
    client = RealtimeDBClient(settings, session=session)

    await client.close()

    assert session.closed


def test_build_storage_picks_backend(settings):
    assert isinstance(build_storage(settings), RealtimeDBClient)
    assert isinstance(build_storage(make_settings()), InMemoryStorage)


async def test_order_id_is_percent_encoded(settings):
    session = FakeSession(FakeResponse(200, None))
    client = RealtimeDBClient(settings, session=session)

    assert await client.get_order("NFC?1 &x=2") is None

    [(method, url, _, params)] = session.requests
    assert url == "https://example-rtdb.firebaseio.com/orders/NFC%3F1%20%26x%3D2.json"
    assert params == {"auth": "secret"}


class HtmlResponse(FakeResponse):
    async def text(self):
        return "<html>not found</html>"

    async def json(self, content_type=None):
        return json.loads("<html>not found</html>")


async def test_non_json_body_raises_storage_error(settings):
    session = FakeSession(HtmlResponse(200, None))
    client = RealtimeDBClient(settings, session=session)

    with pytest.raises(StorageError):
        await client.get_order("NFC-AB12CD34")


async def test_timeout_raises_storage_error(settings):
    session = FakeSession(error=asyncio.TimeoutError())
    client = RealtimeDBClient(settings, session=session)

    with pytest.raises(StorageError):
        await client.get_order("NFC-AB12CD34")


async def test_tracking_odd_input_gets_a_reply(settings):
    from bot.context import AppContext
    from bot.handlers.dispatcher import dispatch_message
    from bot.handlers.tracking import NOT_FOUND_TEXT
    from bot.keyboards import TRACK_LABEL
    from bot.models import ConversationState, InboundMessage
    from conftest import USER_ID, FakeBot

    session = FakeSession(FakeResponse(200, None), HtmlResponse(200, None))
    client = RealtimeDBClient(settings, session=session)
    ctx = AppContext(settings=settings, orders=client, chat_log=client)
    bot = FakeBot()

    await dispatch_message(bot, ctx, InboundMessage(chat_id=USER_ID, text=TRACK_LABEL))
    await dispatch_message(bot, ctx, InboundMessage(chat_id=USER_ID, text="nfc?1"))

    assert session.requests[0][1].endswith("/orders/NFC%3F1.json")
    assert bot.texts_to(USER_ID)[-2] == NOT_FOUND_TEXT
    assert ctx.sessions.state_of(USER_ID) == ConversationState.MAIN_MENU

    # an HTML answer is a storage failure, the user is told and can retry
    await dispatch_message(bot, ctx, InboundMessage(chat_id=USER_ID, text=TRACK_LABEL))
    await dispatch_message(bot, ctx, InboundMessage(chat_id=USER_ID, text="NFC-AB12CD34"))

    assert "temporarily unavailable" in bot.texts_to(USER_ID)[-1]
    assert ctx.sessions.state_of(USER_ID) == ConversationState.AWAITING_TRACKING
