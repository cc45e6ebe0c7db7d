from dataclasses import dataclass, field
from typing import Any, Dict, List

import pytest

from bot.config import Settings
from bot.context import AppContext
from bot.repository import InMemoryStorage

ADMIN_ID = 9000
USER_ID = 101
OTHER_USER_ID = 202


@dataclass
class SentMessage:
    chat_id: int
    text: str
    kwargs: Dict[str, Any] = field(default_factory=dict)


class FakeBot:
    """Records every send_message call instead of talking to Telegram."""

    def __init__(self) -> None:
        self.sent: List[SentMessage] = []

    async def send_message(self, chat_id, text, **kwargs):
        self.sent.append(SentMessage(chat_id, text, kwargs))

    def sent_to(self, chat_id: int) -> List[SentMessage]:
        return [m for m in self.sent if m.chat_id == chat_id]

    def texts_to(self, chat_id: int) -> List[str]:
        return [m.text for m in self.sent_to(chat_id)]

    def clear(self) -> None:
        self.sent.clear()


def make_settings(**overrides) -> Settings:
    values = dict(
        tg_bot_token="123:TEST",
        admin_chat_id=ADMIN_ID,
        error_chat_id=None,
        storage_backend="memory",
        db_dsn=None,
        firebase_db_url=None,
        firebase_auth_token=None,
        debug=False,
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def ctx(settings, storage) -> AppContext:
    return AppContext(settings=settings, orders=storage, chat_log=storage)


@pytest.fixture
def bot() -> FakeBot:
    return FakeBot()
