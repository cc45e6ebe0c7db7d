# bot/storage.py
import asyncio
from typing import Dict, Optional

from .models import ConversationState, UserSession


class SessionStore:
    """
    In-memory conversation state, keyed by Telegram chat id.
    Lives as long as the process; nothing is persisted.

    aiogram runs every update as a separate task, so callers that read, await
    and then write a user's session must hold ``lock(chat_id)`` for that user.

    Locks are never dropped: removing one that a waiter is about to acquire
    would let a second holder in. The lock map grows like the session table,
    one entry per chat that ever wrote to the bot, and both reset on restart.
    """

    def __init__(self) -> None:
        self._sessions: Dict[int, UserSession] = {}
        self._locks: Dict[int, asyncio.Lock] = {}

    def lock(self, chat_id: int) -> asyncio.Lock:
        lock = self._locks.get(chat_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[chat_id] = lock
        return lock

    def get(self, chat_id: int) -> Optional[UserSession]:
        return self._sessions.get(chat_id)

    def get_or_create(self, chat_id: int) -> UserSession:
        session = self._sessions.get(chat_id)
        if session is None:
            session = UserSession()
            self._sessions[chat_id] = session
        return session

    def state_of(self, chat_id: int) -> ConversationState:
        session = self._sessions.get(chat_id)
        return session.state if session else ConversationState.MAIN_MENU

    def set_state(self, chat_id: int, state: ConversationState) -> UserSession:
        session = self.get_or_create(chat_id)
        session.state = state
        return session

    def reset(self, chat_id: int, state: ConversationState = ConversationState.MAIN_MENU) -> UserSession:
        """Replace the session with a clean one (drops collected order fields)."""
        session = UserSession(state=state)
        self._sessions[chat_id] = session
        return session

    def discard_if(self, chat_id: int, expected: ConversationState, **match) -> bool:
        """
        Compare-and-delete: drop the session only when the current session is in
        ``expected`` and every ``match`` attribute is equal.
        """
        session = self._sessions.get(chat_id)
        if session is None or session.state != expected:
            return False
        for attr, value in match.items():
            if getattr(session, attr) != value:
                return False
        del self._sessions[chat_id]
        return True

    def discard(self, chat_id: int) -> None:
        self._sessions.pop(chat_id, None)

    def __contains__(self, chat_id: int) -> bool:
        return chat_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)


class RelayMap:
    """user chat id -> operator chat id currently handling that user's live chat."""

    def __init__(self) -> None:
        self._bindings: Dict[int, Optional[int]] = {}

    def bind(self, user_id: int, admin_id: Optional[int]) -> None:
        self._bindings[user_id] = admin_id

    def get(self, user_id: int) -> Optional[int]:
        return self._bindings.get(user_id)

    def is_bound(self, user_id: int) -> bool:
        return user_id in self._bindings

    def unbind(self, user_id: int) -> tuple[bool, Optional[int]]:
        """Remove the binding. Returns (existed, operator id)."""
        if user_id not in self._bindings:
            return False, None
        return True, self._bindings.pop(user_id)

    def __len__(self) -> int:
        return len(self._bindings)
