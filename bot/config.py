# bot/config.py
import os
from dataclasses import dataclass

from dotenv import load_dotenv

STORAGE_BACKENDS = ("memory", "postgres", "firebase")


@dataclass
class Settings:
    # Telegram
    tg_bot_token: str

    # Operator (support agent) chat. None -> admin notifications are skipped
    admin_chat_id: int | None
    # Storage failures are reported here
    error_chat_id: int | None

    # Storage
    storage_backend: str
    db_dsn: str | None
    firebase_db_url: str | None
    firebase_auth_token: str | None

    debug: bool

    @property
    def admin_enabled(self) -> bool:
        return self.admin_chat_id is not None


def _to_int(value: str | None) -> int | None:
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def load_settings() -> Settings:
    load_dotenv()

    tg_bot_token = os.getenv("TG_BOT_TOKEN")
    if not tg_bot_token:
        raise RuntimeError("TG_BOT_TOKEN is not set in .env!")

    storage_backend = os.getenv("STORAGE_BACKEND", "memory").strip().lower()
    if storage_backend not in STORAGE_BACKENDS:
        raise RuntimeError(
            f"Unknown STORAGE_BACKEND={storage_backend!r}, expected one of {STORAGE_BACKENDS}"
        )

    db_dsn = os.getenv("DB_DSN")
    if storage_backend == "postgres" and not db_dsn:
        raise RuntimeError("STORAGE_BACKEND=postgres requires DB_DSN")

    # e.g. https://acelinks-chatbot-default-rtdb.firebaseio.com
    firebase_db_url = os.getenv("FIREBASE_DB_URL")
    if storage_backend == "firebase" and not firebase_db_url:
        raise RuntimeError("STORAGE_BACKEND=firebase requires FIREBASE_DB_URL")

    firebase_auth_token = os.getenv("FIREBASE_AUTH_TOKEN")

    debug = os.getenv("DEBUG", "False").lower() == "true"

    return Settings(
        tg_bot_token=tg_bot_token,
        admin_chat_id=_to_int(os.getenv("ADMIN_CHAT_ID")),
        error_chat_id=_to_int(os.getenv("ERROR_CHAT_ID")),
        storage_backend=storage_backend,
        db_dsn=db_dsn,
        firebase_db_url=firebase_db_url,
        firebase_auth_token=firebase_auth_token,
        debug=debug,
    )
