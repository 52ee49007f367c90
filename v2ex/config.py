from __future__ import annotations

import os
from dataclasses import dataclass, field


DEFAULT_STORE_URL = "https://paaqlqlmaggdobiaxorx.supabase.co"
DEFAULT_STORE_KEY = (
    "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9."
    "eyJpc3MiOiJzdXBhYmFzZSIsInJlZiI6InBhYXFscWxtYWdnZG9iaWF4b3J4Iiwicm9sZSI6"
    "ImFub24iLCJpYXQiOjE3NjE0NTMwNDQsImV4cCI6MjA3NzAyOTA0NH0."
    "SeXjQ_P-mWhT1hN2BXriYXsc19iTNRAOH0LMpuDBjcw"
)


# ---------- Forum API configuration ----------


@dataclass
class ForumAPIConfig:
    """
    Settings for the V2EX REST API.

    `base_url` is the versioned, token-authenticated API. The three
    public feeds (latest, hot, all nodes) live under `legacy_base_url`
    and are always requested anonymously.
    """

    base_url: str = "https://www.v2ex.com/api/v2"
    legacy_base_url: str = "https://www.v2ex.com/api"
    timeout_seconds: float = 30.0
    user_agent: str = "v2ex-client/0.1"


# ---------- User-data store configuration ----------


@dataclass
class StoreConfig:
    """
    Settings for the REST-over-Postgres store holding favorites,
    reading history, node subscriptions and theme preferences.

    The api_key is the project's anonymous service key, not the
    end-user's forum token.
    """

    base_url: str = field(
        default_factory=lambda: os.getenv("V2EX_STORE_URL", DEFAULT_STORE_URL)
    )
    rest_path: str = "/rest/v1"
    api_key: str = field(
        default_factory=lambda: os.getenv("V2EX_STORE_KEY", DEFAULT_STORE_KEY)
    )
    timeout_seconds: float = 30.0

    @property
    def rest_url(self) -> str:
        return f"{self.base_url.rstrip('/')}{self.rest_path}"


# ---------- Top-level application configuration ----------


@dataclass
class AppConfig:
    forum: ForumAPIConfig = field(default_factory=ForumAPIConfig)
    store: StoreConfig = field(default_factory=StoreConfig)


def get_config() -> AppConfig:
    """
    Main entrypoint to get the full application config.

    Usage:
        from v2ex.config import get_config
        cfg = get_config()
        cfg.forum.base_url
    """
    return AppConfig()
