"""Data models and configuration for kickchat."""

from datetime import datetime

from pydantic import BaseModel, computed_field, field_validator

DEFAULT_WS_HOSTS = [
    "wss://ws-prod.chat-service.kick.com/chatroom",
    "wss://ws-us.chat-service.kick.com/chatroom",
    "wss://ws-eu.chat-service.kick.com/chatroom",
    "wss://ws2.chat-service.kick.com/chatroom",
]


class Config(BaseModel):
    """Configuration model."""

    # Chatroom id lookup, "{slug}" is replaced with the encoded channel name
    api_v2_url: str = "https://kick.com/api/v2/channels/{slug}"
    api_v1_url: str = "https://kick.com/api/v1/channels/{slug}"
    page_url: str = "https://kick.com/{slug}"
    http_timeout_sec: float = 15.0
    user_agent: str = (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )

    # WebSocket hosts, tried in order
    ws_hosts: list[str] = list(DEFAULT_WS_HOSTS)
    connect_timeout_sec: float = 12.0
    ping_interval_sec: float = 25.0

    @field_validator("connect_timeout_sec", "ping_interval_sec", "http_timeout_sec")
    @classmethod
    def _positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("must be positive")
        return value

    @field_validator("ws_hosts")
    @classmethod
    def _hosts_not_empty(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("at least one WebSocket host is required")
        return value

    @computed_field
    @property
    def http_headers(self) -> dict[str, str]:
        """Headers sent with every lookup request."""
        return {
            "User-Agent": self.user_agent,
            "Accept": "application/json, text/html;q=0.9, */*;q=0.8",
            "Referer": "https://kick.com/",
        }


class ChatEvent(BaseModel):
    """Chat event model matching the watch --jsonl schema."""

    channel: str
    username: str
    text: str
    received_at: datetime
