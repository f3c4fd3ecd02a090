import os
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote


@dataclass(frozen=True)
class RelayConfig:
    endpoint: str
    bearer_token: Optional[str]
    zone: str


@dataclass(frozen=True)
class ProxyConfig:
    host: str
    port: int
    username: Optional[str]
    password: Optional[str]

    @property
    def proxy_url(self) -> str:
        user = quote(self.username or "", safe="")
        password = quote(self.password or "", safe="")
        return f"http://{user}:{password}@{self.host}:{self.port}"


class Settings:
    # Unlocker REST API (relay mode)
    BRIGHT_DATA_API_KEY: Optional[str] = os.getenv("BRIGHT_DATA_API_KEY")
    BRIGHT_DATA_UNLOCKER_ZONE: str = os.getenv("BRIGHT_DATA_UNLOCKER_ZONE", "web_unlocker1")
    BRIGHT_DATA_API_URL: str = os.getenv("BRIGHT_DATA_API_URL", "https://api.brightdata.com/request")

    # Unlocker proxy (native mode), the username encodes the zone
    PROXY_HOST: str = os.getenv("BRIGHT_DATA_UNLOCKER_PROXY_HOST", "brd.superproxy.io")
    PROXY_PORT: int = int(os.getenv("BRIGHT_DATA_UNLOCKER_PROXY_PORT", "33335"))
    PROXY_USERNAME: Optional[str] = os.getenv("BRIGHT_DATA_UNLOCKER_PROXY_USERNAME")
    PROXY_PASSWORD: Optional[str] = os.getenv("BRIGHT_DATA_UNLOCKER_PROXY_PASSWORD")

    # Fetching
    REQUEST_TIMEOUT: int = int(os.getenv("REQUEST_TIMEOUT", "120"))
    MAX_CONTENT_SIZE: int = int(os.getenv("MAX_CONTENT_SIZE", "5242880"))
    DEFAULT_TARGET_URL: str = os.getenv("DEFAULT_TARGET_URL", "https://forum.opencart.com/feed/forum/2")

    # Server
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "3000"))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    def relay(self) -> RelayConfig:
        return RelayConfig(
            endpoint=self.BRIGHT_DATA_API_URL,
            bearer_token=self.BRIGHT_DATA_API_KEY,
            zone=self.BRIGHT_DATA_UNLOCKER_ZONE,
        )

    def proxy(self) -> ProxyConfig:
        return ProxyConfig(
            host=self.PROXY_HOST,
            port=self.PROXY_PORT,
            username=self.PROXY_USERNAME,
            password=self.PROXY_PASSWORD,
        )

settings = Settings()
