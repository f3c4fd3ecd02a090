import json
import logging
from typing import Any, Callable, Dict, Optional

import httpx

from unlocker_probe.core.config import Settings, settings as default_settings
from unlocker_probe.core.errors import ConfigError, NetworkError
from unlocker_probe.core.logs import ProbeLog
from .base import MODE_API, MODE_NATIVE, BaseFetcher, FetchResult

logger = logging.getLogger(__name__)

# Browser-like headers for the proxy path, enough to get past trivial bot checks
BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/131.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}

MAX_REDIRECTS = 5
ENVELOPE_FIELDS = ("body", "data", "content")

ClientFactory = Callable[..., httpx.AsyncClient]


def unwrap_relay_body(text: str) -> str:
    """
    Return the effective page content of a relay response.

    The relay answers either with the raw page or with a JSON object wrapping
    it. For an object, the first truthy of body/data/content wins; without
    any of them the whole object is stringified.
    """
    try:
        payload = json.loads(text)
    except ValueError:
        return text

    if not isinstance(payload, dict):
        return text

    for field in ENVELOPE_FIELDS:
        value = payload.get(field)
        if value:
            return value if isinstance(value, str) else _stringify(value)

    return _stringify(payload)


def _stringify(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


async def read_body(response: httpx.Response, url: str) -> str:
    """
    Read a streamed response as text.

    A failure after the headers arrived keeps the status and whatever part
    of the body was already decoded on the raised NetworkError.
    """
    parts = []
    try:
        async for chunk in response.aiter_text():
            parts.append(chunk)
    except httpx.HTTPError as e:
        raise NetworkError(
            f"Connection dropped while reading {url}: {e}",
            status_code=response.status_code,
            response_text="".join(parts),
        ) from e
    return "".join(parts)


class UnlockerFetcher(BaseFetcher):
    """
    Performs exactly one outbound request per call, through either the
    Unlocker REST API or the Unlocker proxy.

    Each call builds its own client, so the relaxed TLS policy of the proxy
    path lives and dies with that client and never leaks into other requests.
    """

    def __init__(self, config: Optional[Settings] = None, client_factory: ClientFactory = httpx.AsyncClient):
        self.settings = config or default_settings
        self._client_factory = client_factory

    async def fetch(self, url: str, mode: str, log: Optional[ProbeLog] = None) -> FetchResult:
        log = log or ProbeLog(logger)
        if mode == MODE_API:
            return await self.fetch_via_api(url, log)
        if mode == MODE_NATIVE:
            return await self.fetch_via_proxy(url, log)
        raise ValueError(f"Unknown access mode: {mode!r}")

    def api_client_options(self) -> Dict[str, Any]:
        return {"timeout": self.settings.REQUEST_TIMEOUT}

    def proxy_client_options(self) -> Dict[str, Any]:
        return {
            "proxy": self.settings.proxy().proxy_url,
            "verify": False,
            "headers": BROWSER_HEADERS,
            "timeout": self.settings.REQUEST_TIMEOUT,
            "follow_redirects": True,
            "max_redirects": MAX_REDIRECTS,
        }

    async def fetch_via_api(self, url: str, log: ProbeLog) -> FetchResult:
        relay = self.settings.relay()
        if not relay.bearer_token:
            raise ConfigError("BRIGHT_DATA_API_KEY not configured")

        log.log("Testing Bright Data Unlocker API (REST)...")
        log.log(f"Zone: {relay.zone}")
        log.log(f"Target URL: {url}")
        log.log(f"API key prefix: {relay.bearer_token[:8]}...")

        payload = {"zone": relay.zone, "url": url, "format": "raw"}
        headers = {
            "Authorization": f"Bearer {relay.bearer_token}",
            "Content-Type": "application/json",
        }

        try:
            async with self._client_factory(**self.api_client_options()) as client:
                async with client.stream("POST", relay.endpoint, json=payload, headers=headers) as response:
                    text = await read_body(response, url)
        except httpx.TimeoutException as e:
            raise NetworkError(f"Timeout while fetching {url} via Unlocker API") from e
        except httpx.HTTPError as e:
            raise NetworkError(f"Unlocker API request failed: {e}") from e

        content = unwrap_relay_body(text)
        log.log(f"HTTP Status: {response.status_code}")
        log.log(f"Content length: {len(content)} chars")
        return FetchResult(content=content, status_code=response.status_code)

    async def fetch_via_proxy(self, url: str, log: ProbeLog) -> FetchResult:
        proxy = self.settings.proxy()
        if not proxy.username or not proxy.password:
            raise ConfigError("BRIGHT_DATA_UNLOCKER_PROXY_USERNAME / BRIGHT_DATA_UNLOCKER_PROXY_PASSWORD not configured")

        log.log("Testing Unlocker native proxy...")
        log.log(f"Proxy: {proxy.host}:{proxy.port}")
        log.log(f"Zone (from username): {proxy.username}")
        log.log(f"Target URL: {url}")

        try:
            async with self._client_factory(**self.proxy_client_options()) as client:
                async with client.stream("GET", url) as response:
                    content = await read_body(response, url)
        except httpx.TimeoutException as e:
            raise NetworkError(f"Timeout while fetching {url} via Unlocker proxy") from e
        except httpx.HTTPError as e:
            raise NetworkError(f"Unlocker proxy request failed: {e}") from e

        log.log(f"HTTP Status: {response.status_code}")
        log.log(f"Content length: {len(content)} chars")
        return FetchResult(content=content, status_code=response.status_code)
