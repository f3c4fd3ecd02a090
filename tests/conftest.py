import pytest
from unlocker_probe.core import config
from unlocker_probe.fetch.base import BaseFetcher, FetchResult

TEST_OVERRIDES = {
    "BRIGHT_DATA_API_KEY": "test-api-key-1234567890",
    "BRIGHT_DATA_UNLOCKER_ZONE": "web_unlocker_test",
    "BRIGHT_DATA_API_URL": "https://relay.test/request",
    "PROXY_HOST": "proxy.test",
    "PROXY_PORT": 33335,
    "PROXY_USERNAME": "brd-customer-test-zone-web_unlocker_test",
    "PROXY_PASSWORD": "secret",
    "MAX_CONTENT_SIZE": 5242880,
    "REQUEST_TIMEOUT": 120,
    "LOG_LEVEL": "INFO",
}

@pytest.fixture(autouse=True)
def setup_test_environment():
    """Setup test environment with known credentials"""
    # Store original values
    original = {name: getattr(config.settings, name) for name in TEST_OVERRIDES}

    for name, value in TEST_OVERRIDES.items():
        setattr(config.settings, name, value)

    yield config.settings

    # Restore original values
    for name, value in original.items():
        setattr(config.settings, name, value)

class StubFetcher(BaseFetcher):
    """Fetcher returning a canned result (or raising) without network access"""

    def __init__(self, content: str = "", status_code: int = 200, error: Exception = None):
        self.result = FetchResult(content=content, status_code=status_code)
        self.error = error
        self.calls = []

    async def fetch(self, url, mode, log=None):
        self.calls.append((url, mode))
        if log is not None:
            log.log(f"Target URL: {url}")
        if self.error is not None:
            raise self.error
        return self.result

@pytest.fixture
def stub_fetcher():
    return StubFetcher
