import pytest
from unittest.mock import patch
from fastapi.testclient import TestClient
from unlocker_probe.core.errors import ConfigError, NetworkError
from unlocker_probe.main import app

# Test client
client = TestClient(app)

RSS_BODY = '<?xml version="1.0"?><rss></rss>'

@pytest.fixture
def serve_body(stub_fetcher):
    """Patch the fetcher used by the endpoints; returns a setter"""
    patcher = patch("unlocker_probe.services.diagnose.get_fetcher")
    mock_get_fetcher = patcher.start()

    def _serve(content="", status_code=200, error=None):
        fetcher = stub_fetcher(content, status_code, error)
        mock_get_fetcher.return_value = fetcher
        return fetcher

    yield _serve
    patcher.stop()

class TestTestEndpoint:
    """Integration tests for the /test endpoint"""

    def test_rss_scenario(self, serve_body):
        """Test an XML feed coming back through the relay"""
        fetcher = serve_body(RSS_BODY, 200)

        response = client.get("/test", params={"url": "https://example.com/feed", "mode": "api"})

        assert response.status_code == 200
        data = response.json()
        assert data["mode"] == "api"
        assert data["url"] == "https://example.com/feed"
        assert data["success"] is True
        assert data["status"] == 200
        assert data["isXml"] is True
        assert data["hasCloudflareChallenge"] is False
        assert data["contentLength"] == len(RSS_BODY)
        assert data["contentPreview"] == RSS_BODY
        assert "content" not in data
        assert {"type": "log", "message": "Looks like an XML/RSS feed."} in data["logs"]
        assert fetcher.calls == [("https://example.com/feed", "api")]

    def test_challenge_scenario(self, serve_body):
        """Test a Cloudflare interstitial that still came through"""
        serve_body("<html><title>Just a moment...</title></html>", 200)

        data = client.get("/test", params={"url": "https://example.com", "mode": "native"}).json()

        assert data["hasCloudflareChallenge"] is True
        assert data["mode"] == "native"

    def test_post_body_parameters(self, serve_body):
        """Test parameters sent as JSON body"""
        fetcher = serve_body("hello", 200)

        response = client.post("/test", json={"url": "https://example.com", "mode": "native", "full": True})

        assert response.status_code == 200
        assert response.json()["content"] == "hello"
        assert fetcher.calls == [("https://example.com", "native")]

    def test_default_url(self, serve_body, setup_test_environment):
        """Test that /test without url probes the default target"""
        fetcher = serve_body("ok", 200)
        client.get("/test")
        assert fetcher.calls == [(setup_test_environment.DEFAULT_TARGET_URL, "api")]

    @pytest.mark.parametrize("flag", ["true", "1"])
    def test_full_flag_in_query(self, serve_body, flag):
        serve_body("full body", 200)
        data = client.get("/test", params={"url": "https://example.com", "full": flag}).json()
        assert data["content"] == "full body"

    def test_full_content_truncated(self, serve_body, setup_test_environment):
        setup_test_environment.MAX_CONTENT_SIZE = 100
        serve_body("x" * 150, 200)

        data = client.get("/test", params={"url": "https://example.com", "full": "true"}).json()

        assert data["content"] == "x" * 100
        assert data["contentTruncated"] is True
        assert data["maxContentSize"] == 100
        assert data["contentLength"] == 150

    def test_invalid_mode(self, serve_body):
        """Test an unknown access mode"""
        fetcher = serve_body("unused", 200)

        response = client.get("/test", params={"url": "https://example.com", "mode": "bogus"})

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "Invalid mode"
        assert data["allowed"] == ["api", "native"]
        assert fetcher.calls == []

    @pytest.mark.parametrize("url", ["not-a-url", "ftp://example.com/file", "https://", "http://[::1"])
    def test_invalid_url(self, url):
        response = client.get("/test", params={"url": url})
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid URL", "provided": url}

    def test_invalid_json_body(self):
        response = client.post("/test", content="{not json", headers={"Content-Type": "application/json"})
        assert response.status_code == 400

    def test_upstream_error_status_is_forwarded(self, serve_body):
        serve_body("Forbidden", 403)
        response = client.get("/test", params={"url": "https://example.com"})
        assert response.status_code == 403
        assert response.json()["success"] is False

    def test_config_error(self, serve_body):
        serve_body(error=ConfigError("BRIGHT_DATA_API_KEY not configured"))

        response = client.get("/test", params={"url": "https://example.com"})

        assert response.status_code == 500
        data = response.json()
        assert data["error"] == "BRIGHT_DATA_API_KEY not configured"
        assert data["status"] is None
        assert data["logs"][-1]["type"] == "error"

class TestFetchEndpoint:
    """Integration tests for the /fetch raw passthrough"""

    def test_xml_passthrough(self, serve_body):
        serve_body(RSS_BODY, 200)

        response = client.get("/fetch", params={"url": "https://example.com/feed"})

        assert response.status_code == 200
        assert response.text == RSS_BODY
        assert response.headers["content-type"] == "application/xml; charset=utf-8"
        assert response.headers["x-content-length"] == str(len(RSS_BODY))
        assert response.headers["x-source-url"] == "https://example.com/feed"

    @pytest.mark.parametrize("body,content_type", [
        ("<!DOCTYPE html><html></html>", "text/html; charset=utf-8"),
        ('{"ok": true}', "application/json; charset=utf-8"),
        ("just text", "text/plain; charset=utf-8"),
    ])
    def test_content_type_inference(self, serve_body, body, content_type):
        serve_body(body, 200)
        response = client.post("/fetch", json={"url": "https://example.com", "mode": "native"})
        assert response.headers["content-type"] == content_type

    def test_oversized_body(self, serve_body):
        serve_body("a" * 6_000_000, 200)

        response = client.get("/fetch", params={"url": "https://example.com"})

        assert response.status_code == 413
        data = response.json()
        assert data["contentLength"] == 6_000_000
        assert data["maxAllowed"] == 5_242_880

    def test_upstream_error_passthrough(self, serve_body):
        serve_body("Access denied", 403)
        response = client.get("/fetch", params={"url": "https://example.com"})
        assert response.status_code == 403
        assert response.text == "Access denied"

    def test_missing_url(self):
        response = client.get("/fetch")
        assert response.status_code == 400
        assert response.json()["error"] == "Missing url parameter"

    def test_malformed_url(self):
        """Test a URL the parser rejects outright"""
        response = client.get("/fetch", params={"url": "http://[::1"})
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid URL", "provided": "http://[::1"}

    def test_invalid_mode(self):
        response = client.get("/fetch", params={"url": "https://example.com", "mode": "bogus"})
        assert response.status_code == 400
        assert response.json()["allowed"] == ["api", "native"]

    def test_network_error(self, serve_body):
        serve_body(error=NetworkError("proxy unreachable"))

        response = client.get("/fetch", params={"url": "https://example.com", "mode": "native"})

        assert response.status_code == 500
        assert response.json() == {"error": "Fetch failed", "message": "proxy unreachable"}

    def test_fetch_and_full_test_agree(self, serve_body):
        """Test that /fetch and /test?full=true return the same content"""
        body = "<rss>" + "item " * 1000 + "</rss>"
        serve_body(body, 200)

        raw = client.get("/fetch", params={"url": "https://example.com"}).text
        envelope = client.get("/test", params={"url": "https://example.com", "full": "true"}).json()

        assert raw == envelope["content"] == body

class TestHealthEndpoints:
    """Test health and utility endpoints"""

    def test_health_endpoint(self):
        """Test health check endpoint"""
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["config"]["apiKeyConfigured"] is True
        assert data["config"]["proxyConfigured"] is True
        assert data["config"]["zone"] == "web_unlocker_test"
        assert data["config"]["proxyUsername"] == "brd-customer-test-zone-web_unl..."

    def test_health_without_credentials(self, setup_test_environment):
        setup_test_environment.BRIGHT_DATA_API_KEY = None
        setup_test_environment.PROXY_USERNAME = None

        config = client.get("/health").json()["config"]
        assert config["apiKeyConfigured"] is False
        assert config["proxyConfigured"] is False
        assert config["proxyUsername"] == "not configured"

    def test_root_endpoint(self):
        """Test root endpoint"""
        response = client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert "service" in data
        assert "endpoints" in data
        assert set(data["modes"]) == {"api", "native"}

    def test_cors_preflight(self):
        response = client.options(
            "/test",
            headers={"Origin": "https://dashboard.example.com", "Access-Control-Request-Method": "POST"},
        )
        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"
