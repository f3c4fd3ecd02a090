import json
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import urlparse

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse, Response
from pydantic import ValidationError

from unlocker_probe.core.config import settings
from unlocker_probe.core.errors import ProbeError
from unlocker_probe.fetch.base import MODE_API, MODES
from unlocker_probe.fetch.classify import infer_content_type, is_oversized, oversized_error
from unlocker_probe.schemas import ProbeRequest
from unlocker_probe.services import diagnose

SERVICE_NAME = "brightdata-unlocker-test"
TRUTHY = ("true", "1")

router = APIRouter()

class InvalidBody(Exception):
    pass

async def _read_body(request: Request) -> dict:
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        body = json.loads(raw)
    except ValueError:
        raise InvalidBody("Request body must be JSON")
    if not isinstance(body, dict):
        raise InvalidBody("Request body must be a JSON object")
    return body

def _body_flag(value) -> bool:
    return value is True or (isinstance(value, str) and value.lower() in TRUTHY)

async def read_probe_params(request: Request, default_url: Optional[str] = None) -> ProbeRequest:
    """Merge query string and JSON body; the query string wins."""
    query = request.query_params
    body = await _read_body(request) if request.method == "POST" else {}

    full = query.get("full", "").lower() in TRUTHY or _body_flag(body.get("full"))
    try:
        return ProbeRequest(
            url=query.get("url") or body.get("url") or default_url,
            mode=query.get("mode") or body.get("mode") or MODE_API,
            full=full,
        )
    except ValidationError as e:
        raise InvalidBody(f"Invalid parameters: {e.errors()[0]['msg']}")

def is_valid_url(url: str) -> bool:
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)

def validate_probe(params: ProbeRequest) -> Optional[JSONResponse]:
    """Return the 400 answer for a bad url or mode, None when the request is fine."""
    if not is_valid_url(params.url):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Invalid URL", "provided": params.url},
        )
    if params.mode not in MODES:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Invalid mode", "provided": params.mode, "allowed": list(MODES)},
        )
    return None

def _bad_body(e: InvalidBody) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": str(e)})

@router.get("/health")
async def health_check():
    """Health check endpoint with credential presence flags"""
    relay = settings.relay()
    proxy = settings.proxy()
    return {
        "status": "ok",
        "service": SERVICE_NAME,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "config": {
            "apiKeyConfigured": bool(relay.bearer_token),
            "proxyConfigured": bool(proxy.username and proxy.password),
            "zone": relay.zone,
            "proxyUsername": proxy.username[:30] + "..." if proxy.username else "not configured",
        },
    }

@router.api_route("/test", methods=["GET", "POST"])
async def test_unlocker(request: Request):
    """
    Probe a URL through the Unlocker API or the Unlocker proxy.

    Parameters come from the query string (GET) or a JSON body (POST):
    url, mode ('api' or 'native') and full. The answer is a JSON diagnostic
    envelope with the log lines of the probe.
    """
    try:
        params = await read_probe_params(request, default_url=settings.DEFAULT_TARGET_URL)
    except InvalidBody as e:
        return _bad_body(e)

    invalid = validate_probe(params)
    if invalid is not None:
        return invalid

    result = await diagnose.run_diagnostics(params.url, params.mode, full=params.full, config=settings)
    return JSONResponse(status_code=result.http_status, content=result.to_wire())

@router.api_route("/fetch", methods=["GET", "POST"])
async def fetch_raw(request: Request):
    """Return the fetched body as-is, with a Content-Type guessed from its first bytes"""
    try:
        params = await read_probe_params(request)
    except InvalidBody as e:
        return _bad_body(e)

    if not params.url:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "error": "Missing url parameter",
                "usage": "GET /fetch?url=https://example.com&mode=api",
            },
        )

    invalid = validate_probe(params)
    if invalid is not None:
        return invalid

    try:
        result = await diagnose.fetch_raw(params.url, params.mode, config=settings)
    except ProbeError as e:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Fetch failed", "message": str(e)},
        )

    content = result.content
    if result.status_code >= 400:
        return Response(content=content, status_code=result.status_code, media_type=infer_content_type(content))

    if is_oversized(content, settings.MAX_CONTENT_SIZE):
        return JSONResponse(
            status_code=413,
            content=oversized_error(content, settings.MAX_CONTENT_SIZE),
        )

    return Response(
        content=content,
        status_code=status.HTTP_200_OK,
        media_type=infer_content_type(content),
        headers={
            "X-Content-Length": str(len(content)),
            "X-Source-URL": params.url,
        },
    )
