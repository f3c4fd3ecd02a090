"""
Response classification for fetched page content.

All heuristics work on the decoded text, never on headers: the relay
answers with its own content type regardless of what the target served.
Lengths and the preview are measured in Unicode code points (Python str
indexing).
"""

from typing import Any, Dict, Optional

from .base import FetchResult

PREVIEW_LENGTH = 500
DEFAULT_MAX_CONTENT_SIZE = 5_242_880

FEED_PREFIXES = ("<?xml", "<feed", "<rss")
HTML_PREFIXES = ("<!doctype", "<html")
JSON_PREFIXES = ("{", "[")
BLOCK_SIGNATURES = ("cloudflare", "just a moment", "cf-browser-verification")

CONTENT_TYPE_XML = "application/xml; charset=utf-8"
CONTENT_TYPE_HTML = "text/html; charset=utf-8"
CONTENT_TYPE_JSON = "application/json; charset=utf-8"
CONTENT_TYPE_TEXT = "text/plain; charset=utf-8"


def _normalized(body: str) -> str:
    return body.lower().lstrip()


def is_feed_like(body: str) -> bool:
    """True when the body looks like an XML/RSS/Atom document."""
    return _normalized(body).startswith(FEED_PREFIXES)


def has_block_signature(body: str) -> bool:
    """True when a Cloudflare challenge page (or a mention of one) came back."""
    lower = body.lower()
    return any(signature in lower for signature in BLOCK_SIGNATURES)


def is_success(status_code: Optional[int]) -> bool:
    return status_code is not None and 200 <= status_code < 300


def preview(body: str, length: int = PREVIEW_LENGTH) -> str:
    return body[:length]


def infer_content_type(body: str) -> str:
    lower = _normalized(body)
    if lower.startswith(FEED_PREFIXES):
        return CONTENT_TYPE_XML
    if lower.startswith(HTML_PREFIXES):
        return CONTENT_TYPE_HTML
    if lower.startswith(JSON_PREFIXES):
        return CONTENT_TYPE_JSON
    return CONTENT_TYPE_TEXT


def is_oversized(body: str, max_content_size: int = DEFAULT_MAX_CONTENT_SIZE) -> bool:
    return len(body) > max_content_size


def classify(
    result: FetchResult,
    full: bool = False,
    max_content_size: int = DEFAULT_MAX_CONTENT_SIZE,
) -> Dict[str, Any]:
    """
    Shape a fetch result into the diagnostic fields of the /test envelope.

    With ``full`` the body is attached as ``content``; bodies over
    ``max_content_size`` are cut to that size and flagged instead of
    being rejected.
    """
    body = result.content
    diagnostics: Dict[str, Any] = {
        "success": is_success(result.status_code),
        "status": result.status_code,
        "content_length": len(body),
        "content_preview": preview(body),
        "is_xml": is_feed_like(body),
        "has_cloudflare_challenge": has_block_signature(body),
    }

    if full:
        if is_oversized(body, max_content_size):
            diagnostics["content"] = body[:max_content_size]
            diagnostics["content_truncated"] = True
            diagnostics["max_content_size"] = max_content_size
            diagnostics["message"] = (
                f"Content truncated at {max_content_size} characters. "
                f"Use /fetch for raw content (up to {max_content_size} characters)."
            )
        else:
            diagnostics["content"] = body

    return diagnostics


def oversized_error(body: str, max_content_size: int = DEFAULT_MAX_CONTENT_SIZE) -> Dict[str, Any]:
    """Body of the 413 answer the raw passthrough gives for oversized content."""
    return {
        "error": "Content too large",
        "contentLength": len(body),
        "maxAllowed": max_content_size,
        "message": (
            f"Content exceeds {max_content_size} characters. "
            "Use /test?full=true for JSON with truncated content."
        ),
    }


def verdict(diagnostics: Dict[str, Any]) -> Optional[str]:
    """One-line console summary of a classified result, if any applies."""
    if diagnostics["is_xml"]:
        return "Looks like an XML/RSS feed."
    if diagnostics["has_cloudflare_challenge"]:
        return "Cloudflare challenge still present in the response."
    return None
