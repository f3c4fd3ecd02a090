import logging
from typing import Optional

from unlocker_probe.core.config import Settings, settings as default_settings
from unlocker_probe.core.errors import NetworkError, ProbeError
from unlocker_probe.core.logs import ProbeLog
from unlocker_probe.fetch.base import BaseFetcher, FetchResult
from unlocker_probe.fetch.classify import PREVIEW_LENGTH, classify, verdict
from unlocker_probe.fetch.fetcher import UnlockerFetcher
from unlocker_probe.schemas import DiagnosticResponse, LogEntry

logger = logging.getLogger(__name__)

def get_fetcher(config: Optional[Settings] = None) -> BaseFetcher:
    return UnlockerFetcher(config or default_settings)

async def run_diagnostics(
    url: str,
    mode: str,
    full: bool = False,
    config: Optional[Settings] = None,
    fetcher: Optional[BaseFetcher] = None,
) -> DiagnosticResponse:
    """
    Probe one URL and build the /test diagnostic envelope.

    1. Fetch through the selected access path (one outbound request)
    2. Classify the body (feed detection, challenge detection, preview)
    3. Attach the log lines collected during the call

    Probe errors never escape: they end up in the ``error`` field with
    ``success`` left false.
    """
    config = config or default_settings
    fetcher = fetcher or get_fetcher(config)
    log = ProbeLog(logger)
    response = DiagnosticResponse(mode=mode, url=url)

    try:
        result = await fetcher.fetch(url, mode, log)
        diagnostics = classify(result, full=full, max_content_size=config.MAX_CONTENT_SIZE)
        response = DiagnosticResponse(mode=mode, url=url, **diagnostics)

        summary = verdict(diagnostics)
        if summary:
            log.log(summary)
    except ProbeError as e:
        log.error(f"Unlocker {mode} error: {e}")
        response.error = str(e)
        if isinstance(e, NetworkError):
            if e.status_code is not None:
                response.status = e.status_code
            if e.response_text is not None:
                response.error_response = e.response_text[:PREVIEW_LENGTH]

    response.logs = [LogEntry(**entry) for entry in log.entries]
    return response

async def fetch_raw(
    url: str,
    mode: str,
    config: Optional[Settings] = None,
    fetcher: Optional[BaseFetcher] = None,
) -> FetchResult:
    """Fetch for the raw passthrough surface; probe errors propagate."""
    config = config or default_settings
    fetcher = fetcher or get_fetcher(config)
    return await fetcher.fetch(url, mode, ProbeLog(logger))
