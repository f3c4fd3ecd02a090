import logging
from typing import Dict, List, Optional

LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"


class ProbeLog:
    """
    Per-call log collector.

    Every entry is kept in order so it can be returned alongside the
    diagnostic result, and is also forwarded to a regular module logger.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self._logger = logger or logging.getLogger("unlocker_probe")
        self.entries: List[Dict[str, str]] = []

    def log(self, message: str) -> None:
        self.entries.append({"type": "log", "message": message})
        self._logger.info(message)

    def error(self, message: str) -> None:
        self.entries.append({"type": "error", "message": message})
        self._logger.error(message)

    def __len__(self) -> int:
        return len(self.entries)


def configure_logging(level: str = "INFO", fmt: str = LOG_FORMAT) -> None:
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=fmt)
