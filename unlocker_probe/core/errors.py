from typing import Optional


class ProbeError(Exception):
    """Base class for errors surfaced to the caller of a probe."""


class ConfigError(ProbeError):
    """A credential required by the selected access mode is missing."""


class NetworkError(ProbeError):
    """
    The outbound call failed at the transport level.

    Non-2xx responses are data, not errors; this is only raised when no
    usable response came back (timeout, DNS, proxy tunnel refused, ...).
    """

    def __init__(self, message: str, status_code: Optional[int] = None, response_text: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.response_text = response_text
