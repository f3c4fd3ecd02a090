from dataclasses import dataclass
from typing import Optional

from unlocker_probe.core.logs import ProbeLog

# Wire names of the two access paths
MODE_API = "api"        # Unlocker REST API (relay)
MODE_NATIVE = "native"  # forwarding proxy with an Unlocker zone
MODES = (MODE_API, MODE_NATIVE)

@dataclass
class FetchResult:
    content: str
    status_code: int

class BaseFetcher:
    async def fetch(self, url: str, mode: str, log: Optional[ProbeLog] = None) -> FetchResult:
        raise NotImplementedError
