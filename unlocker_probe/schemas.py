from pydantic import BaseModel, ConfigDict, Field
from typing import List, Literal, Optional

class LogEntry(BaseModel):
    type: Literal["log", "error"]
    message: str

class ProbeRequest(BaseModel):
    """Parameters of /test and /fetch, from the query string or the body"""
    url: Optional[str] = None
    mode: str = Field(default="api", description="Access path: 'api' (REST relay) or 'native' (proxy)")
    full: bool = Field(default=False, description="Attach the whole body to the /test envelope")

class DiagnosticResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    mode: str
    url: str
    success: bool = False
    status: Optional[int] = None
    content_length: int = Field(default=0, alias="contentLength")
    content_preview: str = Field(default="", alias="contentPreview")
    is_xml: bool = Field(default=False, alias="isXml")
    has_cloudflare_challenge: bool = Field(default=False, alias="hasCloudflareChallenge")
    logs: List[LogEntry] = Field(default_factory=list)

    # Only present when requested or when something went wrong
    content: Optional[str] = None
    content_truncated: Optional[bool] = Field(default=None, alias="contentTruncated")
    max_content_size: Optional[int] = Field(default=None, alias="maxContentSize")
    message: Optional[str] = None
    error: Optional[str] = None
    error_response: Optional[str] = Field(default=None, alias="errorResponse")

    def to_wire(self) -> dict:
        """camelCase JSON body; optional fields are dropped unless they were set."""
        data = self.model_dump(by_alias=True, exclude_none=True)
        data["status"] = self.status
        return data

    @property
    def http_status(self) -> int:
        if self.success:
            return 200
        if self.status is None:
            return 500
        # 1xx/3xx cannot carry a JSON body
        return self.status if self.status >= 400 else 502
