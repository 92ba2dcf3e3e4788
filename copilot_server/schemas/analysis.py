# copilot_server/schemas/analysis.py
from pydantic import ConfigDict
from sqlmodel import Field

from copilot_server.schemas.base import CamelModel


class AnalyzeRequest(CamelModel):
    """
    Screenshot to analyse plus the instruction prompt.
    """

    model_config = ConfigDict(extra="forbid")

    image_base64: str = Field(min_length=1)
    media_type: str = "image/png"
    prompt: str = Field(min_length=1)


class QuotaRead(CamelModel):
    """
    Quota decision in wire format: limit -1 and remaining "unlimited" mean
    no cap. `reason` is only sent on a denial.
    """

    allowed: bool
    used: int
    limit: int
    remaining: int | str
    reason: str | None = None


class AnalyzeResponse(CamelModel):
    success: bool = True
    response: str
    usage: QuotaRead


class UsageResponse(CamelModel):
    success: bool = True
    usage: QuotaRead


class ServiceStatus(CamelModel):
    success: bool = True
    status: str
    api_configured: bool
    authenticated: bool
    timestamp: str
