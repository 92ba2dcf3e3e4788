# copilot_server/routers/api.py
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse
from sqlmodel import Session

from copilot_server.core.analysis_client import AnalysisError, AnthropicAnalysisClient
from copilot_server.core.auth import optional_auth, require_auth
from copilot_server.database import get_session
from copilot_server.models.user import User
from copilot_server.repositories.usage_repo import UsageRepository
from copilot_server.repositories.user_repo import UserRepository
from copilot_server.schemas.analysis import (
    AnalyzeRequest,
    AnalyzeResponse,
    QuotaRead,
    ServiceStatus,
    UsageResponse,
)
from copilot_server.services.quota_service import QuotaService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["API"])

quota = QuotaService(UserRepository(), UsageRepository())


def get_analysis_client(request: Request) -> AnthropicAnalysisClient:
    return request.app.state.analysis_client


@router.post(
    "/analyze",
    response_model=AnalyzeResponse,
    response_model_exclude_none=True,
    responses={403: {"description": "Daily limit reached or account not active"}},
)
def analyze(
    payload: AnalyzeRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
    client: AnthropicAnalysisClient = Depends(get_analysis_client),
):
    """
    Run one AI analysis for the caller, charged against their daily quota.

    Pipeline: authenticate -> quota check -> downstream call -> record usage.
    Usage is recorded only when the downstream call returned a result.
    """
    decision = quota.can_consume(session, current_user.id)
    if not decision.allowed:
        body = decision.as_payload()
        return JSONResponse(
            status_code=status.HTTP_403_FORBIDDEN,
            content={
                "success": False,
                "error": decision.reason,
                "used": body["used"],
                "limit": body["limit"],
            },
        )

    if not client.configured:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Server API key not configured",
        )

    try:
        text = client.analyze(payload.image_base64, payload.media_type, payload.prompt)
    except AnalysisError as e:
        logger.error("Analysis failed for user %s: %s", current_user.id, e.message)
        if e.status_code == 401:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Server API key invalid",
            )
        if e.status_code == 429:
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Rate limit exceeded. Please wait a moment.",
            )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Analysis failed",
        )

    quota.record_consumption(session, current_user.id)
    after = quota.can_consume(session, current_user.id)
    usage = after.as_payload()
    # The call just made was allowed, whatever the follow-up check says
    usage["allowed"] = True
    usage.pop("reason", None)

    return AnalyzeResponse(response=text, usage=QuotaRead(**usage))


@router.get("/usage", response_model=UsageResponse, response_model_exclude_none=True)
def get_usage(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    The caller's quota decision for today.
    """
    decision = quota.can_consume(session, current_user.id)
    return UsageResponse(usage=QuotaRead(**decision.as_payload()))


@router.get("/status", response_model=ServiceStatus)
def get_status(
    current_user: User | None = Depends(optional_auth),
    client: AnthropicAnalysisClient = Depends(get_analysis_client),
):
    """
    Whether the service is up and the analysis key is configured.
    """
    return ServiceStatus(
        status="operational",
        api_configured=client.configured,
        authenticated=current_user is not None,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )
