"""
FastAPI backend for the tl;dv meeting matcher.

Endpoints:
    GET  /health                   : Health check
    POST /api/meetings/list        : List meetings (pass-through)
    POST /api/meetings/metadata    : Meeting metadata (pass-through)
    POST /api/meetings/transcript  : Meeting transcript (pass-through)
    POST /api/meetings/highlights  : Meeting highlights (pass-through)
    POST /api/meetings/process     : Batch: list + transcripts + account matching

Every response uses the same envelope:
    {"success": true, "data": ...}    or    {"success": false, "error": "..."}
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import pydantic
import uvicorn
from fastapi import Body, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from domain.models import Account, DateRange
from shared_utils.config_loader import get_settings
from shared_utils.constants import APIEndpoints, Defaults, LogScope
from shared_utils.di_container import get_di_container
from shared_utils.error_handler import AppException, ValidationError, log_exception
from shared_utils.logging_utils import ContextualLogger
from shared_utils.validation import InputValidator


# ---------------------------------------------------------------------------
# Application bootstrap
# ---------------------------------------------------------------------------

settings = get_settings()
logger = ContextualLogger(scope=LogScope.API)

app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description=settings.app_description,
)

limiter = Limiter(key_func=get_remote_address)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Validate configuration once at startup so we fail fast
try:
    get_di_container().validate_configuration()
    logger.info("api_initialized", environment=settings.environment, mcp_mode=settings.mcp_mode)
except Exception as e:
    logger.error("api_initialization_failed", error=str(e))
    raise


# ---------------------------------------------------------------------------
# Envelope helpers
# ---------------------------------------------------------------------------

def _success(data: Any, **extra: Any) -> JSONResponse:
    return JSONResponse(content={"success": True, "data": data, **extra})


def _failure(exc: Exception, event: str) -> JSONResponse:
    """Turn an exception into a failure envelope, message verbatim."""
    if isinstance(exc, AppException):
        logger.warning(event, error_code=exc.error_code, error=exc.message)
        return JSONResponse(
            status_code=exc.http_status,
            content={"success": False, "error": exc.message},
        )

    log_exception(exc, scope=LogScope.API)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "error": str(exc)},
    )


@app.exception_handler(RequestValidationError)
async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"success": False, "error": "Request body must be a JSON object"},
    )


def _require_meeting_id(body: Dict[str, Any]) -> str:
    return InputValidator.validate_non_empty_string(body.get("meetingId"), "meetingId")


def _parse_accounts(raw: Any) -> Optional[List[Account]]:
    """Validate the caller's account list; None means 'do not match'."""
    if raw is None:
        return None
    if not isinstance(raw, list):
        raise ValidationError("clientes must be a list of accounts")

    accounts = []
    for index, item in enumerate(raw):
        try:
            accounts.append(Account.model_validate(item))
        except pydantic.ValidationError as exc:
            raise ValidationError(
                f"Invalid account at index {index}",
                context={"index": index, "errors": exc.errors(include_url=False)},
            )
    return accounts


def _parse_date_range(body: Dict[str, Any]) -> DateRange:
    start = InputValidator.validate_optional_iso_date(body.get("startDate"), "startDate")
    end = InputValidator.validate_optional_iso_date(body.get("endDate"), "endDate")
    try:
        return DateRange(start_date=start, end_date=end)
    except pydantic.ValidationError:
        raise ValidationError(
            "startDate must not be after endDate",
            context={"startDate": start, "endDate": end},
        )


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------

@app.get(APIEndpoints.HEALTH)
def health_check() -> dict:
    """Health check endpoint."""
    logger.debug("health_check_requested")
    return {
        "status": "ok",
        "service": Defaults.SERVICE_NAME,
        "environment": settings.environment,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


# ======================================================================
# Meeting source pass-through endpoints
# ======================================================================

@app.post(APIEndpoints.MEETINGS_LIST)
def list_meetings(body: Dict[str, Any] = Body(default_factory=dict)) -> JSONResponse:
    """List meetings.

    Body JSON (all optional):
        query, startDate, endDate, participationStatus, meetingType, limit
    """
    try:
        filters: Dict[str, Any] = {}
        for key in ("query", "participationStatus", "meetingType"):
            if body.get(key):
                filters[key] = body[key]

        date_range = _parse_date_range(body)
        if date_range.start_date:
            filters["startDate"] = date_range.start_date
        if date_range.end_date:
            filters["endDate"] = date_range.end_date
        if body.get("limit") is not None:
            filters["limit"] = InputValidator.validate_positive_int(body["limit"], "limit")

        source = get_di_container().get_meeting_source()
        return _success(source.list_meetings(filters))

    except Exception as e:
        return _failure(e, "list_meetings_error")


@app.post(APIEndpoints.MEETINGS_METADATA)
def get_meeting_metadata(body: Dict[str, Any] = Body(default_factory=dict)) -> JSONResponse:
    """Metadata of one meeting. Body JSON: meetingId (required)."""
    try:
        meeting_id = _require_meeting_id(body)
        source = get_di_container().get_meeting_source()
        return _success(source.get_metadata(meeting_id))
    except Exception as e:
        return _failure(e, "get_metadata_error")


@app.post(APIEndpoints.MEETINGS_TRANSCRIPT)
def get_meeting_transcript(body: Dict[str, Any] = Body(default_factory=dict)) -> JSONResponse:
    """Transcript of one meeting. Body JSON: meetingId (required)."""
    try:
        meeting_id = _require_meeting_id(body)
        source = get_di_container().get_meeting_source()
        return _success(source.get_transcript(meeting_id))
    except Exception as e:
        return _failure(e, "get_transcript_error")


@app.post(APIEndpoints.MEETINGS_HIGHLIGHTS)
def get_meeting_highlights(body: Dict[str, Any] = Body(default_factory=dict)) -> JSONResponse:
    """Highlights of one meeting. Body JSON: meetingId (required)."""
    try:
        meeting_id = _require_meeting_id(body)
        source = get_di_container().get_meeting_source()
        return _success(source.get_highlights(meeting_id))
    except Exception as e:
        return _failure(e, "get_highlights_error")


# ======================================================================
# Composite batch endpoint
# ======================================================================

@app.post(APIEndpoints.MEETINGS_PROCESS)
@limiter.limit(settings.process_rate_limit)
def process_meetings(request: Request, body: Dict[str, Any] = Body(default_factory=dict)) -> JSONResponse:
    """Fetch meetings, attach transcripts and match them to accounts.

    Body JSON:
        startDate, endDate (str, optional): ISO date window.
        clientes | accounts (list, optional): ``{clickup_task_id, nome, email}``.
        includeTranscripts (bool, default true)
        limit (int, default 100)
    """
    try:
        date_range = _parse_date_range(body)
        accounts = _parse_accounts(body.get("clientes", body.get("accounts")))
        include_transcripts = InputValidator.validate_bool(
            body.get("includeTranscripts", True), "includeTranscripts"
        )
        limit = InputValidator.validate_positive_int(
            body.get("limit", settings.batch_default_limit), "limit"
        )

        logger.info(
            "process_requested",
            start_date=date_range.start_date,
            end_date=date_range.end_date,
            accounts=None if accounts is None else len(accounts),
        )

        service = get_di_container().get_processing_service()
        report = service.process(
            date_range=date_range,
            accounts=accounts,
            include_transcripts=include_transcripts,
            limit=limit,
        )

        return _success(
            [m.model_dump(mode="json", by_alias=True) for m in report.items],
            total=report.count,
            skipped=[{"meeting_id": s.meeting_id, "reason": s.reason} for s in report.skipped],
        )

    except Exception as e:
        return _failure(e, "process_meetings_error")


if __name__ == "__main__":
    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_level="info"
    )
