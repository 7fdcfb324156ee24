"""
Mock Interview API

In-memory stand-in for the external interview API, for local development,
the simulator, and tests.

Endpoints:
    GET  /api/candidates/interview/{token}         - Resolve interview by token
    POST /api/videos/upload/{token}/{question_id}  - Upload one clip (multipart "file")
    POST /api/videos/complete/{token}              - Mark interview complete
    POST /api/interviews                           - Create an interview, returns token
    GET  /health                                   - Health check
    GET  /stats                                    - Statistics

Binding: configured by MOCK_API_HOST/MOCK_API_PORT (default 127.0.0.1:8000)
"""

from __future__ import annotations

import logging
import os
import secrets
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Annotated, Any, AsyncIterator

import uvicorn
from dotenv import load_dotenv
from fastapi import Depends, FastAPI, File, Request, UploadFile, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from interview_recorder.models import InterviewDefinition, Question

# =============================================================================
# Logging Configuration
# =============================================================================

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# =============================================================================
# Configuration
# =============================================================================

SERVICE_NAME = "Mock Interview API"
SERVICE_VERSION = "1.0.0"

DEMO_TOKEN = "demo-interview"

DEMO_INTERVIEW = InterviewDefinition(
    candidate_name="Sarah Chen",
    job_title="Senior Backend Engineer",
    company_name="Talestral",
    questions=(
        Question(id=101, prompt="Tell us about yourself and your Python background.", time_limit_seconds=120),
        Question(id=102, prompt="Walk us through a system you designed end to end.", time_limit_seconds=180),
        Question(id=103, prompt="Why do you want to join our team?", time_limit_seconds=60),
    ),
)

CORS_ORIGINS: list[str] = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]


# =============================================================================
# Request / Response Models
# =============================================================================


class ErrorResponse(BaseModel):
    """Standard error response."""

    ok: bool = Field(default=False)
    error: str = Field(..., description="Error description")
    error_code: str | None = Field(default=None, description="Machine-readable error code")


class UploadResponse(BaseModel):
    """Response for an accepted clip."""

    ok: bool = True
    token: str
    question_id: int
    filename: str | None = None
    content_type: str | None = None
    size_bytes: int


class CompleteResponse(BaseModel):
    """Response for the completion signal."""

    ok: bool = True
    token: str
    uploaded: int = Field(..., description="Questions with an uploaded clip")
    total: int = Field(..., description="Questions in the interview")


class CreateInterviewResponse(BaseModel):
    ok: bool = True
    token: str


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str
    timestamp: str
    interviews: int


class StatsResponse(BaseModel):
    stats: dict[str, Any]


# =============================================================================
# In-memory Store
# =============================================================================


def _now_utc() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass
class StoredClip:
    filename: str | None
    content_type: str | None
    data: bytes
    received_at: str = field(default_factory=_now_utc)


@dataclass
class StoredInterview:
    """One interview link and everything uploaded against it."""

    definition: InterviewDefinition
    expired: bool = False
    completed: bool = False
    clips: dict[int, StoredClip] = field(default_factory=dict)
    fail_uploads: set[int] = field(default_factory=set)
    fail_completion: bool = False


class InterviewStore:
    """Token -> interview mapping plus request counters."""

    def __init__(self) -> None:
        self.interviews: dict[str, StoredInterview] = {}
        self.stats: dict[str, int] = {
            "lookups": 0,
            "uploads_accepted": 0,
            "uploads_rejected": 0,
            "completions": 0,
        }

    def add(self, token: str, definition: InterviewDefinition, **options: Any) -> StoredInterview:
        stored = StoredInterview(definition=definition, **options)
        self.interviews[token] = stored
        return stored

    def create(self, definition: InterviewDefinition) -> str:
        token = secrets.token_urlsafe(16)
        self.add(token, definition)
        return token

    def get(self, token: str) -> StoredInterview | None:
        return self.interviews.get(token)

    def reset(self) -> None:
        self.interviews.clear()
        for key in self.stats:
            self.stats[key] = 0
        self.add(DEMO_TOKEN, DEMO_INTERVIEW)


# =============================================================================
# Custom Exceptions
# =============================================================================


class MockApiError(Exception):
    """Base exception for mock API errors."""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_code: str | None = None,
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        super().__init__(message)


class InterviewNotFoundError(MockApiError):
    """Raised for unknown, expired or already completed tokens."""

    def __init__(self, error_code: str = "INTERVIEW_NOT_FOUND") -> None:
        super().__init__(
            message="Interview not found",
            status_code=status.HTTP_404_NOT_FOUND,
            error_code=error_code,
        )


async def mock_api_error_handler(request: Request, exc: MockApiError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            ok=False,
            error=exc.message,
            error_code=exc.error_code,
        ).model_dump(),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled exception: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(
            ok=False,
            error="Internal server error",
            error_code="INTERNAL_ERROR",
        ).model_dump(),
    )


# =============================================================================
# Dependencies
# =============================================================================


def get_store(request: Request) -> InterviewStore:
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise RuntimeError("Interview store not initialized")
    return store


StoreDep = Annotated[InterviewStore, Depends(get_store)]


def _require_open_interview(store: InterviewStore, token: str) -> StoredInterview:
    stored = store.get(token)
    if stored is None:
        raise InterviewNotFoundError()
    if stored.expired:
        raise InterviewNotFoundError("INTERVIEW_EXPIRED")
    if stored.completed:
        raise InterviewNotFoundError("INTERVIEW_COMPLETED")
    return stored


# =============================================================================
# FastAPI App Lifespan
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    logger.info("Starting %s", SERVICE_NAME)
    store = InterviewStore()
    store.reset()
    app.state.store = store
    logger.info("Demo interview available at token '%s'", DEMO_TOKEN)

    yield

    logger.info("Shutting down...")
    app.state.store = None


app = FastAPI(
    title=SERVICE_NAME,
    version=SERVICE_VERSION,
    description="In-memory interview API for local development and tests",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
    max_age=3600,
)

app.add_exception_handler(MockApiError, mock_api_error_handler)
app.add_exception_handler(Exception, generic_exception_handler)


# =============================================================================
# Endpoints
# =============================================================================


@app.get("/api/candidates/interview/{token}")
async def get_interview(token: str, store: StoreDep) -> dict[str, Any]:
    """Resolve a candidate's interview token to the wire payload."""
    store.stats["lookups"] += 1
    stored = _require_open_interview(store, token)
    return stored.definition.model_dump(by_alias=True, mode="json")


@app.post("/api/videos/upload/{token}/{question_id}", response_model=UploadResponse)
async def upload_video(
    token: str,
    question_id: int,
    store: StoreDep,
    file: UploadFile = File(...),
) -> UploadResponse:
    """Accept one clip per (token, question)."""
    stored = _require_open_interview(store, token)

    question_ids = {question.id for question in stored.definition.questions}
    if question_id not in question_ids:
        store.stats["uploads_rejected"] += 1
        raise MockApiError(
            message=f"Question {question_id} is not part of this interview",
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code="UNKNOWN_QUESTION",
        )

    if question_id in stored.clips:
        store.stats["uploads_rejected"] += 1
        raise MockApiError(
            message=f"Question {question_id} already has a clip",
            status_code=status.HTTP_409_CONFLICT,
            error_code="DUPLICATE_UPLOAD",
        )

    if question_id in stored.fail_uploads:
        store.stats["uploads_rejected"] += 1
        raise MockApiError(
            message="Storage backend unavailable",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            error_code="STORAGE_UNAVAILABLE",
        )

    data = await file.read()
    stored.clips[question_id] = StoredClip(
        filename=file.filename,
        content_type=file.content_type,
        data=data,
    )
    store.stats["uploads_accepted"] += 1
    logger.info("Stored clip for %s/%d (%d bytes)", token, question_id, len(data))

    return UploadResponse(
        token=token,
        question_id=question_id,
        filename=file.filename,
        content_type=file.content_type,
        size_bytes=len(data),
    )


@app.post("/api/videos/complete/{token}", response_model=CompleteResponse)
async def complete_interview(token: str, store: StoreDep) -> CompleteResponse:
    """Mark the interview finished; the token stops resolving afterwards."""
    stored = _require_open_interview(store, token)
    if stored.fail_completion:
        raise MockApiError(
            message="Could not finalize interview",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            error_code="COMPLETION_UNAVAILABLE",
        )

    stored.completed = True
    store.stats["completions"] += 1
    logger.info(
        "Interview %s completed (%d/%d clips)",
        token,
        len(stored.clips),
        stored.definition.question_count,
    )
    return CompleteResponse(
        token=token,
        uploaded=len(stored.clips),
        total=stored.definition.question_count,
    )


@app.post("/api/interviews", response_model=CreateInterviewResponse)
async def create_interview(definition: InterviewDefinition, store: StoreDep) -> CreateInterviewResponse:
    """Create an interview link (development helper)."""
    token = store.create(definition)
    logger.info("Created interview %s for %s", token, definition.candidate_name)
    return CreateInterviewResponse(token=token)


@app.get("/health", response_model=HealthResponse)
async def health(store: StoreDep) -> HealthResponse:
    return HealthResponse(
        status="healthy",
        service=SERVICE_NAME,
        version=SERVICE_VERSION,
        timestamp=_now_utc(),
        interviews=len(store.interviews),
    )


@app.get("/stats", response_model=StatsResponse)
async def get_stats(store: StoreDep) -> StatsResponse:
    return StatsResponse(stats=dict(store.stats))


# =============================================================================
# Main Entry Point
# =============================================================================

if __name__ == "__main__":
    load_dotenv()
    host = os.environ.get("MOCK_API_HOST", "127.0.0.1")
    port = int(os.environ.get("MOCK_API_PORT", "8000"))

    logger.info("=" * 60)
    logger.info("%s v%s", SERVICE_NAME, SERVICE_VERSION)
    logger.info("=" * 60)
    logger.info("Binding to: http://%s:%d", host, port)
    logger.info("Demo token: %s", DEMO_TOKEN)
    logger.info("=" * 60)

    uvicorn.run(app, host=host, port=port, log_level="info")
