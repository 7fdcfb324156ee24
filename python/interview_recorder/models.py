"""
Pydantic models for the Async Interview Recorder.

Defines the interview definition fetched by token, the session stages,
and the upload bookkeeping shown to the candidate at the end of a session.

Wire names follow the interview API (`name`, `company`, `question`,
`time_limit`); Python code uses the descriptive field names. Both are
accepted on input, and `model_dump(by_alias=True)` produces the wire form.

Last Grunted: 10/19/2026
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class SessionStage(str, Enum):
    """
    Stages of one candidate's visit to an interview link.

    Stages:
        - LOADING: Interview definition not fetched yet
        - WELCOME: Intro shown, waiting for the candidate to proceed
        - CAMERA_SETUP: Camera and microphone being acquired
        - RECORDING: Answering the current question
        - UPLOADING: Current clip being sent to the API
        - COMPLETE: All questions answered (terminal)
        - ERROR: Fatal error shown to the candidate (terminal)
    """

    LOADING = "loading"
    WELCOME = "welcome"
    CAMERA_SETUP = "camera_setup"
    RECORDING = "recording"
    UPLOADING = "uploading"
    COMPLETE = "complete"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionStage.COMPLETE, SessionStage.ERROR)


class Question(BaseModel):
    """
    One interview question.

    Example:
        >>> q = Question.model_validate(
        ...     {"id": 7, "question": "Tell us about yourself.", "time_limit": 120}
        ... )
        >>> q.time_limit_seconds
        120
    """

    id: int = Field(..., description="Question id, unique within the interview")
    prompt: str = Field(
        ...,
        min_length=1,
        alias="question",
        description="Question text shown to the candidate",
    )
    time_limit_seconds: int = Field(
        ...,
        gt=0,
        alias="time_limit",
        description="Maximum answer length in seconds",
    )

    model_config = {"populate_by_name": True, "frozen": True}


class InterviewDefinition(BaseModel):
    """
    Interview resolved from a candidate's token.

    Immutable once fetched. Question order defines the recording sequence.
    """

    candidate_name: str = Field(..., alias="name", description="Candidate display name")
    job_title: str = Field(..., description="Title of the job being interviewed for")
    company_name: str = Field(..., alias="company", description="Hiring company")
    questions: tuple[Question, ...] = Field(
        ...,
        min_length=1,
        description="Ordered questions to answer",
    )

    model_config = {"populate_by_name": True, "frozen": True}

    @model_validator(mode="after")
    def validate_unique_question_ids(self) -> "InterviewDefinition":
        ids = [question.id for question in self.questions]
        if len(ids) != len(set(ids)):
            raise ValueError("questions must have unique ids")
        return self

    @property
    def question_count(self) -> int:
        return len(self.questions)


class UploadAttempt(BaseModel):
    """Outcome of one attempt to upload a question's clip."""

    question_id: int = Field(..., description="Question the clip answers")
    attempt: int = Field(default=1, ge=1, description="1-based attempt number")
    ok: bool = Field(..., description="Whether the API accepted the clip")
    size_bytes: int = Field(..., ge=0, description="Clip size in bytes")
    detail: Optional[str] = Field(default=None, description="Failure detail, if any")
    timestamp_utc: str = Field(default_factory=_utc_now, description="When the attempt finished")


class SessionSummary(BaseModel):
    """
    Summary displayed when a session reaches the complete stage.

    `completion_acknowledged` reflects the server's answer to the completion
    signal; the candidate sees the complete stage either way.
    """

    token: str
    stage: SessionStage
    candidate_name: Optional[str] = None
    job_title: Optional[str] = None
    company_name: Optional[str] = None
    questions_total: int = 0
    questions_answered: int = 0
    uploads: list[UploadAttempt] = Field(default_factory=list)
    completion_acknowledged: Optional[bool] = None
    started_at: str = Field(default_factory=_utc_now)
    ended_at: Optional[str] = None

    @property
    def failed_uploads(self) -> list[int]:
        """Question ids whose final upload attempt failed."""
        final: dict[int, bool] = {}
        for upload in self.uploads:
            final[upload.question_id] = upload.ok
        return [question_id for question_id, ok in final.items() if not ok]
