"""
FastAPI endpoint tests for the Mock Interview API.

Tests all endpoints using httpx AsyncClient with proper lifespan
management via asgi-lifespan.

Last Grunted: 10/19/2026
"""

from __future__ import annotations

from typing import AsyncIterator

import pytest
import pytest_asyncio
from asgi_lifespan import LifespanManager
from httpx import ASGITransport, AsyncClient

from mock_interview_api import DEMO_TOKEN, InterviewStore, app
from tests.mock_data import generate_interview_definition, generate_interview_payload


CLIP = b"\x1a\x45\xdf\xa3" + b"\x00" * 64


def clip_files(question_id: int, data: bytes = CLIP) -> dict[str, tuple[str, bytes, str]]:
    return {"file": (f"question_{question_id}.webm", data, "video/webm")}


# =============================================================================
# Fixtures
# =============================================================================


@pytest_asyncio.fixture
async def client() -> AsyncIterator[AsyncClient]:
    """
    Create async test client with proper lifespan management.

    Each test gets a fresh store seeded with the demo interview.
    """
    async with LifespanManager(app) as manager:
        transport = ASGITransport(app=manager.app)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac


@pytest.fixture
def store(client: AsyncClient) -> InterviewStore:
    return app.state.store


# =============================================================================
# Health / Stats
# =============================================================================


class TestHealthEndpoint:
    """Tests for /health endpoint."""

    @pytest.mark.asyncio
    async def test_health_returns_healthy(self, client: AsyncClient) -> None:
        response = await client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["service"] == "Mock Interview API"
        assert data["version"] == "1.0.0"
        assert data["interviews"] == 1
        assert "timestamp" in data


class TestStatsEndpoint:
    """Tests for /stats endpoint."""

    @pytest.mark.asyncio
    async def test_stats_start_at_zero(self, client: AsyncClient) -> None:
        response = await client.get("/stats")

        assert response.status_code == 200
        assert response.json()["stats"] == {
            "lookups": 0,
            "uploads_accepted": 0,
            "uploads_rejected": 0,
            "completions": 0,
        }

    @pytest.mark.asyncio
    async def test_stats_count_requests(self, client: AsyncClient) -> None:
        await client.get(f"/api/candidates/interview/{DEMO_TOKEN}")
        await client.post(f"/api/videos/upload/{DEMO_TOKEN}/101", files=clip_files(101))
        await client.post(f"/api/videos/upload/{DEMO_TOKEN}/101", files=clip_files(101))

        stats = (await client.get("/stats")).json()["stats"]

        assert stats["lookups"] == 1
        assert stats["uploads_accepted"] == 1
        assert stats["uploads_rejected"] == 1


# =============================================================================
# Interview Lookup
# =============================================================================


class TestInterviewEndpoint:
    """Tests for GET /api/candidates/interview/{token}."""

    @pytest.mark.asyncio
    async def test_demo_interview_wire_format(self, client: AsyncClient) -> None:
        """The payload uses the wire field names."""
        response = await client.get(f"/api/candidates/interview/{DEMO_TOKEN}")

        assert response.status_code == 200
        data = response.json()
        assert set(data) == {"name", "job_title", "company", "questions"}
        assert [q["id"] for q in data["questions"]] == [101, 102, 103]
        assert [q["time_limit"] for q in data["questions"]] == [120, 180, 60]
        assert all("question" in q for q in data["questions"])

    @pytest.mark.asyncio
    async def test_unknown_token_returns_404(self, client: AsyncClient) -> None:
        response = await client.get("/api/candidates/interview/nope")

        assert response.status_code == 404
        data = response.json()
        assert data["ok"] is False
        assert data["error_code"] == "INTERVIEW_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_expired_token_returns_404(
        self, client: AsyncClient, store: InterviewStore
    ) -> None:
        store.add("old-link", generate_interview_definition(), expired=True)

        response = await client.get("/api/candidates/interview/old-link")

        assert response.status_code == 404
        assert response.json()["error_code"] == "INTERVIEW_EXPIRED"


# =============================================================================
# Uploads
# =============================================================================


class TestUploadEndpoint:
    """Tests for POST /api/videos/upload/{token}/{question_id}."""

    @pytest.mark.asyncio
    async def test_upload_stores_clip(self, client: AsyncClient, store: InterviewStore) -> None:
        response = await client.post(
            f"/api/videos/upload/{DEMO_TOKEN}/102",
            files=clip_files(102),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is True
        assert data["question_id"] == 102
        assert data["filename"] == "question_102.webm"
        assert data["size_bytes"] == len(CLIP)

        stored = store.get(DEMO_TOKEN).clips[102]
        assert stored.data == CLIP
        assert stored.content_type == "video/webm"

    @pytest.mark.asyncio
    async def test_duplicate_upload_is_rejected(self, client: AsyncClient) -> None:
        url = f"/api/videos/upload/{DEMO_TOKEN}/101"
        await client.post(url, files=clip_files(101))

        response = await client.post(url, files=clip_files(101))

        assert response.status_code == 409
        assert response.json()["error_code"] == "DUPLICATE_UPLOAD"

    @pytest.mark.asyncio
    async def test_unknown_question_is_rejected(self, client: AsyncClient) -> None:
        response = await client.post(
            f"/api/videos/upload/{DEMO_TOKEN}/999",
            files=clip_files(999),
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "UNKNOWN_QUESTION"

    @pytest.mark.asyncio
    async def test_missing_file_field_is_rejected(self, client: AsyncClient) -> None:
        response = await client.post(
            f"/api/videos/upload/{DEMO_TOKEN}/101",
            files={"video": ("question_101.webm", CLIP, "video/webm")},
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_injected_storage_failure(
        self, client: AsyncClient, store: InterviewStore
    ) -> None:
        store.get(DEMO_TOKEN).fail_uploads.add(103)

        response = await client.post(
            f"/api/videos/upload/{DEMO_TOKEN}/103",
            files=clip_files(103),
        )

        assert response.status_code == 503
        assert response.json()["error_code"] == "STORAGE_UNAVAILABLE"


# =============================================================================
# Completion
# =============================================================================


class TestCompleteEndpoint:
    """Tests for POST /api/videos/complete/{token}."""

    @pytest.mark.asyncio
    async def test_complete_reports_clip_counts(self, client: AsyncClient) -> None:
        await client.post(f"/api/videos/upload/{DEMO_TOKEN}/101", files=clip_files(101))

        response = await client.post(f"/api/videos/complete/{DEMO_TOKEN}")

        assert response.status_code == 200
        data = response.json()
        assert data["uploaded"] == 1
        assert data["total"] == 3

    @pytest.mark.asyncio
    async def test_completed_token_stops_resolving(self, client: AsyncClient) -> None:
        await client.post(f"/api/videos/complete/{DEMO_TOKEN}")

        response = await client.get(f"/api/candidates/interview/{DEMO_TOKEN}")

        assert response.status_code == 404
        assert response.json()["error_code"] == "INTERVIEW_COMPLETED"

    @pytest.mark.asyncio
    async def test_injected_completion_failure(
        self, client: AsyncClient, store: InterviewStore
    ) -> None:
        store.get(DEMO_TOKEN).fail_completion = True

        response = await client.post(f"/api/videos/complete/{DEMO_TOKEN}")

        assert response.status_code == 503
        assert store.get(DEMO_TOKEN).completed is False


# =============================================================================
# Interview Creation
# =============================================================================


class TestCreateInterviewEndpoint:
    """Tests for POST /api/interviews."""

    @pytest.mark.asyncio
    async def test_created_interview_resolves(self, client: AsyncClient) -> None:
        payload = generate_interview_payload((30, 45), candidate_name="Jordan Lee")

        response = await client.post("/api/interviews", json=payload)

        assert response.status_code == 200
        token = response.json()["token"]
        lookup = await client.get(f"/api/candidates/interview/{token}")
        assert lookup.status_code == 200
        assert lookup.json()["name"] == "Jordan Lee"

    @pytest.mark.asyncio
    async def test_invalid_definition_is_rejected(self, client: AsyncClient) -> None:
        payload = generate_interview_payload(())

        response = await client.post("/api/interviews", json=payload)

        assert response.status_code == 422
