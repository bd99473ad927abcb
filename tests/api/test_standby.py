"""
Tests for standby logging and billing.
"""
import pytest
from httpx import AsyncClient

from app.models.job_order import JobOrder


class TestStandby:
    @pytest.mark.asyncio
    async def test_start_and_close(self, client: AsyncClient, operator_headers: dict, job: JobOrder):
        started = await client.post(
            "/api/standby",
            json={"jobId": job.id, "reason": "Waiting on GC", "startedAt": "2026-10-19T08:00:00Z"},
            headers=operator_headers,
        )
        assert started.status_code == 201
        log = started.json()["data"]
        assert log["status"] == "active"

        closed = await client.put(
            "/api/standby",
            json={"standbyLogId": log["id"], "endedAt": "2026-10-19T10:30:00Z"},
            headers=operator_headers,
        )

        assert closed.status_code == 200
        data = closed.json()["data"]
        assert data["status"] == "completed"
        assert data["duration_hours"] == 2.5
        assert data["billable_hours"] == 2.5
        assert data["hourly_rate"] == 189.0
        assert data["billable_amount"] == 472.5
        assert data["policy_version"] == "v1.0"

    @pytest.mark.asyncio
    async def test_short_standby_billed_at_minimum(self, client: AsyncClient, operator_headers: dict, job: JobOrder):
        started = await client.post(
            "/api/standby",
            json={"jobId": job.id, "reason": "Power outage", "startedAt": "2026-10-19T08:00:00Z"},
            headers=operator_headers,
        )
        closed = await client.put(
            "/api/standby",
            json={"standbyLogId": started.json()["data"]["id"], "endedAt": "2026-10-19T08:15:00Z"},
            headers=operator_headers,
        )

        data = closed.json()["data"]
        assert data["duration_hours"] == 0.25
        assert data["billable_amount"] == 189.0

    @pytest.mark.asyncio
    async def test_missing_fields(self, client: AsyncClient, operator_headers: dict):
        response = await client.post("/api/standby", json={"reason": "x"}, headers=operator_headers)
        assert response.status_code == 400
        assert response.json()["error"] == "Missing required fields: jobId and reason"

    @pytest.mark.asyncio
    async def test_close_twice(self, client: AsyncClient, operator_headers: dict, job: JobOrder):
        started = await client.post(
            "/api/standby", json={"jobId": job.id, "reason": "Rain"}, headers=operator_headers
        )
        log_id = started.json()["data"]["id"]
        await client.put("/api/standby", json={"standbyLogId": log_id}, headers=operator_headers)

        again = await client.put("/api/standby", json={"standbyLogId": log_id}, headers=operator_headers)
        assert again.status_code == 400

    @pytest.mark.asyncio
    async def test_cannot_close_someone_elses_log(
        self, client: AsyncClient, operator_headers: dict, other_headers: dict, job: JobOrder
    ):
        started = await client.post(
            "/api/standby", json={"jobId": job.id, "reason": "Rain"}, headers=operator_headers
        )
        response = await client.put(
            "/api/standby", json={"standbyLogId": started.json()["data"]["id"]}, headers=other_headers
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_list_filters_by_job(self, client: AsyncClient, operator_headers: dict, job: JobOrder):
        await client.post("/api/standby", json={"jobId": job.id, "reason": "Rain"}, headers=operator_headers)
        await client.post("/api/standby", json={"jobId": "other-job", "reason": "Rain"}, headers=operator_headers)

        response = await client.get(f"/api/standby?jobId={job.id}", headers=operator_headers)
        assert [log["job_order_id"] for log in response.json()["data"]] == [job.id]
