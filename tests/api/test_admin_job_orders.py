"""
Tests for admin job order management and its audit trail.
"""
import pytest
from httpx import AsyncClient
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.schema import schema_registry
from app.models.job_order import JobOrder


def new_job_payload(**overrides) -> dict:
    payload = {
        "job_number": "JOB-2026-0900",
        "title": "Core Drilling - Peachtree Tower",
        "customer_name": "Peachtree Builders",
        "job_type": "Core Drilling",
        "location": "Atlanta",
        "address": "100 Peachtree St NW",
        "scheduled_date": "2026-11-02",
        "equipment_needed": ["Core drill", "Vacuum"],
    }
    payload.update(overrides)
    return payload


class TestAdminList:
    @pytest.mark.asyncio
    async def test_summary_counts(self, client: AsyncClient, admin_headers: dict, job: JobOrder):
        response = await client.get("/api/admin/job-orders", headers=admin_headers)

        assert response.status_code == 200
        summary = response.json()["data"]["summary"]
        assert summary["totalJobs"] == 1
        assert summary["statusCounts"] == {"assigned": 1}

    @pytest.mark.asyncio
    async def test_operator_forbidden(self, client: AsyncClient, operator_headers: dict):
        response = await client.get("/api/admin/job-orders", headers=operator_headers)
        assert response.status_code == 403
        assert response.json()["error"] == "Only administrators can view all job orders"


class TestCreate:
    @pytest.mark.asyncio
    async def test_missing_fields_named(self, client: AsyncClient, admin_headers: dict):
        response = await client.post(
            "/api/admin/job-orders",
            json={"job_number": "JOB-1", "title": ""},
            headers=admin_headers,
        )

        assert response.status_code == 400
        assert response.json()["error"] == (
            "Missing required fields: title, customer_name, job_type, location, address"
        )

    @pytest.mark.asyncio
    async def test_create_assigned_job(self, client: AsyncClient, admin_headers: dict, operator_user):
        response = await client.post(
            "/api/admin/job-orders",
            json=new_job_payload(assigned_to=operator_user.id),
            headers=admin_headers,
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["status"] == "assigned"
        assert data["assigned_at"] is not None
        assert data["priority"] == "medium"
        assert data["equipment_needed"] == ["Core drill", "Vacuum"]

    @pytest.mark.asyncio
    async def test_unassigned_job_is_scheduled(self, client: AsyncClient, admin_headers: dict):
        response = await client.post("/api/admin/job-orders", json=new_job_payload(), headers=admin_headers)
        assert response.json()["data"]["status"] == "scheduled"

    @pytest.mark.asyncio
    async def test_shop_arrival_from_drive_time(self, client: AsyncClient, admin_headers: dict):
        response = await client.post(
            "/api/admin/job-orders",
            json=new_job_payload(arrival_time="8:00 AM", drive_time_hours=4),
            headers=admin_headers,
        )
        assert response.json()["data"]["shop_arrival_time"] == "04:00"

    @pytest.mark.asyncio
    async def test_explicit_shop_arrival_wins(self, client: AsyncClient, admin_headers: dict):
        response = await client.post(
            "/api/admin/job-orders",
            json=new_job_payload(arrival_time="08:00", drive_time_hours=4, shop_arrival_time="05:15"),
            headers=admin_headers,
        )
        assert response.json()["data"]["shop_arrival_time"] == "05:15"

    @pytest.mark.asyncio
    async def test_bad_arrival_time(self, client: AsyncClient, admin_headers: dict):
        response = await client.post(
            "/api/admin/job-orders",
            json=new_job_payload(arrival_time="sunrise", drive_time_hours=1),
            headers=admin_headers,
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_creation_is_audited(self, client: AsyncClient, admin_headers: dict):
        created = await client.post("/api/admin/job-orders", json=new_job_payload(), headers=admin_headers)
        job_id = created.json()["data"]["id"]

        history = await client.get(f"/api/job-orders/{job_id}/history", headers=admin_headers)
        entries = history.json()["history"]
        assert [e["changeType"] for e in entries] == ["created"]
        assert entries[0]["changedBy"] == "Avery Admin"
        assert entries[0]["role"] == "admin"


class TestUpdate:
    @pytest.mark.asyncio
    async def test_update_records_diff(self, client: AsyncClient, admin_headers: dict, job: JobOrder):
        old_location = job.location
        response = await client.patch(
            f"/api/admin/job-orders/{job.id}",
            json={"location": "Marietta", "foreman_name": job.foreman_name},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["data"]["location"] == "Marietta"

        history = await client.get(f"/api/job-orders/{job.id}/history", headers=admin_headers)
        entries = history.json()["history"]
        assert len(entries) == 1
        assert entries[0]["changeType"] == "updated"
        assert entries[0]["changes"] == {"location": {"old": old_location, "new": "Marietta"}}
        assert entries[0]["changeSummary"] == [f'Location: "{old_location}" → "Marietta"']

    @pytest.mark.asyncio
    async def test_unchanged_values_write_no_history(self, client: AsyncClient, admin_headers: dict, job: JobOrder):
        await client.patch(
            f"/api/admin/job-orders/{job.id}",
            json={"equipment_needed": list(job.equipment_needed)},
            headers=admin_headers,
        )

        history = await client.get(f"/api/job-orders/{job.id}/history", headers=admin_headers)
        assert history.json()["historyCount"] == 0

    @pytest.mark.asyncio
    async def test_invalid_status(self, client: AsyncClient, admin_headers: dict, job: JobOrder):
        response = await client.patch(
            f"/api/admin/job-orders/{job.id}", json={"status": "paused"}, headers=admin_headers
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_null_for_required_column_rejected(
        self, client: AsyncClient, test_db: AsyncSession, admin_headers: dict, job: JobOrder
    ):
        customer = job.customer_name
        response = await client.patch(
            f"/api/admin/job-orders/{job.id}",
            json={"customer_name": None, "address": None, "foreman_name": None},
            headers=admin_headers,
        )

        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "VAL_003"
        assert body["error"] == "Cannot clear required fields: address, customer_name"

        await test_db.refresh(job)
        assert job.customer_name == customer

    @pytest.mark.asyncio
    async def test_null_for_optional_column_clears_it(self, client: AsyncClient, admin_headers: dict, job: JobOrder):
        response = await client.patch(
            f"/api/admin/job-orders/{job.id}", json={"foreman_name": None}, headers=admin_headers
        )
        assert response.status_code == 200
        assert response.json()["data"]["foreman_name"] is None

    @pytest.mark.asyncio
    async def test_unknown_job(self, client: AsyncClient, admin_headers: dict):
        response = await client.patch("/api/admin/job-orders/nope", json={"location": "X"}, headers=admin_headers)
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_missing_history_table_does_not_block_edit(
        self, client: AsyncClient, test_db: AsyncSession, admin_headers: dict, job: JobOrder
    ):
        await test_db.execute(text("DROP TABLE job_orders_history"))
        await test_db.commit()
        schema_registry.reset()

        response = await client.patch(
            f"/api/admin/job-orders/{job.id}", json={"location": "Roswell"}, headers=admin_headers
        )
        assert response.status_code == 200
        assert response.json()["data"]["location"] == "Roswell"

        history = await client.get(f"/api/job-orders/{job.id}/history", headers=admin_headers)
        assert history.json()["history"] == []


class TestDelete:
    @pytest.mark.asyncio
    async def test_history_survives_delete(self, client: AsyncClient, admin_headers: dict, operator_headers: dict):
        created = await client.post("/api/admin/job-orders", json=new_job_payload(), headers=admin_headers)
        job_id = created.json()["data"]["id"]

        response = await client.delete(f"/api/admin/job-orders/{job_id}", headers=admin_headers)
        assert response.status_code == 200

        listing = await client.get("/api/admin/job-orders", headers=admin_headers)
        assert listing.json()["data"]["summary"]["totalJobs"] == 0

        history = await client.get(f"/api/job-orders/{job_id}/history", headers=admin_headers)
        entries = history.json()["history"]
        assert sorted(e["changeType"] for e in entries) == ["created", "deleted"]

        # Operators lose access once the job is gone
        forbidden = await client.get(f"/api/job-orders/{job_id}/history", headers=operator_headers)
        assert forbidden.status_code == 403

    @pytest.mark.asyncio
    async def test_operator_cannot_delete(self, client: AsyncClient, operator_headers: dict, job: JobOrder):
        response = await client.delete(f"/api/admin/job-orders/{job.id}", headers=operator_headers)
        assert response.status_code == 403
