"""
Tests for self-service access requests and admin review.
"""
from datetime import date

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import verify_password
from app.models.profile import Profile


def application(**overrides) -> dict:
    payload = {
        "fullName": "Rita Rivera",
        "email": "Rita.Rivera@example.com",
        "password": "cutcrete",
        "dateOfBirth": "1990-04-12",
        "position": "Wall saw operator",
    }
    payload.update(overrides)
    return payload


async def submit(client: AsyncClient, **overrides) -> str:
    response = await client.post("/api/access-requests", json=application(**overrides))
    assert response.status_code == 201
    return response.json()["data"]["id"]


class TestSubmit:
    @pytest.mark.asyncio
    async def test_submit_is_public(self, client: AsyncClient, test_db: AsyncSession):
        response = await client.post("/api/access-requests", json=application())

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Access request submitted successfully"
        assert body["data"]["email"] == "rita.rivera@example.com"
        assert body["data"]["status"] == "pending"

    @pytest.mark.asyncio
    async def test_missing_fields(self, client: AsyncClient, test_db: AsyncSession):
        response = await client.post("/api/access-requests", json=application(password=""))
        assert response.status_code == 400
        assert response.json()["error"] == "Missing required fields"

    @pytest.mark.asyncio
    async def test_invalid_email(self, client: AsyncClient, test_db: AsyncSession):
        response = await client.post("/api/access-requests", json=application(email="rita.example.com"))
        assert response.json()["error"] == "Invalid email format"

    @pytest.mark.asyncio
    async def test_short_password(self, client: AsyncClient, test_db: AsyncSession):
        response = await client.post("/api/access-requests", json=application(password="abc"))
        assert response.status_code == 400
        assert response.json()["error"] == "Password must be at least 6 characters"

    @pytest.mark.asyncio
    async def test_underage(self, client: AsyncClient, test_db: AsyncSession):
        # Turns 17 on 1 January this year
        birth_date = date(date.today().year - 17, 1, 1)
        response = await client.post("/api/access-requests", json=application(dateOfBirth=birth_date.isoformat()))
        assert response.status_code == 400
        assert response.json()["code"] == "BIZ_001"
        assert response.json()["error"] == "You must be at least 18 years old"

    @pytest.mark.asyncio
    async def test_duplicate_pending(self, client: AsyncClient, test_db: AsyncSession):
        await submit(client)
        response = await client.post("/api/access-requests", json=application(email="rita.rivera@EXAMPLE.com"))
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_existing_account(self, client: AsyncClient, operator_user):
        response = await client.post("/api/access-requests", json=application(email=operator_user.email))
        assert response.status_code == 409


class TestReview:
    @pytest.mark.asyncio
    async def test_list_requires_admin(self, client: AsyncClient, operator_headers: dict):
        response = await client.get("/api/access-requests", headers=operator_headers)
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_list_hides_password_hash(self, client: AsyncClient, admin_headers: dict):
        await submit(client)
        response = await client.get("/api/access-requests?status=pending", headers=admin_headers)

        requests = response.json()["data"]
        assert len(requests) == 1
        assert "passwordHash" not in requests[0]
        assert "password_hash" not in requests[0]

    @pytest.mark.asyncio
    async def test_approve_creates_profile(
        self, client: AsyncClient, test_db: AsyncSession, admin_headers: dict
    ):
        request_id = await submit(client)

        response = await client.post(
            f"/api/access-requests/{request_id}/approve", json={"role": "operator"}, headers=admin_headers
        )

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Access approved! User Rita Rivera has been created as operator."

        result = await test_db.execute(select(Profile).where(Profile.email == "rita.rivera@example.com"))
        profile = result.scalar_one()
        assert profile.id == body["data"]["userId"]
        assert profile.role == "operator"
        assert verify_password("cutcrete", profile.hashed_password)

    @pytest.mark.asyncio
    async def test_second_approval_rejected(self, client: AsyncClient, admin_headers: dict):
        request_id = await submit(client)
        await client.post(f"/api/access-requests/{request_id}/approve", json={"role": "admin"}, headers=admin_headers)

        again = await client.post(
            f"/api/access-requests/{request_id}/approve", json={"role": "admin"}, headers=admin_headers
        )
        assert again.status_code == 400
        assert again.json()["error"] == "This request has already been approved"

    @pytest.mark.asyncio
    async def test_invalid_role(self, client: AsyncClient, admin_headers: dict):
        request_id = await submit(client)
        response = await client.post(
            f"/api/access-requests/{request_id}/approve", json={"role": "owner"}, headers=admin_headers
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_deny(self, client: AsyncClient, admin_headers: dict, admin_user):
        request_id = await submit(client)
        response = await client.post(
            f"/api/access-requests/{request_id}/deny",
            json={"reason": "Not on the hiring list"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["status"] == "denied"
        assert data["denialReason"] == "Not on the hiring list"
        assert data["reviewedBy"] == admin_user.id

    @pytest.mark.asyncio
    async def test_unknown_request(self, client: AsyncClient, admin_headers: dict):
        response = await client.post("/api/access-requests/nope/deny", headers=admin_headers)
        assert response.status_code == 404
