"""
Tests for the geofenced time clock and admin approval.
"""
from datetime import date, datetime, timezone

import pytest
import pytest_asyncio
from httpx import AsyncClient
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.schema import schema_registry
from app.models.timecard import Timecard

AT_SHOP = {"latitude": 33.97121, "longitude": -84.18066, "accuracy": 5}
# ~111 m north of the shop
DOWN_THE_ROAD = {"latitude": 33.97221, "longitude": -84.18066}


class TestClockIn:
    @pytest.mark.asyncio
    async def test_clock_in_at_shop(self, client: AsyncClient, operator_headers: dict, operator_user):
        response = await client.post("/api/timecard/clock-in", json=AT_SHOP, headers=operator_headers)

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["userId"] == operator_user.id
        assert data["clockOutTime"] is None
        assert data["isApproved"] is False
        assert data["distanceFromShop"] == 0
        assert data["clockInLocation"]["accuracy"] == 5

    @pytest.mark.asyncio
    async def test_outside_geofence(self, client: AsyncClient, operator_headers: dict):
        response = await client.post("/api/timecard/clock-in", json=DOWN_THE_ROAD, headers=operator_headers)

        assert response.status_code == 403
        body = response.json()
        assert body["code"] == "AUTH_003"
        assert body["allowedRadius"] == 20
        assert body["distance"] == pytest.approx(111.2, abs=0.5)
        assert body["details"].startswith("You are 111m away.")

    @pytest.mark.asyncio
    async def test_location_required(self, client: AsyncClient, operator_headers: dict):
        response = await client.post("/api/timecard/clock-in", json={}, headers=operator_headers)
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_second_clock_in_rejected(self, client: AsyncClient, operator_headers: dict):
        first = await client.post("/api/timecard/clock-in", json=AT_SHOP, headers=operator_headers)
        second = await client.post("/api/timecard/clock-in", json=AT_SHOP, headers=operator_headers)

        assert second.status_code == 400
        body = second.json()
        assert body["error"] == "You are already clocked in"
        assert body["activeTimecard"]["id"] == first.json()["data"]["id"]

    @pytest.mark.asyncio
    async def test_missing_table(self, client: AsyncClient, test_db: AsyncSession, operator_headers: dict):
        await test_db.execute(text("DROP TABLE timecards"))
        await test_db.commit()
        schema_registry.reset()

        response = await client.post("/api/timecard/clock-in", json=AT_SHOP, headers=operator_headers)
        assert response.status_code == 503

        current = await client.get("/api/timecard/current", headers=operator_headers)
        assert current.json()["isClockedIn"] is False

        history = await client.get("/api/timecard/history", headers=operator_headers)
        assert history.json()["data"]["timecards"] == []


class TestClockOut:
    @pytest.mark.asyncio
    async def test_clock_out_closes_card(self, client: AsyncClient, operator_headers: dict):
        await client.post("/api/timecard/clock-in", json=AT_SHOP, headers=operator_headers)
        response = await client.post("/api/timecard/clock-out", json=AT_SHOP, headers=operator_headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["clockOutTime"] is not None
        assert data["totalHours"] == 0

        current = await client.get("/api/timecard/current", headers=operator_headers)
        assert current.json()["isClockedIn"] is False

    @pytest.mark.asyncio
    async def test_clock_out_without_clock_in(self, client: AsyncClient, operator_headers: dict):
        response = await client.post("/api/timecard/clock-out", json=AT_SHOP, headers=operator_headers)
        assert response.status_code == 400
        assert response.json()["error"] == "No active clock-in found"

    @pytest.mark.asyncio
    async def test_clock_out_outside_geofence(self, client: AsyncClient, operator_headers: dict):
        await client.post("/api/timecard/clock-in", json=AT_SHOP, headers=operator_headers)
        response = await client.post("/api/timecard/clock-out", json=DOWN_THE_ROAD, headers=operator_headers)
        assert response.status_code == 403


class TestCurrentAndHistory:
    @pytest.mark.asyncio
    async def test_current_when_clocked_in(self, client: AsyncClient, operator_headers: dict):
        card = await client.post("/api/timecard/clock-in", json=AT_SHOP, headers=operator_headers)
        response = await client.get("/api/timecard/current", headers=operator_headers)

        body = response.json()
        assert body["isClockedIn"] is True
        assert body["data"]["id"] == card.json()["data"]["id"]

    @pytest.mark.asyncio
    async def test_history_summary(self, client: AsyncClient, operator_headers: dict):
        await client.post("/api/timecard/clock-in", json=AT_SHOP, headers=operator_headers)
        await client.post("/api/timecard/clock-out", json=AT_SHOP, headers=operator_headers)
        await client.post("/api/timecard/clock-in", json=AT_SHOP, headers=operator_headers)

        response = await client.get("/api/timecard/history", headers=operator_headers)
        summary = response.json()["data"]["summary"]
        assert summary["totalEntries"] == 2
        assert summary["completedEntries"] == 1
        assert summary["activeEntry"] is not None


class TestAdminTimecards:
    @pytest.mark.asyncio
    async def test_list_and_approve(self, client: AsyncClient, admin_headers: dict, operator_headers: dict, admin_user):
        await client.post("/api/timecard/clock-in", json=AT_SHOP, headers=operator_headers)
        closed = await client.post("/api/timecard/clock-out", json=AT_SHOP, headers=operator_headers)
        card_id = closed.json()["data"]["id"]

        listing = await client.get("/api/admin/timecards?pending=true", headers=admin_headers)
        assert listing.status_code == 200
        assert listing.json()["data"]["summary"]["pendingApproval"] == 1

        approved = await client.post(
            f"/api/admin/timecards/{card_id}/approve", json={"notes": "OK"}, headers=admin_headers
        )
        assert approved.status_code == 200
        assert approved.json()["data"]["isApproved"] is True
        assert approved.json()["data"]["approvedBy"] == admin_user.id

        again = await client.post(f"/api/admin/timecards/{card_id}/approve", headers=admin_headers)
        assert again.status_code == 400

    @pytest.mark.asyncio
    async def test_approve_unknown(self, client: AsyncClient, admin_headers: dict):
        response = await client.post("/api/admin/timecards/nope/approve", headers=admin_headers)
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_operator_forbidden(self, client: AsyncClient, operator_headers: dict):
        response = await client.get("/api/admin/timecards", headers=operator_headers)
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_missing_table(self, client: AsyncClient, test_db: AsyncSession, admin_headers: dict):
        await test_db.execute(text("DROP TABLE timecards"))
        await test_db.commit()
        schema_registry.reset()

        response = await client.get("/api/admin/timecards", headers=admin_headers)
        assert response.status_code == 503


@pytest_asyncio.fixture
async def closed_card(test_db: AsyncSession, operator_user) -> Timecard:
    """An eight hour shift on 19 October."""
    card = Timecard(
        user_id=operator_user.id,
        date=date(2026, 10, 19),
        clock_in_time=datetime(2026, 10, 19, 7, 0, tzinfo=timezone.utc),
        clock_out_time=datetime(2026, 10, 19, 15, 0, tzinfo=timezone.utc),
        total_hours=8.0,
        is_approved=False,
    )
    test_db.add(card)
    await test_db.commit()
    await test_db.refresh(card)
    return card


class TestAdminTimecardCorrection:
    @pytest.mark.asyncio
    async def test_clock_out_correction_recomputes_hours(
        self, client: AsyncClient, admin_headers: dict, closed_card: Timecard
    ):
        response = await client.put(
            f"/api/admin/timecards/{closed_card.id}/update",
            json={"clock_out_time": "2026-10-19T16:30:00Z", "notes": "Forgot to punch out"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Timecard updated successfully"
        assert body["data"]["totalHours"] == 9.5
        assert body["data"]["notes"] == "Forgot to punch out"
        assert body["data"]["clockOutTime"].startswith("2026-10-19T16:30:00")

    @pytest.mark.asyncio
    async def test_clock_in_correction_moves_date(
        self, client: AsyncClient, admin_headers: dict, closed_card: Timecard
    ):
        response = await client.put(
            f"/api/admin/timecards/{closed_card.id}/update",
            json={"clock_in_time": "2026-10-18T23:15:00Z"},
            headers=admin_headers,
        )

        data = response.json()["data"]
        assert data["date"] == "2026-10-18"
        assert data["totalHours"] == 15.75

    @pytest.mark.asyncio
    async def test_clock_out_before_clock_in_rejected(
        self, client: AsyncClient, admin_headers: dict, closed_card: Timecard
    ):
        response = await client.put(
            f"/api/admin/timecards/{closed_card.id}/update",
            json={"clock_out_time": "2026-10-19T06:00:00Z"},
            headers=admin_headers,
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Clock-out time cannot be before clock-in time"

    @pytest.mark.asyncio
    async def test_unknown_timecard(self, client: AsyncClient, admin_headers: dict):
        response = await client.put(
            "/api/admin/timecards/nope/update", json={"notes": "x"}, headers=admin_headers
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_operator_forbidden(self, client: AsyncClient, operator_headers: dict, closed_card: Timecard):
        response = await client.put(
            f"/api/admin/timecards/{closed_card.id}/update", json={"notes": "x"}, headers=operator_headers
        )
        assert response.status_code == 403
