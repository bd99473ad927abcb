"""
Tests for the equipment fleet, usage tracking and the trackers around it.
"""
import pytest
import pytest_asyncio
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.equipment import (
    Equipment,
    EquipmentDamageReport,
    EquipmentMaintenanceAlert,
    EquipmentUsage,
)
from app.models.job_order import JobOrder


@pytest_asyncio.fixture
async def saw(test_db: AsyncSession):
    """A wall saw in the fleet."""
    equipment = Equipment(name="Wall Saw #3", equipment_type="wall_saw", status="in_use", total_usage=100.0)
    test_db.add(equipment)
    await test_db.commit()
    await test_db.refresh(equipment)
    return equipment


@pytest_asyncio.fixture
async def drill(test_db: AsyncSession):
    """A core drill sitting in the shop."""
    equipment = Equipment(name="Core Drill #2", equipment_type="core_drill", status="available")
    test_db.add(equipment)
    await test_db.commit()
    await test_db.refresh(equipment)
    return equipment


async def file_damage_report(client: AsyncClient, headers: dict, equipment_id: str) -> dict:
    response = await client.post(
        "/api/equipment/damage-report",
        json={
            "equipmentId": equipment_id,
            "damageTitle": "Cracked blade guard",
            "damageDescription": "Guard split after kickback",
            "severity": "major",
        },
        headers=headers,
    )
    assert response.status_code == 200
    return response.json()["report"]


class TestFleet:
    @pytest.mark.asyncio
    async def test_create_and_get(self, client: AsyncClient, admin_headers: dict, operator_headers: dict):
        created = await client.post(
            "/api/equipment",
            json={"name": "Core Drill #1", "equipment_type": "core_drill"},
            headers=admin_headers,
        )
        assert created.status_code == 201
        equipment_id = created.json()["data"]["id"]

        fetched = await client.get(f"/api/equipment/{equipment_id}", headers=operator_headers)
        assert fetched.json()["data"]["status"] == "available"
        assert fetched.json()["data"]["total_usage"] == 0

    @pytest.mark.asyncio
    async def test_operator_cannot_create(self, client: AsyncClient, operator_headers: dict):
        response = await client.post("/api/equipment", json={"name": "Saw"}, headers=operator_headers)
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_list_filters_by_type(self, client: AsyncClient, operator_headers: dict, saw: Equipment):
        hit = await client.get("/api/equipment?type=wall_saw", headers=operator_headers)
        miss = await client.get("/api/equipment?type=core_drill", headers=operator_headers)
        assert [e["id"] for e in hit.json()["data"]] == [saw.id]
        assert miss.json()["data"] == []

    @pytest.mark.asyncio
    async def test_unknown_equipment(self, client: AsyncClient, operator_headers: dict):
        response = await client.get("/api/equipment/nope", headers=operator_headers)
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_update_details(self, client: AsyncClient, admin_headers: dict, drill: Equipment):
        response = await client.patch(
            f"/api/equipment/{drill.id}",
            json={"brand": "Hilti", "serial_number": "DD-350-0042"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["brand"] == "Hilti"
        assert data["serial_number"] == "DD-350-0042"
        assert data["name"] == "Core Drill #2"

    @pytest.mark.asyncio
    async def test_retire_releases_operator(
        self, client: AsyncClient, test_db: AsyncSession, admin_headers: dict, operator_user, saw: Equipment
    ):
        saw.assigned_to = operator_user.id
        await test_db.commit()

        response = await client.patch(
            f"/api/equipment/{saw.id}", json={"status": "retired"}, headers=admin_headers
        )

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "retired"
        assert response.json()["data"]["assigned_to"] is None

    @pytest.mark.asyncio
    async def test_update_rejects_unknown_status(self, client: AsyncClient, admin_headers: dict, drill: Equipment):
        response = await client.patch(
            f"/api/equipment/{drill.id}", json={"status": "lost"}, headers=admin_headers
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_operator_cannot_update(self, client: AsyncClient, operator_headers: dict, drill: Equipment):
        response = await client.patch(
            f"/api/equipment/{drill.id}", json={"name": "Mine now"}, headers=operator_headers
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_update_unknown(self, client: AsyncClient, admin_headers: dict):
        response = await client.patch("/api/equipment/nope", json={"name": "X"}, headers=admin_headers)
        assert response.status_code == 404


class TestCheckout:
    @pytest.mark.asyncio
    async def test_checkout_assigns_operator(
        self, client: AsyncClient, admin_headers: dict, operator_user, drill: Equipment
    ):
        response = await client.post(
            "/api/equipment/checkout",
            json={"equipment_id": drill.id, "operator_id": operator_user.id, "notes": "For the Peachtree job"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Equipment checked out successfully"
        assert body["data"]["status"] == "in_use"
        assert body["data"]["assigned_to"] == operator_user.id

    @pytest.mark.asyncio
    async def test_already_checked_out(self, client: AsyncClient, admin_headers: dict, operator_user, saw: Equipment):
        response = await client.post(
            "/api/equipment/checkout",
            json={"equipment_id": saw.id, "operator_id": operator_user.id},
            headers=admin_headers,
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Equipment is already checked out"

    @pytest.mark.asyncio
    async def test_ids_required(self, client: AsyncClient, admin_headers: dict, drill: Equipment):
        response = await client.post(
            "/api/equipment/checkout", json={"equipment_id": drill.id}, headers=admin_headers
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Equipment ID and Operator ID are required"

    @pytest.mark.asyncio
    async def test_unknown_operator(
        self, client: AsyncClient, test_db: AsyncSession, admin_headers: dict, drill: Equipment
    ):
        response = await client.post(
            "/api/equipment/checkout",
            json={"equipment_id": drill.id, "operator_id": "nobody"},
            headers=admin_headers,
        )
        assert response.status_code == 404

        await test_db.refresh(drill)
        assert drill.status == "available"

    @pytest.mark.asyncio
    async def test_check_in_after_checkout(
        self, client: AsyncClient, admin_headers: dict, operator_user, drill: Equipment
    ):
        await client.post(
            "/api/equipment/checkout",
            json={"equipment_id": drill.id, "operator_id": operator_user.id},
            headers=admin_headers,
        )
        returned = await client.patch(
            f"/api/equipment/{drill.id}", json={"status": "available"}, headers=admin_headers
        )
        assert returned.json()["data"]["assigned_to"] is None

        again = await client.post(
            "/api/equipment/checkout",
            json={"equipment_id": drill.id, "operator_id": operator_user.id},
            headers=admin_headers,
        )
        assert again.status_code == 200


class TestEquipmentUsage:
    @pytest.mark.asyncio
    async def test_feet_cut_added_to_total(
        self, client: AsyncClient, test_db: AsyncSession, operator_headers: dict, job: JobOrder, saw: Equipment
    ):
        response = await client.post(
            "/api/equipment-usage",
            json={
                "job_order_id": job.id,
                "equipment_id": saw.id,
                "equipment_type": "wall_saw",
                "task_type": "wall_cutting",
                "linear_feet_cut": 42.5,
            },
            headers=operator_headers,
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["difficulty_level"] == "medium"
        assert data["blades_used"] == 0

        await test_db.refresh(saw)
        assert saw.total_usage == 142.5

    @pytest.mark.asyncio
    async def test_missing_fields(self, client: AsyncClient, operator_headers: dict):
        response = await client.post(
            "/api/equipment-usage", json={"equipment_type": "wall_saw"}, headers=operator_headers
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Missing required fields: job_order_id, equipment_type, task_type"

    @pytest.mark.asyncio
    async def test_operators_see_only_their_entries(
        self,
        client: AsyncClient,
        operator_headers: dict,
        other_headers: dict,
        admin_headers: dict,
        job: JobOrder,
    ):
        entry = {"job_order_id": job.id, "equipment_type": "core_drill", "task_type": "coring"}
        await client.post("/api/equipment-usage", json=entry, headers=operator_headers)
        await client.post("/api/equipment-usage", json=entry, headers=other_headers)

        own = await client.get("/api/equipment-usage", headers=operator_headers)
        everyone = await client.get("/api/equipment-usage", headers=admin_headers)
        assert len(own.json()["data"]) == 1
        assert len(everyone.json()["data"]) == 2


class TestDamageReports:
    @pytest.mark.asyncio
    async def test_report_records_last_user(
        self,
        client: AsyncClient,
        test_db: AsyncSession,
        operator_user,
        other_headers: dict,
        job: JobOrder,
        saw: Equipment,
    ):
        test_db.add(EquipmentUsage(
            job_order_id=job.id,
            operator_id=operator_user.id,
            equipment_id=saw.id,
            equipment_type="wall_saw",
            task_type="wall_cutting",
        ))
        await test_db.commit()

        report = await file_damage_report(client, other_headers, saw.id)

        assert report["status"] == "reported"
        assert report["reported_by_name"] == "Oscar Other"
        assert report["last_used_by"] == operator_user.id
        assert report["last_used_by_name"] == "Olive Operator"
        assert report["last_job_id"] == job.id

    @pytest.mark.asyncio
    async def test_missing_fields(self, client: AsyncClient, operator_headers: dict):
        response = await client.post(
            "/api/equipment/damage-report", json={"damageTitle": "x"}, headers=operator_headers
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_resolving_stamps_resolved_at(
        self, client: AsyncClient, admin_headers: dict, operator_headers: dict, saw: Equipment
    ):
        report = await file_damage_report(client, operator_headers, saw.id)

        reviewed = await client.patch(
            "/api/equipment/damage-report",
            json={"reportId": report["id"], "status": "under_review"},
            headers=admin_headers,
        )
        assert reviewed.json()["report"]["resolved_at"] is None
        assert reviewed.json()["report"]["reviewed_by_name"] == "Avery Admin"

        resolved = await client.patch(
            "/api/equipment/damage-report",
            json={"reportId": report["id"], "status": "no_action_needed"},
            headers=admin_headers,
        )
        assert resolved.json()["report"]["resolved_at"] is not None

    @pytest.mark.asyncio
    async def test_review_requires_admin(self, client: AsyncClient, operator_headers: dict, saw: Equipment):
        report = await file_damage_report(client, operator_headers, saw.id)
        response = await client.patch(
            "/api/equipment/damage-report",
            json={"reportId": report["id"], "status": "under_review"},
            headers=operator_headers,
        )
        assert response.status_code == 403


class TestRepairTracking:
    @pytest.mark.asyncio
    async def test_repair_lifecycle(
        self,
        client: AsyncClient,
        test_db: AsyncSession,
        admin_headers: dict,
        operator_headers: dict,
        operator_user,
        saw: Equipment,
    ):
        report = await file_damage_report(client, operator_headers, saw.id)

        created = await client.post(
            "/api/equipment/repair-tracking",
            json={
                "equipmentId": saw.id,
                "damageReportId": report["id"],
                "repairTitle": "Replace blade guard",
                "repairDescription": "Swap guard and inspect arbor",
                "repairType": "part_replacement",
            },
            headers=admin_headers,
        )
        assert created.status_code == 200
        repair = created.json()["repair"]
        assert repair["status"] == "pending"

        linked = await test_db.get(EquipmentDamageReport, report["id"])
        await test_db.refresh(linked)
        assert linked.status == "repair_in_progress"

        completed = await client.patch(
            "/api/equipment/repair-tracking",
            json={
                "repairId": repair["id"],
                "status": "completed",
                "qualityCheckPassed": True,
                "returnedToOperator": operator_user.id,
            },
            headers=admin_headers,
        )
        data = completed.json()["repair"]
        assert data["quality_check_by_name"] == "Avery Admin"
        assert data["returned_to_operator_name"] == "Olive Operator"

        await test_db.refresh(saw)
        await test_db.refresh(linked)
        assert saw.status == "available"
        assert linked.status == "repair_completed"
        assert linked.resolved_at is not None

    @pytest.mark.asyncio
    async def test_missing_fields(self, client: AsyncClient, admin_headers: dict, saw: Equipment):
        response = await client.post(
            "/api/equipment/repair-tracking",
            json={"equipmentId": saw.id, "repairTitle": "x"},
            headers=admin_headers,
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_unknown_repair(self, client: AsyncClient, admin_headers: dict):
        response = await client.patch(
            "/api/equipment/repair-tracking", json={"repairId": "nope", "status": "in_progress"}, headers=admin_headers
        )
        assert response.status_code == 404


class TestMaintenanceSchedules:
    @pytest.mark.asyncio
    async def test_create_update_delete(self, client: AsyncClient, admin_headers: dict, saw: Equipment):
        created = await client.post(
            "/api/equipment/maintenance-schedule",
            json={"equipmentId": saw.id, "maintenanceType": "blade_inspection", "intervalHours": 40},
            headers=admin_headers,
        )
        schedule = created.json()["schedule"]
        assert schedule["is_active"] is True

        updated = await client.patch(
            "/api/equipment/maintenance-schedule",
            json={"scheduleId": schedule["id"], "isActive": False},
            headers=admin_headers,
        )
        assert updated.json()["schedule"]["is_active"] is False

        active = await client.get("/api/equipment/maintenance-schedule?activeOnly=true", headers=admin_headers)
        assert active.json()["schedules"] == []

        deleted = await client.delete(
            f"/api/equipment/maintenance-schedule?scheduleId={schedule['id']}", headers=admin_headers
        )
        assert deleted.json()["message"] == "Maintenance schedule deleted successfully"

    @pytest.mark.asyncio
    async def test_delete_requires_id(self, client: AsyncClient, admin_headers: dict):
        response = await client.delete("/api/equipment/maintenance-schedule", headers=admin_headers)
        assert response.status_code == 400


class TestTurnInRequests:
    @pytest.mark.asyncio
    async def test_maintenance_turn_in_raises_alert(
        self, client: AsyncClient, test_db: AsyncSession, operator_headers: dict, saw: Equipment
    ):
        response = await client.post(
            "/api/equipment/turn-in-request",
            json={
                "equipmentId": saw.id,
                "reason": "scheduled_maintenance",
                "description": "500 hour service due",
                "urgency": "critical",
            },
            headers=operator_headers,
        )

        assert response.status_code == 200
        assert response.json()["request"]["status"] == "pending"

        result = await test_db.execute(
            select(EquipmentMaintenanceAlert).where(EquipmentMaintenanceAlert.equipment_id == saw.id)
        )
        alerts = result.scalars().all()
        assert len(alerts) == 1
        assert alerts[0].severity == "critical"
        assert alerts[0].title == "Equipment Turn-In Requested"

    @pytest.mark.asyncio
    async def test_other_reasons_raise_no_alert(
        self, client: AsyncClient, test_db: AsyncSession, operator_headers: dict, saw: Equipment
    ):
        await client.post(
            "/api/equipment/turn-in-request",
            json={"equipmentId": saw.id, "reason": "end_of_job", "description": "Job wrapped"},
            headers=operator_headers,
        )
        result = await test_db.execute(select(EquipmentMaintenanceAlert))
        assert result.scalars().all() == []

    @pytest.mark.asyncio
    async def test_approval_and_completion_move_equipment(
        self,
        client: AsyncClient,
        test_db: AsyncSession,
        admin_headers: dict,
        operator_headers: dict,
        saw: Equipment,
    ):
        created = await client.post(
            "/api/equipment/turn-in-request",
            json={"equipmentId": saw.id, "reason": "damaged", "description": "Motor smoking"},
            headers=operator_headers,
        )
        request_id = created.json()["request"]["id"]

        await client.patch(
            "/api/equipment/turn-in-request",
            json={"requestId": request_id, "status": "approved"},
            headers=admin_headers,
        )
        await test_db.refresh(saw)
        assert saw.status == "maintenance"

        completed = await client.patch(
            "/api/equipment/turn-in-request",
            json={"requestId": request_id, "status": "completed"},
            headers=admin_headers,
        )
        assert completed.json()["request"]["reviewed_by_name"] == "Avery Admin"
        await test_db.refresh(saw)
        assert saw.status == "available"

    @pytest.mark.asyncio
    async def test_missing_fields(self, client: AsyncClient, operator_headers: dict, saw: Equipment):
        response = await client.post(
            "/api/equipment/turn-in-request", json={"equipmentId": saw.id}, headers=operator_headers
        )
        assert response.status_code == 400


class TestMaintenanceAlerts:
    @staticmethod
    async def raise_alert(test_db: AsyncSession, equipment: Equipment, operator_id: str, **fields):
        alert = EquipmentMaintenanceAlert(
            equipment_id=equipment.id,
            operator_id=operator_id,
            alert_type="hours_due",
            title="Blade inspection due",
            **fields,
        )
        test_db.add(alert)
        await test_db.commit()
        await test_db.refresh(alert)
        return alert

    @pytest.mark.asyncio
    async def test_status_filters(
        self, client: AsyncClient, test_db: AsyncSession, admin_headers: dict, operator_user, saw: Equipment
    ):
        unread = await self.raise_alert(test_db, saw, operator_user.id)
        read = await self.raise_alert(test_db, saw, operator_user.id, is_read=True)
        resolved = await self.raise_alert(test_db, saw, operator_user.id, is_read=True, is_resolved=True)

        async def ids(query: str) -> set:
            response = await client.get(f"/api/equipment/maintenance-alerts{query}", headers=admin_headers)
            assert response.json()["success"] is True
            return {a["id"] for a in response.json()["alerts"]}

        assert await ids("?status=unread") == {unread.id}
        assert await ids("?status=unresolved") == {unread.id, read.id}
        assert await ids("") == {unread.id, read.id, resolved.id}
        assert await ids("?equipmentId=other") == set()

    @pytest.mark.asyncio
    async def test_operators_see_their_own(
        self,
        client: AsyncClient,
        test_db: AsyncSession,
        operator_headers: dict,
        operator_user,
        other_operator,
        saw: Equipment,
    ):
        mine = await self.raise_alert(test_db, saw, operator_user.id)
        await self.raise_alert(test_db, saw, other_operator.id)

        response = await client.get("/api/equipment/maintenance-alerts", headers=operator_headers)
        assert [a["id"] for a in response.json()["alerts"]] == [mine.id]

    @pytest.mark.asyncio
    async def test_actions(
        self, client: AsyncClient, test_db: AsyncSession, admin_headers: dict, admin_user, operator_user, saw: Equipment
    ):
        alert = await self.raise_alert(test_db, saw, operator_user.id)

        read = await client.patch(
            "/api/equipment/maintenance-alerts",
            json={"alertId": alert.id, "action": "mark_read"},
            headers=admin_headers,
        )
        assert read.json()["message"] == "Alert updated successfully"
        assert read.json()["alert"]["is_read"] is True
        assert read.json()["alert"]["is_acknowledged"] is False

        acknowledged = await client.patch(
            "/api/equipment/maintenance-alerts",
            json={"alertId": alert.id, "action": "acknowledge"},
            headers=admin_headers,
        )
        assert acknowledged.json()["alert"]["acknowledged_by"] == admin_user.id
        assert acknowledged.json()["alert"]["acknowledged_at"] is not None
        assert acknowledged.json()["alert"]["is_resolved"] is False

        resolved = await client.patch(
            "/api/equipment/maintenance-alerts",
            json={"alertId": alert.id, "action": "resolve"},
            headers=admin_headers,
        )
        assert resolved.json()["alert"]["is_resolved"] is True
        assert resolved.json()["alert"]["resolved_at"] is not None

    @pytest.mark.asyncio
    async def test_invalid_action(
        self, client: AsyncClient, test_db: AsyncSession, admin_headers: dict, operator_user, saw: Equipment
    ):
        alert = await self.raise_alert(test_db, saw, operator_user.id)
        response = await client.patch(
            "/api/equipment/maintenance-alerts",
            json={"alertId": alert.id, "action": "snooze"},
            headers=admin_headers,
        )
        assert response.status_code == 400
        assert response.json()["error"].startswith("Invalid action")

    @pytest.mark.asyncio
    async def test_missing_fields(self, client: AsyncClient, admin_headers: dict):
        response = await client.patch(
            "/api/equipment/maintenance-alerts", json={"action": "resolve"}, headers=admin_headers
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Missing alertId or action"

    @pytest.mark.asyncio
    async def test_unknown_alert(self, client: AsyncClient, admin_headers: dict):
        response = await client.patch(
            "/api/equipment/maintenance-alerts",
            json={"alertId": "nope", "action": "resolve"},
            headers=admin_headers,
        )
        assert response.status_code == 404


class TestTrackerEnvelope:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "path",
        [
            "/api/equipment/damage-report",
            "/api/equipment/repair-tracking",
            "/api/equipment/maintenance-schedule",
            "/api/equipment/turn-in-request",
            "/api/equipment/maintenance-alerts",
        ],
    )
    async def test_lists_carry_success_flag(self, client: AsyncClient, admin_headers: dict, path: str):
        response = await client.get(path, headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["success"] is True

    @pytest.mark.asyncio
    async def test_writes_carry_success_flag(self, client: AsyncClient, operator_headers: dict, saw: Equipment):
        response = await client.post(
            "/api/equipment/turn-in-request",
            json={"equipmentId": saw.id, "reason": "end_of_job", "description": "Job wrapped"},
            headers=operator_headers,
        )
        assert response.json()["success"] is True
        assert response.json()["message"] == "Turn-in request submitted successfully"
