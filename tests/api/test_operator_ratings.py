"""
Tests for operator rating updates.
"""
import pytest
from httpx import AsyncClient


class TestOperatorRatings:
    @pytest.mark.asyncio
    async def test_update_supplied_categories(self, client: AsyncClient, admin_headers: dict, operator_user):
        response = await client.post(
            "/api/operator-ratings/update",
            json={"operatorId": operator_user.id, "overallRating": 9, "cleanlinessRating": 7},
            headers=admin_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Operator ratings updated successfully"
        assert body["updates"] == {
            "total_ratings_received": 1,
            "cleanliness_rating_avg": 7.0,
            "cleanliness_rating_count": 1,
            "overall_rating_avg": 9.0,
            "overall_rating_count": 1,
        }

    @pytest.mark.asyncio
    async def test_running_average(self, client: AsyncClient, admin_headers: dict, operator_user):
        for value in (8, 10):
            response = await client.post(
                "/api/operator-ratings/update",
                json={"operatorId": operator_user.id, "communicationRating": value},
                headers=admin_headers,
            )
        assert response.json()["updates"]["communication_rating_avg"] == 9.0
        assert response.json()["updates"]["total_ratings_received"] == 2

    @pytest.mark.asyncio
    async def test_out_of_range(self, client: AsyncClient, admin_headers: dict, operator_user):
        response = await client.post(
            "/api/operator-ratings/update",
            json={"operatorId": operator_user.id, "overallRating": 11},
            headers=admin_headers,
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Ratings must be between 1 and 10"

    @pytest.mark.asyncio
    async def test_operator_id_required(self, client: AsyncClient, admin_headers: dict):
        response = await client.post("/api/operator-ratings/update", json={"overallRating": 5}, headers=admin_headers)
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_unknown_operator(self, client: AsyncClient, admin_headers: dict):
        response = await client.post(
            "/api/operator-ratings/update",
            json={"operatorId": "missing", "overallRating": 5},
            headers=admin_headers,
        )
        assert response.status_code == 404
