"""End-to-end tests for tour and review routes."""

from __future__ import annotations

from typing import Any

import pytest
import pytest_asyncio
from httpx import AsyncClient

from src.core.enums import Role
from tests.helpers import SAMPLE_TOUR, bearer, signup, signup_with_role


async def create_tour(client: AsyncClient, token: str, **overrides: Any) -> dict[str, Any]:
    response = await client.post(
        "/api/v1/tours", json={**SAMPLE_TOUR, **overrides}, headers=bearer(token)
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]["data"]


class TestTourCrud:
    """Tests for tour management."""

    @pytest.mark.asyncio
    async def test_admin_creates_tour(self, client: AsyncClient) -> None:
        admin = await signup_with_role(client, "admin@example.com", Role.ADMIN)

        tour = await create_tour(client, admin)

        assert tour["slug"] == "the-forest-hiker"
        assert tour["ratingsAverage"] == 4.5
        assert tour["ratingsQuantity"] == 0
        assert tour["durationWeeks"] == pytest.approx(5 / 7)
        assert tour["startLocation"]["coordinates"] == [-115.570154, 51.178456]

    @pytest.mark.asyncio
    async def test_guides_attached(self, client: AsyncClient) -> None:
        admin = await signup_with_role(client, "admin@example.com", Role.ADMIN)
        guide = (await signup(client, email="guide@example.com"))["data"]["user"]

        tour = await create_tour(client, admin, guides=[guide["id"]])

        assert [g["email"] for g in tour["guides"]] == ["guide@example.com"]

    @pytest.mark.asyncio
    async def test_regular_user_cannot_create(self, client: AsyncClient) -> None:
        token = (await signup(client))["token"]

        response = await client.post("/api/v1/tours", json=SAMPLE_TOUR, headers=bearer(token))

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_anonymous_cannot_create(self, client: AsyncClient) -> None:
        response = await client.post("/api/v1/tours", json=SAMPLE_TOUR)

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_duplicate_name(self, client: AsyncClient) -> None:
        admin = await signup_with_role(client, "admin@example.com", Role.ADMIN)
        await create_tour(client, admin)

        response = await client.post("/api/v1/tours", json=SAMPLE_TOUR, headers=bearer(admin))

        assert response.status_code == 409
        assert response.json()["message"] == "Duplicate field value. Please use another value!"

    @pytest.mark.asyncio
    async def test_invalid_body(self, client: AsyncClient) -> None:
        admin = await signup_with_role(client, "admin@example.com", Role.ADMIN)

        response = await client.post(
            "/api/v1/tours", json={**SAMPLE_TOUR, "difficulty": "extreme"}, headers=bearer(admin)
        )

        assert response.status_code == 400
        assert response.json()["message"].startswith("Invalid input data.")

    @pytest.mark.asyncio
    async def test_update_and_delete(self, client: AsyncClient) -> None:
        lead = await signup_with_role(client, "lead@example.com", Role.LEAD_GUIDE)
        tour = await create_tour(client, lead)

        updated = await client.patch(
            f"/api/v1/tours/{tour['id']}",
            json={"name": "The Forest Walker", "price": 450},
            headers=bearer(lead),
        )
        deleted = await client.delete(f"/api/v1/tours/{tour['id']}", headers=bearer(lead))
        fetched = await client.get(f"/api/v1/tours/{tour['id']}")

        assert updated.status_code == 200
        assert updated.json()["data"]["data"]["slug"] == "the-forest-walker"
        assert updated.json()["data"]["data"]["price"] == 450
        assert deleted.status_code == 204
        assert fetched.status_code == 404
        assert fetched.json()["message"] == "No document found with that ID"

    @pytest.mark.asyncio
    async def test_malformed_id(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/tours/not-a-uuid")

        assert response.status_code == 400


class TestTourQueries:
    """Tests for listing, aggregates and geospatial routes."""

    @pytest_asyncio.fixture
    async def catalogue(self, client: AsyncClient) -> str:
        admin = await signup_with_role(client, "admin@example.com", Role.ADMIN)
        await create_tour(client, admin)
        await create_tour(
            client,
            admin,
            name="The Sea Explorer",
            difficulty="medium",
            price=497,
            ratingsAverage=4.8,
            startDates=["2021-06-19T09:00:00Z", "2021-07-20T09:00:00Z"],
            startLocation={
                "type": "Point",
                "coordinates": [-80.185942, 25.774772],
                "description": "Miami, USA",
            },
        )
        await create_tour(
            client,
            admin,
            name="The Secret Hideaway",
            price=9999,
            secretTour=True,
        )
        return admin

    @pytest.mark.asyncio
    async def test_list_hides_secret_tours(self, client: AsyncClient, catalogue: str) -> None:
        response = await client.get("/api/v1/tours")

        body = response.json()
        assert body["results"] == 2
        assert "The Secret Hideaway" not in {tour["name"] for tour in body["data"]["data"]}

    @pytest.mark.asyncio
    async def test_filter_sort_and_fields(self, client: AsyncClient, catalogue: str) -> None:
        response = await client.get(
            "/api/v1/tours",
            params={"price[gte]": "400", "sort": "-price", "fields": "name,price"},
        )

        tours = response.json()["data"]["data"]
        assert [tour["name"] for tour in tours] == ["The Sea Explorer"]
        assert set(tours[0]) == {"id", "name", "price"}

    @pytest.mark.asyncio
    async def test_pagination(self, client: AsyncClient, catalogue: str) -> None:
        response = await client.get("/api/v1/tours", params={"sort": "price", "limit": 1, "page": 2})

        assert [tour["name"] for tour in response.json()["data"]["data"]] == ["The Sea Explorer"]

    @pytest.mark.asyncio
    async def test_unknown_sort_key(self, client: AsyncClient, catalogue: str) -> None:
        response = await client.get("/api/v1/tours", params={"sort": "banana"})

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_top_five_cheap(self, client: AsyncClient, catalogue: str) -> None:
        response = await client.get("/api/v1/tours/top-5-cheap")

        tours = response.json()["data"]["data"]
        assert tours[0]["name"] == "The Sea Explorer"
        assert set(tours[0]) == {"id", "name", "price", "ratingsAverage", "summary", "difficulty"}

    @pytest.mark.asyncio
    async def test_tour_stats(self, client: AsyncClient, catalogue: str) -> None:
        response = await client.get("/api/v1/tours/tour-stats")

        stats = response.json()["data"]["stats"]
        assert [entry["difficulty"] for entry in stats] == ["EASY", "MEDIUM"]
        assert stats[0]["numTours"] == 1
        assert stats[1]["avgPrice"] == 497

    @pytest.mark.asyncio
    async def test_monthly_plan_requires_staff(self, client: AsyncClient, catalogue: str) -> None:
        user = (await signup(client, email="user@example.com"))["token"]
        guide = await signup_with_role(client, "guide@example.com", Role.GUIDE)

        denied = await client.get("/api/v1/tours/monthly-plan/2021", headers=bearer(user))
        response = await client.get("/api/v1/tours/monthly-plan/2021", headers=bearer(guide))

        assert denied.status_code == 403
        plan = response.json()["data"]["plan"]
        assert plan[0]["month"] == 7
        assert plan[0]["numTourStarts"] == 2
        assert sorted(plan[0]["tours"]) == ["The Forest Hiker", "The Sea Explorer"]
        assert {entry["month"] for entry in plan} == {4, 6, 7}

    @pytest.mark.asyncio
    async def test_tours_within(self, client: AsyncClient, catalogue: str) -> None:
        response = await client.get("/api/v1/tours/tours-within/100/center/51.2,-115.5/unit/mi")

        assert [tour["name"] for tour in response.json()["data"]["data"]] == ["The Forest Hiker"]

    @pytest.mark.asyncio
    async def test_tours_within_bad_center(self, client: AsyncClient, catalogue: str) -> None:
        response = await client.get("/api/v1/tours/tours-within/100/center/51.2/unit/mi")

        assert response.status_code == 400
        assert response.json()["message"] == (
            "Please provide latitude and longitude in the format lat,lng."
        )

    @pytest.mark.asyncio
    async def test_distances(self, client: AsyncClient, catalogue: str) -> None:
        response = await client.get("/api/v1/tours/distances/25.7,-80.2/unit/km")

        distances = response.json()["data"]["data"]
        assert [entry["name"] for entry in distances] == ["The Sea Explorer", "The Forest Hiker"]
        assert distances[0]["distance"] < 20

    @pytest.mark.asyncio
    async def test_unknown_unit(self, client: AsyncClient, catalogue: str) -> None:
        response = await client.get("/api/v1/tours/distances/25.7,-80.2/unit/furlong")

        assert response.status_code == 400


class TestReviews:
    """Tests for reviews and tour rating aggregation."""

    @pytest_asyncio.fixture
    async def tour_id(self, client: AsyncClient) -> str:
        admin = await signup_with_role(client, "admin@example.com", Role.ADMIN)
        return (await create_tour(client, admin))["id"]

    @pytest.mark.asyncio
    async def test_review_updates_tour_ratings(self, client: AsyncClient, tour_id: str) -> None:
        first = (await signup(client, email="one@example.com"))["token"]
        second = (await signup(client, email="two@example.com"))["token"]

        await client.post(
            f"/api/v1/tours/{tour_id}/reviews",
            json={"review": "Amazing!", "rating": 5},
            headers=bearer(first),
        )
        await client.post(
            "/api/v1/reviews",
            json={"review": "Decent.", "rating": 4, "tour": tour_id},
            headers=bearer(second),
        )
        tour = (await client.get(f"/api/v1/tours/{tour_id}")).json()["data"]["data"]

        assert tour["ratingsQuantity"] == 2
        assert tour["ratingsAverage"] == 4.5
        assert {review["rating"] for review in tour["reviews"]} == {4, 5}
        assert all(review["tour"] == tour_id for review in tour["reviews"])

    @pytest.mark.asyncio
    async def test_one_review_per_tour(self, client: AsyncClient, tour_id: str) -> None:
        token = (await signup(client, email="one@example.com"))["token"]
        body = {"review": "Amazing!", "rating": 5}

        await client.post(f"/api/v1/tours/{tour_id}/reviews", json=body, headers=bearer(token))
        response = await client.post(
            f"/api/v1/tours/{tour_id}/reviews", json=body, headers=bearer(token)
        )

        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_review_needs_tour(self, client: AsyncClient, tour_id: str) -> None:
        token = (await signup(client, email="one@example.com"))["token"]

        response = await client.post(
            "/api/v1/reviews", json={"review": "Hm", "rating": 3}, headers=bearer(token)
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Review must belong to a tour."

    @pytest.mark.asyncio
    async def test_only_users_write_reviews(self, client: AsyncClient, tour_id: str) -> None:
        guide = await signup_with_role(client, "guide@example.com", Role.GUIDE)

        response = await client.post(
            f"/api/v1/tours/{tour_id}/reviews",
            json={"review": "My own tour is great", "rating": 5},
            headers=bearer(guide),
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_reviews_require_login(self, client: AsyncClient, tour_id: str) -> None:
        response = await client.get("/api/v1/reviews")

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_edit_and_delete_recompute(self, client: AsyncClient, tour_id: str) -> None:
        token = (await signup(client, email="one@example.com"))["token"]
        other = (await signup(client, email="two@example.com"))["token"]
        created = await client.post(
            f"/api/v1/tours/{tour_id}/reviews",
            json={"review": "Amazing!", "rating": 5},
            headers=bearer(token),
        )
        review_id = created.json()["data"]["data"]["id"]

        forbidden = await client.patch(
            f"/api/v1/reviews/{review_id}", json={"rating": 1}, headers=bearer(other)
        )
        edited = await client.patch(
            f"/api/v1/reviews/{review_id}", json={"rating": 3}, headers=bearer(token)
        )
        after_edit = (await client.get(f"/api/v1/tours/{tour_id}")).json()["data"]["data"]
        deleted = await client.delete(f"/api/v1/reviews/{review_id}", headers=bearer(token))
        after_delete = (await client.get(f"/api/v1/tours/{tour_id}")).json()["data"]["data"]

        assert forbidden.status_code == 403
        assert edited.json()["data"]["data"]["rating"] == 3
        assert after_edit["ratingsAverage"] == 3
        assert deleted.status_code == 204
        assert after_delete["ratingsQuantity"] == 0
        assert after_delete["ratingsAverage"] == 4.5

    @pytest.mark.asyncio
    async def test_list_reviews_of_tour(self, client: AsyncClient, tour_id: str) -> None:
        token = (await signup(client, email="one@example.com"))["token"]
        await client.post(
            f"/api/v1/tours/{tour_id}/reviews",
            json={"review": "Amazing!", "rating": 5},
            headers=bearer(token),
        )

        nested = await client.get(f"/api/v1/tours/{tour_id}/reviews", headers=bearer(token))
        filtered = await client.get(
            "/api/v1/reviews", params={"tour": tour_id}, headers=bearer(token)
        )

        assert nested.json()["results"] == 1
        assert filtered.json()["results"] == 1
        assert nested.json()["data"]["data"][0]["user"]["name"] == "Jonas Schmedtmann"
