"""Helpers shared by test modules."""

from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock
from uuid import uuid4

import bcrypt
from httpx import AsyncClient

from src.api.dependencies import get_db_manager
from src.core.enums import Role
from src.db.models import User
from src.db.repositories import UserRepository

TEST_SECRET = "test_secret_key_for_testing_only_256bits"
TEST_PASSWORD = "test1234"

SAMPLE_TOUR: dict[str, Any] = {
    "name": "The Forest Hiker",
    "duration": 5,
    "maxGroupSize": 25,
    "difficulty": "easy",
    "price": 397,
    "summary": "Breathtaking hike through the Canadian Banff National Park",
    "imageCover": "tour-1-cover.jpg",
    "startDates": ["2021-04-25T09:00:00Z", "2021-07-20T09:00:00Z"],
    "startLocation": {
        "type": "Point",
        "coordinates": [-115.570154, 51.178456],
        "description": "Banff, CAN",
    },
}


def make_user(*, role: Role = Role.USER, password: str = TEST_PASSWORD) -> MagicMock:
    """Build a mock user with a real (cost 4) password hash."""
    user = MagicMock(spec=User)
    user.id = uuid4()
    user.name = "Test User"
    user.email = "test@example.com"
    user.photo = "default.jpg"
    user.role = role.value
    user.role_enum = role
    user.active = True
    user.password_hash = bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=4)).decode()
    user.changed_password_after.return_value = False
    return user


async def signup(
    client: AsyncClient,
    *,
    name: str = "Jonas Schmedtmann",
    email: str = "jonas@example.com",
    password: str = TEST_PASSWORD,
) -> dict[str, Any]:
    """Sign up through the API and return the response body.

    The session cookie is dropped from the client's jar so later requests
    only authenticate with the headers a test passes explicitly.
    """
    response = await client.post(
        "/api/v1/users/signup",
        json={
            "name": name,
            "email": email,
            "password": password,
            "passwordConfirm": password,
        },
    )
    assert response.status_code == 201, response.text
    client.cookies.clear()
    return response.json()


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


async def promote(email: str, role: Role) -> None:
    """Give an existing account a role directly in the database."""
    async with get_db_manager().session() as session:
        repository = UserRepository(session)
        user = await repository.get_active_user_by_email(email)
        assert user is not None
        await repository.update_user(user, role=role.value)


async def signup_with_role(client: AsyncClient, email: str, role: Role) -> str:
    """Sign up, grant ``role`` and return the bearer token."""
    body = await signup(client, name=f"{role.value.title()} User", email=email)
    await promote(email, role)
    return body["token"]
