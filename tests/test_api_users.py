"""End-to-end tests for account routes."""

from __future__ import annotations

import io
import re
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import AsyncMock

import jwt as pyjwt
import pytest
from httpx import AsyncClient
from litestar import Litestar
from PIL import Image

from src.api.dependencies import get_db_manager
from src.core.config import Settings
from src.core.enums import Environment, Role
from src.db.repositories import UserRepository
from tests.helpers import TEST_PASSWORD, TEST_SECRET, bearer, signup, signup_with_role


def png_bytes(size: tuple[int, int]) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color=(200, 30, 30)).save(buffer, format="PNG")
    return buffer.getvalue()


class TestSignupAndLogin:
    """Tests for signup, login and logout."""

    @pytest.mark.asyncio
    async def test_signup_sets_session_cookie(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/v1/users/signup",
            json={
                "name": "Jonas Schmedtmann",
                "email": "jonas@example.com",
                "password": TEST_PASSWORD,
                "passwordConfirm": TEST_PASSWORD,
                "role": "admin",
            },
        )

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "success"
        assert body["token"]
        user = body["data"]["user"]
        assert user["email"] == "jonas@example.com"
        assert user["role"] == "user"
        assert "password" not in user
        assert "passwordHash" not in user
        cookie = response.headers["set-cookie"]
        assert cookie.startswith(f"jwt={body['token']}")
        assert "HttpOnly" in cookie
        assert "samesite=strict" in cookie.lower()

    @pytest.mark.asyncio
    async def test_signup_short_name(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/v1/users/signup",
            json={
                "name": "Jo",
                "email": "jo@x.com",
                "password": "pw123456",
                "passwordConfirm": "pw123456",
            },
        )

        assert response.status_code == 201
        assert response.json()["data"]["user"]["name"] == "Jo"
        assert "jwt=" in response.headers["set-cookie"]

    @pytest.mark.asyncio
    async def test_signup_sends_welcome_email(
        self,
        client: AsyncClient,
        mock_email_service: AsyncMock,
    ) -> None:
        await signup(client)

        user, url = mock_email_service.send_welcome.call_args.args
        assert user.email == "jonas@example.com"
        assert url == "http://test/me"

    @pytest.mark.asyncio
    async def test_signup_duplicate_email(self, client: AsyncClient) -> None:
        await signup(client)

        response = await client.post(
            "/api/v1/users/signup",
            json={
                "name": "Someone Else",
                "email": "jonas@example.com",
                "password": TEST_PASSWORD,
                "passwordConfirm": TEST_PASSWORD,
            },
        )

        assert response.status_code == 409
        assert response.json()["status"] == "fail"

    @pytest.mark.asyncio
    async def test_signup_password_mismatch(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/v1/users/signup",
            json={
                "name": "Jonas",
                "email": "jonas@example.com",
                "password": TEST_PASSWORD,
                "passwordConfirm": "something-else",
            },
        )

        assert response.status_code == 400
        assert "Passwords are not the same!" in response.json()["message"]

    @pytest.mark.asyncio
    async def test_login(self, client: AsyncClient) -> None:
        await signup(client)

        response = await client.post(
            "/api/v1/users/login",
            json={"email": "jonas@example.com", "password": TEST_PASSWORD},
        )

        assert response.status_code == 200
        assert response.json()["token"]

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, client: AsyncClient, app: Litestar) -> None:
        app.state.settings = app.state.settings.model_copy(
            update={"environment": Environment.PRODUCTION}
        )
        await signup(client)

        response = await client.post(
            "/api/v1/users/login",
            json={"email": "jonas@example.com", "password": "wrong-password"},
        )

        assert response.status_code == 401
        assert response.json() == {"status": "fail", "message": "Incorrect email or password"}

    @pytest.mark.asyncio
    async def test_login_missing_password(self, client: AsyncClient) -> None:
        response = await client.post("/api/v1/users/login", json={"email": "jonas@example.com"})

        assert response.status_code == 400
        assert response.json()["message"] == "Please provide email and password"

    @pytest.mark.asyncio
    async def test_logout_replaces_cookie(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/users/logout")

        assert response.status_code == 200
        cookie = response.headers["set-cookie"]
        assert cookie.startswith("jwt=loggedout")
        assert "httponly" in cookie.lower()
        assert "secure" not in cookie.lower()

    @pytest.mark.asyncio
    async def test_logout_cookie_secure_in_production(
        self, client: AsyncClient, app: Litestar
    ) -> None:
        app.state.settings = app.state.settings.model_copy(
            update={"environment": Environment.PRODUCTION}
        )

        response = await client.get("/api/v1/users/logout")

        cookie = response.headers["set-cookie"]
        assert cookie.startswith("jwt=loggedout")
        assert "secure" in cookie.lower()


class TestProtectedRoutes:
    """Tests for the authentication pipeline over HTTP."""

    @pytest.mark.asyncio
    async def test_me_with_bearer(self, client: AsyncClient) -> None:
        token = (await signup(client))["token"]

        response = await client.get("/api/v1/users/me", headers=bearer(token))

        assert response.status_code == 200
        assert response.json()["data"]["data"]["email"] == "jonas@example.com"

    @pytest.mark.asyncio
    async def test_me_with_cookie(self, client: AsyncClient) -> None:
        token = (await signup(client))["token"]

        response = await client.get("/api/v1/users/me", headers={"Cookie": f"jwt={token}"})

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_me_without_token(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/users/me")

        assert response.status_code == 401
        assert response.json()["message"] == "You are not logged in! Please log in to get access."

    @pytest.mark.asyncio
    async def test_invalid_token(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/users/me", headers=bearer("invalid.token.here"))

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid token. Please log in again!"

    @pytest.mark.asyncio
    async def test_deactivated_account_token(self, client: AsyncClient) -> None:
        """Test that a token stops working once its account is deactivated."""
        token = (await signup(client))["token"]

        deleted = await client.delete("/api/v1/users/deleteMe", headers=bearer(token))
        response = await client.get("/api/v1/users/me", headers=bearer(token))

        assert deleted.status_code == 204
        assert response.status_code == 401
        assert (
            response.json()["message"] == "The user belonging to this token does no longer exist."
        )

    @pytest.mark.asyncio
    async def test_deactivated_account_cannot_log_in(self, client: AsyncClient) -> None:
        token = (await signup(client))["token"]
        await client.delete("/api/v1/users/deleteMe", headers=bearer(token))

        response = await client.post(
            "/api/v1/users/login",
            json={"email": "jonas@example.com", "password": TEST_PASSWORD},
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_token_issued_before_password_change(self, client: AsyncClient) -> None:
        """Test that changing the password revokes tokens issued earlier."""
        body = await signup(client)
        now = int(datetime.now(timezone.utc).timestamp())
        old_token = pyjwt.encode(
            {"sub": body["data"]["user"]["id"], "iat": now - 3600, "exp": now + 3600},
            TEST_SECRET,
            algorithm="HS256",
        )

        before = await client.get("/api/v1/users/me", headers=bearer(old_token))
        changed = await client.patch(
            "/api/v1/users/updateMyPassword",
            json={
                "passwordCurrent": TEST_PASSWORD,
                "password": "newpass123",
                "passwordConfirm": "newpass123",
            },
            headers=bearer(body["token"]),
        )
        after = await client.get("/api/v1/users/me", headers=bearer(old_token))
        fresh = await client.get("/api/v1/users/me", headers=bearer(changed.json()["token"]))

        assert before.status_code == 200
        assert changed.status_code == 200
        assert after.status_code == 401
        assert after.json()["message"] == "User recently changed password! Please log in again."
        assert fresh.status_code == 200


class TestSelfService:
    """Tests for profile and password updates."""

    @pytest.mark.asyncio
    async def test_update_me(self, client: AsyncClient) -> None:
        token = (await signup(client))["token"]

        response = await client.patch(
            "/api/v1/users/updateMe",
            json={"name": "Jonas S", "email": "JONAS.S@example.com"},
            headers=bearer(token),
        )

        assert response.status_code == 200
        user = response.json()["data"]["user"]
        assert user["name"] == "Jonas S"
        assert user["email"] == "jonas.s@example.com"

    @pytest.mark.asyncio
    async def test_update_me_rejects_password(self, client: AsyncClient) -> None:
        token = (await signup(client))["token"]

        response = await client.patch(
            "/api/v1/users/updateMe",
            json={"password": "newpass123", "passwordConfirm": "newpass123"},
            headers=bearer(token),
        )

        assert response.status_code == 400
        assert response.json()["message"] == (
            "This route is not for password updates. Please use /updateMyPassword."
        )

    @pytest.mark.asyncio
    async def test_update_my_password(self, client: AsyncClient) -> None:
        token = (await signup(client))["token"]

        response = await client.patch(
            "/api/v1/users/updateMyPassword",
            json={
                "passwordCurrent": TEST_PASSWORD,
                "password": "newpass123",
                "passwordConfirm": "newpass123",
            },
            headers=bearer(token),
        )
        login = await client.post(
            "/api/v1/users/login",
            json={"email": "jonas@example.com", "password": "newpass123"},
        )

        assert response.status_code == 200
        assert response.json()["token"]
        assert login.status_code == 200

    @pytest.mark.asyncio
    async def test_update_my_password_wrong_current(self, client: AsyncClient) -> None:
        token = (await signup(client))["token"]

        response = await client.patch(
            "/api/v1/users/updateMyPassword",
            json={
                "passwordCurrent": "wrong-password",
                "password": "newpass123",
                "passwordConfirm": "newpass123",
            },
            headers=bearer(token),
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Your current password is wrong."

    @pytest.mark.asyncio
    async def test_update_me_with_photo(self, client: AsyncClient, settings: Settings) -> None:
        body = await signup(client)
        user_id = body["data"]["user"]["id"]

        response = await client.patch(
            "/api/v1/users/updateMe",
            data={"name": "Jonas S"},
            files={"photo": ("me.png", png_bytes((800, 600)), "image/png")},
            headers=bearer(body["token"]),
        )

        assert response.status_code == 200, response.text
        user = response.json()["data"]["user"]
        assert user["name"] == "Jonas S"
        assert re.fullmatch(rf"user-{user_id}-\d+\.jpeg", user["photo"])
        with Image.open(Path(settings.user_photo_dir) / user["photo"]) as stored:
            assert stored.format == "JPEG"
            assert stored.size == (500, 500)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("content", "content_type"),
        [(b"plain text", "text/plain"), (b"not really a png", "image/png")],
    )
    async def test_update_me_rejects_non_images(
        self, client: AsyncClient, content: bytes, content_type: str
    ) -> None:
        token = (await signup(client))["token"]

        response = await client.patch(
            "/api/v1/users/updateMe",
            files={"photo": ("upload", content, content_type)},
            headers=bearer(token),
        )
        me = await client.get("/api/v1/users/me", headers=bearer(token))

        assert response.status_code == 400
        assert response.json()["message"] == "Not an image! Please upload only images."
        assert me.json()["data"]["data"]["photo"] == "default.jpg"

    @pytest.mark.asyncio
    async def test_markup_in_text_fields_is_neutralized(self, client: AsyncClient) -> None:
        password = "pa<ss1234"
        body = await signup(client, name="<b>Jonas</b>", password=password)
        login = await client.post(
            "/api/v1/users/login",
            json={"email": "jonas@example.com", "password": password},
        )

        assert body["data"]["user"]["name"] == "&lt;b>Jonas&lt;/b>"
        assert login.status_code == 200


class TestPasswordReset:
    """Tests for the forgot/reset password flow."""

    @pytest.mark.asyncio
    async def test_reset_flow(self, client: AsyncClient, mock_email_service: AsyncMock) -> None:
        await signup(client)

        forgot = await client.post(
            "/api/v1/users/forgotPassword", json={"email": "jonas@example.com"}
        )
        _, url = mock_email_service.send_password_reset.call_args.args
        reset_path = url.removeprefix("http://test")
        reset = await client.patch(
            reset_path, json={"password": "newpass123", "passwordConfirm": "newpass123"}
        )
        reused = await client.patch(
            reset_path, json={"password": "other1234", "passwordConfirm": "other1234"}
        )
        login = await client.post(
            "/api/v1/users/login",
            json={"email": "jonas@example.com", "password": "newpass123"},
        )

        assert forgot.status_code == 200
        assert forgot.json() == {"status": "success", "message": "Token sent to email!"}
        assert reset_path.startswith("/api/v1/users/resetPassword/")
        assert reset.status_code == 200
        assert reused.status_code == 400
        assert reused.json()["message"] == "Token is invalid or has expired"
        assert login.status_code == 200

    @pytest.mark.asyncio
    async def test_altered_token(self, client: AsyncClient, mock_email_service: AsyncMock) -> None:
        await signup(client)
        await client.post("/api/v1/users/forgotPassword", json={"email": "jonas@example.com"})
        _, url = mock_email_service.send_password_reset.call_args.args
        token = url.rsplit("/", 1)[1]
        altered = token[:-1] + ("0" if token[-1] != "0" else "1")

        response = await client.patch(
            f"/api/v1/users/resetPassword/{altered}",
            json={"password": "newpass123", "passwordConfirm": "newpass123"},
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_expired_token(self, client: AsyncClient, mock_email_service: AsyncMock) -> None:
        """Test that the stored expiry is enforced by the lookup query."""
        await signup(client)
        await client.post("/api/v1/users/forgotPassword", json={"email": "jonas@example.com"})
        _, url = mock_email_service.send_password_reset.call_args.args

        async with get_db_manager().session() as session:
            user = await UserRepository(session).get_active_user_by_email("jonas@example.com")
            assert user is not None
            assert user.password_reset_token is not None
            user.password_reset_expires = datetime.now(timezone.utc) - timedelta(seconds=1)

        response = await client.patch(
            url.removeprefix("http://test"),
            json={"password": "newpass123", "passwordConfirm": "newpass123"},
        )
        login = await client.post(
            "/api/v1/users/login",
            json={"email": "jonas@example.com", "password": TEST_PASSWORD},
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Token is invalid or has expired"
        assert login.status_code == 200

    @pytest.mark.asyncio
    async def test_forgot_unknown_email(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/v1/users/forgotPassword", json={"email": "nobody@example.com"}
        )

        assert response.status_code == 404
        assert response.json()["message"] == "There is no user with that email address."


class TestAdministration:
    """Tests for admin-only user routes."""

    @pytest.mark.asyncio
    async def test_regular_user_forbidden(self, client: AsyncClient) -> None:
        token = (await signup(client))["token"]

        response = await client.get("/api/v1/users", headers=bearer(token))

        assert response.status_code == 403
        assert response.json()["message"] == "You do not have permission to perform this action"

    @pytest.mark.asyncio
    async def test_admin_lists_and_edits_users(self, client: AsyncClient) -> None:
        user_body = await signup(client)
        admin = await signup_with_role(client, "admin@example.com", Role.ADMIN)
        user_id = user_body["data"]["user"]["id"]

        listed = await client.get("/api/v1/users", headers=bearer(admin))
        edited = await client.patch(
            f"/api/v1/users/{user_id}", json={"role": "guide"}, headers=bearer(admin)
        )

        assert listed.status_code == 200
        assert listed.json()["results"] == 2
        assert edited.status_code == 200
        assert edited.json()["data"]["data"]["role"] == "guide"

    @pytest.mark.asyncio
    async def test_create_user_points_to_signup(self, client: AsyncClient) -> None:
        admin = await signup_with_role(client, "admin@example.com", Role.ADMIN)

        response = await client.post("/api/v1/users", json={}, headers=bearer(admin))

        assert response.status_code == 400
        assert response.json()["message"] == (
            "This route is not defined! Please use /signup instead"
        )

    @pytest.mark.asyncio
    async def test_admin_deletes_user(self, client: AsyncClient) -> None:
        user_body = await signup(client)
        admin = await signup_with_role(client, "admin@example.com", Role.ADMIN)
        user_id = user_body["data"]["user"]["id"]

        deleted = await client.delete(f"/api/v1/users/{user_id}", headers=bearer(admin))
        fetched = await client.get(f"/api/v1/users/{user_id}", headers=bearer(admin))

        assert deleted.status_code == 204
        assert fetched.status_code == 404


class TestUnmatchedRoutes:
    """Tests for requests nothing handles."""

    @pytest.mark.asyncio
    async def test_unknown_api_route(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/nothing")

        assert response.status_code == 404
        body = response.json()
        assert body["status"] == "fail"
        assert body["message"] == "Can't find /api/v1/nothing on this server!"

    @pytest.mark.asyncio
    async def test_health(self, client: AsyncClient) -> None:
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "database": True}
