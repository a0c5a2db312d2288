"""User account API routes: authentication, self-service and admin."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import timedelta
from typing import Any

import msgspec
from litestar import Controller, MediaType, Request, Response, delete, get, patch, post
from litestar.datastructures import UploadFile
from litestar.enums import RequestEncodingType
from litestar.status_codes import HTTP_200_OK, HTTP_201_CREATED

from src.api.schemas import (
    AdminUpdateUserRequest,
    ForgotPasswordRequest,
    LoginRequest,
    ResetPasswordRequest,
    SignupRequest,
    UpdateMeRequest,
    UpdatePasswordRequest,
    UserResponse,
    dump,
    dump_many,
    many,
    parse_id,
    single,
)
from src.api.security import auth_guard, clear_session_cookie, restrict_to, set_session_cookie
from src.api.services.auth import AuthService
from src.api.services.photos import PhotoService
from src.api.services.user import UserService
from src.core.config import Settings
from src.core.enums import ADMINS
from src.core.exceptions import ValidationFailure
from src.db.models import User
from src.db.query import QueryParams

logger = logging.getLogger(__name__)

PASSWORD_ROUTE_MESSAGE = "This route is not for password updates. Please use /updateMyPassword."


def site_origin(request: Request) -> str:
    """Scheme and host the client used, without trailing slash."""
    return str(request.base_url).rstrip("/")


def send_token(
    user: User,
    token: str,
    settings: Settings,
    status_code: int = HTTP_200_OK,
) -> Response[dict[str, Any]]:
    """Respond with the token in the body and in the session cookie."""
    response = Response(
        content={"status": "success", "token": token, "data": {"user": dump(UserResponse, user)}},
        status_code=status_code,
        media_type=MediaType.JSON,
    )
    set_session_cookie(
        response,
        token,
        lifetime=timedelta(days=settings.jwt_cookie_expires_in_days),
        secure=settings.is_production,
    )
    return response


async def read_update_me(request: Request) -> tuple[UpdateMeRequest, UploadFile | None]:
    """Decode an updateMe body sent as JSON or as a multipart form.

    Returns:
        Validated fields and the uploaded photo, if any.
    """
    if request.content_type[0] == RequestEncodingType.MULTI_PART:
        form = await request.form()
        photo = form.get("photo")
        fields = {key: value for key, value in form.items() if isinstance(value, str)}
        data = msgspec.convert(fields, UpdateMeRequest)
        return data, photo if isinstance(photo, UploadFile) else None

    body = await request.json()
    return msgspec.convert(body or {}, UpdateMeRequest), None


class AuthController(Controller):
    """Signup, login and password management."""

    path = "/api/v1/users"
    tags: Sequence[str] | None = ["Users"]

    @post("/signup", status_code=HTTP_201_CREATED)
    async def signup(
        self,
        data: SignupRequest,
        request: Request,
        auth_service: AuthService,
        settings: Settings,
    ) -> Response[dict[str, Any]]:
        """Register a new account and log it in."""
        user, token = await auth_service.signup(
            name=data.name,
            email=data.email,
            password=data.password,
            welcome_url=f"{site_origin(request)}/me",
        )
        return send_token(user, token, settings, HTTP_201_CREATED)

    @post("/login", status_code=HTTP_200_OK)
    async def login(
        self,
        data: LoginRequest,
        auth_service: AuthService,
        settings: Settings,
    ) -> Response[dict[str, Any]]:
        """Exchange email and password for a session."""
        user, token = await auth_service.login(email=data.email, password=data.password)
        return send_token(user, token, settings)

    @get("/logout")
    async def logout(self, settings: Settings) -> Response[dict[str, Any]]:
        """Replace the session cookie with a short-lived placeholder."""
        response = Response(content={"status": "success"}, media_type=MediaType.JSON)
        clear_session_cookie(response, secure=settings.is_production)
        return response

    @post("/forgotPassword", status_code=HTTP_200_OK)
    async def forgot_password(
        self,
        data: ForgotPasswordRequest,
        request: Request,
        auth_service: AuthService,
    ) -> dict[str, Any]:
        """E-mail a password reset link."""
        origin = site_origin(request)
        await auth_service.forgot_password(
            data.email,
            lambda token: f"{origin}/api/v1/users/resetPassword/{token}",
        )
        return {"status": "success", "message": "Token sent to email!"}

    @patch("/resetPassword/{token:str}")
    async def reset_password(
        self,
        token: str,
        data: ResetPasswordRequest,
        auth_service: AuthService,
        settings: Settings,
    ) -> Response[dict[str, Any]]:
        """Set a new password with a reset token and log in."""
        user, jwt_token = await auth_service.reset_password(token, data.password)
        return send_token(user, jwt_token, settings)

    @patch("/updateMyPassword", guards=[auth_guard])
    async def update_my_password(
        self,
        data: UpdatePasswordRequest,
        current_user: User,
        auth_service: AuthService,
        settings: Settings,
    ) -> Response[dict[str, Any]]:
        """Change the password of the logged-in user."""
        token = await auth_service.update_password(
            current_user, current=data.password_current, new=data.password
        )
        return send_token(current_user, token, settings)


class UserController(Controller):
    """Self-service profile routes and user administration."""

    path = "/api/v1/users"
    tags: Sequence[str] | None = ["Users"]
    guards = [auth_guard]

    @get("/me")
    async def get_me(self, current_user: User) -> dict[str, Any]:
        """Get the logged-in user's profile."""
        return single(dump(UserResponse, current_user))

    @patch("/updateMe")
    async def update_me(
        self,
        request: Request,
        current_user: User,
        user_service: UserService,
        photo_service: PhotoService,
    ) -> dict[str, Any]:
        """Update the logged-in user's name, email or photo.

        Accepts JSON, or a multipart form whose ``photo`` part is resized
        and stored as the new profile picture.
        """
        data, upload = await read_update_me(request)
        if data.has_password_fields:
            raise ValidationFailure(PASSWORD_ROUTE_MESSAGE)

        photo = None
        if upload is not None:
            photo = await photo_service.store_user_photo(
                current_user.id, await upload.read(), upload.content_type
            )

        updated = await user_service.update_me(
            current_user, name=data.name, email=data.email, photo=photo
        )
        return {"status": "success", "data": {"user": dump(UserResponse, updated)}}

    @delete("/deleteMe")
    async def delete_me(self, current_user: User, user_service: UserService) -> None:
        """Deactivate the logged-in user's account."""
        await user_service.deactivate(current_user)

    @get("", guards=[restrict_to(ADMINS)])
    async def list_users(self, request: Request, user_service: UserService) -> dict[str, Any]:
        """List active users."""
        params = QueryParams.parse(request.query_params)
        users = await user_service.list_users(limit=params.limit, offset=params.offset)
        return many(dump_many(UserResponse, users))

    @post("", guards=[restrict_to(ADMINS)])
    async def create_user(self) -> None:
        """Accounts are created through signup only."""
        raise ValidationFailure("This route is not defined! Please use /signup instead")

    @get("/{user_id:str}", guards=[restrict_to(ADMINS)])
    async def get_user(self, user_id: str, user_service: UserService) -> dict[str, Any]:
        return single(dump(UserResponse, await user_service.get_user(parse_id(user_id))))

    @patch("/{user_id:str}", guards=[restrict_to(ADMINS)])
    async def update_user(
        self,
        user_id: str,
        data: AdminUpdateUserRequest,
        user_service: UserService,
    ) -> dict[str, Any]:
        """Edit a user's profile or role."""
        fields = data.sent_fields()
        if "role" in fields:
            fields["role"] = fields["role"].value
        updated = await user_service.update_user(parse_id(user_id), **fields)
        return single(dump(UserResponse, updated))

    @delete("/{user_id:str}", guards=[restrict_to(ADMINS)])
    async def delete_user(self, user_id: str, user_service: UserService) -> None:
        await user_service.delete_user(parse_id(user_id))
