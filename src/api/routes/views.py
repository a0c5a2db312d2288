"""Server-rendered pages."""

from __future__ import annotations

import logging
from typing import Annotated

from litestar import Controller, Response, get, post
from litestar.enums import RequestEncodingType
from litestar.params import Body, Parameter
from litestar.response import Redirect, Template
from litestar.status_codes import HTTP_303_SEE_OTHER

from src.api.schemas import AccountForm, parse_id
from src.api.security import auth_guard, optional_auth_guard
from src.api.services.booking import BookingService
from src.api.services.tour import TourService
from src.api.services.user import UserService
from src.db.models import User

logger = logging.getLogger(__name__)


def page(template_name: str, title: str, user: User | None, **context: object) -> Template:
    return Template(template_name=template_name, context={"title": title, "user": user, **context})


class ViewController(Controller):
    """Public pages; the visitor is identified when credentials are valid."""

    path = "/"
    guards = [optional_auth_guard]
    include_in_schema = False

    @get("/")
    async def overview(
        self,
        optional_user: User | None,
        tour_service: TourService,
        booking_service: BookingService,
        tour: str | None = None,
        checkout_user: Annotated[str | None, Parameter(query="user")] = None,
        price: float | None = None,
    ) -> Response:
        """All tours. Also records a booking when returning from checkout."""
        if tour is not None and checkout_user is not None and price is not None:
            buyer_id = parse_id(checkout_user, "user")
            if optional_user is not None and buyer_id == optional_user.id:
                await booking_service.complete_checkout(parse_id(tour, "tour"), buyer_id, price)
            else:
                logger.warning(f"Ignoring checkout completion for tour {tour} by another user")
            return Redirect(path="/", status_code=HTTP_303_SEE_OTHER)

        tours = await tour_service.list_all()
        return page("overview.html", "All Tours", optional_user, tours=tours)

    @get("/tour/{slug:str}")
    async def tour_page(
        self,
        slug: str,
        optional_user: User | None,
        tour_service: TourService,
    ) -> Response:
        """Tour detail page with reviews."""
        tour = await tour_service.get_tour_by_slug(slug)
        return page("tour.html", f"{tour.name} Tour", optional_user, tour=tour)

    @get("/login")
    async def login_page(self, optional_user: User | None) -> Response:
        return page("login.html", "Log into your account", optional_user)


class AccountViewController(Controller):
    """Pages for the logged-in user."""

    path = "/"
    guards = [auth_guard]
    include_in_schema = False

    @get("/me")
    async def account_page(self, current_user: User) -> Response:
        return page("account.html", "Your account", current_user)

    @get("/my-tours")
    async def my_tours(self, current_user: User, booking_service: BookingService) -> Response:
        """Tours the logged-in user has booked."""
        tours = await booking_service.list_booked_tours(current_user)
        return page("overview.html", "My Tours", current_user, tours=tours)

    @post("/submit-user-data", status_code=200)
    async def submit_user_data(
        self,
        data: Annotated[AccountForm, Body(media_type=RequestEncodingType.URL_ENCODED)],
        current_user: User,
        user_service: UserService,
    ) -> Response:
        """Account form submission without JavaScript."""
        updated = await user_service.update_me(current_user, name=data.name, email=data.email)
        return page("account.html", "Your account", updated)
