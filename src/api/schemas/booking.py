"""Booking schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated
from uuid import UUID

import msgspec
from msgspec import UNSET, UnsetType

from .common import CamelStruct
from .tour import TourSummary
from .user import UserSummary

Price = Annotated[float, msgspec.Meta(gt=0)]


class BookingCreateRequest(CamelStruct):
    """Manual booking created by staff."""

    tour: UUID
    user: UUID
    price: Price
    paid: bool = True


class BookingUpdateRequest(CamelStruct):
    price: Price | UnsetType = UNSET
    paid: bool | UnsetType = UNSET


class BookingResponse(CamelStruct):
    id: UUID
    tour: TourSummary
    user: UserSummary
    price: float
    paid: bool
    created_at: datetime
