from enum import Enum


class Environment(str, Enum):
    """Runtime mode."""

    DEVELOPMENT = "development"
    PRODUCTION = "production"


class Role(str, Enum):
    """User roles, ordered from least to most privileged."""

    USER = "user"
    GUIDE = "guide"
    LEAD_GUIDE = "lead-guide"
    ADMIN = "admin"


# Route allow-sets
ADMINS = frozenset({Role.ADMIN})
TOUR_MANAGERS = frozenset({Role.ADMIN, Role.LEAD_GUIDE})
STAFF = frozenset({Role.ADMIN, Role.LEAD_GUIDE, Role.GUIDE})
REVIEWERS = frozenset({Role.USER})
REVIEW_EDITORS = frozenset({Role.USER, Role.ADMIN})


class Difficulty(str, Enum):
    """Tour difficulty levels."""

    EASY = "easy"
    MEDIUM = "medium"
    DIFFICULT = "difficult"


class DistanceUnit(str, Enum):
    """Units accepted by the geospatial tour queries."""

    MILES = "mi"
    KILOMETERS = "km"

    @property
    def earth_radius(self) -> float:
        """Earth radius expressed in this unit."""
        return 3963.2 if self is DistanceUnit.MILES else 6378.1

    @property
    def per_meter(self) -> float:
        """Conversion factor from meters to this unit."""
        return 0.000621371 if self is DistanceUnit.MILES else 0.001
