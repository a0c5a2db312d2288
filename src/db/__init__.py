"""Database module.

Provides the async engine and session manager, models and repositories.
"""

from .models import Base, Booking, Review, Tour, User
from .session import DatabaseManager, is_sqlite

__all__ = [
    # Models
    "Base",
    "Booking",
    "Review",
    "Tour",
    "User",
    # Session management
    "DatabaseManager",
    "is_sqlite",
]
