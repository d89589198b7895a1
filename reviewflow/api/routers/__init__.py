"""API routers for the review workflow."""

from . import health
from . import reviews
from . import field_comments

__all__ = [
    "health",
    "reviews",
    "field_comments",
]
