"""Common schemas for the review workflow API."""

from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model exchanging camelCase JSON with the admin client."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str
    detail: Optional[str] = None
    # Publish gate verdict, only on publish_blocked errors
    verdict: Optional[str] = None


class Pagination(CamelModel):
    page: int
    page_size: int
    page_count: int
    total: int
