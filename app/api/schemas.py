"""
API Request and Response Schemas

This module defines all Pydantic models for API requests and responses.

Wire names follow the existing clients: the redirect target travels as
"redirect" and the owner as "uid".
"""

from pydantic import BaseModel, Field

from app.db.models import Slug


class SlugResponse(BaseModel):
    """A slug as returned to clients."""
    id: str = Field(..., description="Opaque slug identifier")
    slug: str = Field(..., description="Short token")
    redirect: str = Field(..., description="Redirect target")
    uid: str = Field(..., description="Owning user id")

    @classmethod
    def from_slug(cls, slug: Slug) -> "SlugResponse":
        return cls(id=slug.id, slug=slug.slug, redirect=slug.domain, uid=slug.userid)


class SlugCreateRequest(BaseModel):
    """Request body for slug creation. Values are stored exactly as sent."""
    slug: str = Field(..., min_length=1, max_length=255, description="Short token")
    redirect: str = Field(..., min_length=1, max_length=2048, description="Redirect target")
    uid: str = Field(..., min_length=1, max_length=128, description="Owning user id")


class SlugUpdateRequest(SlugCreateRequest):
    """Request body for slug update."""
    id: str = Field(..., min_length=1, description="Identifier of the slug to update")


class EmptyResponse(BaseModel):
    """Empty JSON object returned by update and delete."""


class ErrorResponse(BaseModel):
    """Body of every error response."""
    err: str
    code: str
