"""
FastAPI Endpoints for the Slug Service

This module defines all REST API endpoints with minimal logic.
Endpoints only handle:
- Request parsing (Pydantic models, query parameters)
- Request throttling
- Delegating to the slug service

Errors raised by the service are turned into responses by the handlers in
app.api.errors: 400 for unknown users, rate limits, unknown tokens and
malformed input; 500 for store and identity provider failures.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.schemas import (
    EmptyResponse,
    ErrorResponse,
    SlugCreateRequest,
    SlugResponse,
    SlugUpdateRequest,
)
from app.core.exceptions import ValidationError
from app.core.rate_limit import THROTTLES, limiter
from app.core.validators import parse_slug_id
from app.db.gateway import SlugStoreGateway
from app.db.models import Slug
from app.db.session import get_session
from app.services.slug_service import SlugService

router = APIRouter(
    responses={
        400: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    }
)


def get_slug_service(
    request: Request,
    session: AsyncSession = Depends(get_session),
) -> SlugService:
    """Build the slug service from the request session and shared clients."""
    clients = request.app.state.clients
    return SlugService(
        SlugStoreGateway(session, timeout=clients.store_timeout),
        clients.identity,
        rate_limit_count=clients.rate_limit_count,
        rate_limit_window=clients.rate_limit_window,
    )


def _required(field: str, *candidates: Optional[str]) -> str:
    # First non-empty value among the current parameter name and its legacy alias
    for value in candidates:
        if value:
            return value
    raise ValidationError(field, "parameter is required")


@router.get(
    "/slugs",
    response_model=list[SlugResponse],
    summary="List a user's slugs",
)
@limiter.limit(THROTTLES["read"])
async def list_slugs(
    request: Request,  # Required for throttling (slowapi expects parameter named 'request')
    user_id: Optional[str] = Query(None, alias="userId"),
    legacy_user_id: Optional[str] = Query(None, alias="userid", include_in_schema=False),
    service: SlugService = Depends(get_slug_service),
) -> list[SlugResponse]:
    slugs = await service.list_slugs(_required("userId", user_id, legacy_user_id))
    return [SlugResponse.from_slug(slug) for slug in slugs]


@router.get(
    "/slug",
    response_model=SlugResponse,
    summary="Resolve a token",
    description="Returns the slug a token points to and records a hit. The client performs the redirect.",
)
@limiter.limit(THROTTLES["read"])
async def resolve_slug(
    request: Request,
    token: Optional[str] = Query(None),
    legacy_token: Optional[str] = Query(None, alias="slug", include_in_schema=False),
    service: SlugService = Depends(get_slug_service),
) -> SlugResponse:
    slug = await service.resolve_slug(_required("token", token, legacy_token))
    return SlugResponse.from_slug(slug)


@router.post(
    "/slugs",
    response_model=SlugResponse,
    summary="Create a slug",
)
@limiter.limit(THROTTLES["write"])
async def create_slug(
    request: Request,
    body: SlugCreateRequest,
    service: SlugService = Depends(get_slug_service),
) -> SlugResponse:
    slug = await service.create_slug(body.uid, body.slug, body.redirect)
    return SlugResponse.from_slug(slug)


@router.delete(
    "/slugs",
    response_model=EmptyResponse,
    summary="Delete a slug",
)
@limiter.limit(THROTTLES["write"])
async def delete_slug(
    request: Request,
    slug_id: Optional[str] = Query(None, alias="id"),
    user_id: Optional[str] = Query(None, alias="userId"),
    legacy_user_id: Optional[str] = Query(None, alias="userid", include_in_schema=False),
    service: SlugService = Depends(get_slug_service),
) -> EmptyResponse:
    uid = _required("userId", user_id, legacy_user_id)
    await service.delete_slug(parse_slug_id(slug_id), uid)
    return EmptyResponse()


@router.put(
    "/slugs",
    response_model=EmptyResponse,
    summary="Update a slug",
)
@limiter.limit(THROTTLES["write"])
async def update_slug(
    request: Request,
    body: SlugUpdateRequest,
    service: SlugService = Depends(get_slug_service),
) -> EmptyResponse:
    slug = Slug(id=parse_slug_id(body.id), slug=body.slug, domain=body.redirect, userid=body.uid)
    await service.update_slug(slug)
    return EmptyResponse()
