"""
FastAPI route handlers for the Realty API.

Thin handlers that delegate to ListingService. Response caching is not
handled here: GET routes under the API prefix are cached transparently by
ResponseCacheMiddleware.
"""

import logging

from fastapi import APIRouter, Depends, Request

from .listing_service import ListingService
from .models import BlogPost, Developer, ListingStatus, Property, PropertyCreate, TeamMember

logger = logging.getLogger(__name__)

router = APIRouter()


def get_listings(request: Request) -> ListingService:
    """Resolve the ListingService owned by the running application."""
    return request.app.state.listings


@router.get("/api/properties")
async def list_properties(
    city: str | None = None,
    min_price: float | None = None,
    max_price: float | None = None,
    bedrooms: int | None = None,
    status: ListingStatus | None = None,
    listings: ListingService = Depends(get_listings),
) -> list[Property]:
    """
    List properties, optionally filtered.

    Every distinct query string is a separate cache entry.
    """
    return listings.list_properties(
        city=city,
        min_price=min_price,
        max_price=max_price,
        bedrooms=bedrooms,
        status=status,
    )


@router.get("/api/properties/featured")
async def featured_properties(
    listings: ListingService = Depends(get_listings),
) -> list[Property]:
    return listings.featured_properties()


@router.get("/api/properties/{property_id}")
async def get_property(
    property_id: int,
    listings: ListingService = Depends(get_listings),
) -> Property:
    """
    Fetch a single property.

    Raises:
        HTTPException: 404 when the id is unknown (never cached)
    """
    return listings.get_property(property_id)


@router.post("/api/properties", status_code=201)
async def create_property(
    payload: PropertyCreate,
    listings: ListingService = Depends(get_listings),
) -> Property:
    return listings.create_property(payload)


@router.get("/api/blog")
async def list_blog_posts(listings: ListingService = Depends(get_listings)) -> list[BlogPost]:
    return listings.list_blog_posts()


@router.get("/api/developers")
async def list_developers(listings: ListingService = Depends(get_listings)) -> list[Developer]:
    return listings.list_developers()


@router.get("/api/team")
async def list_team(listings: ListingService = Depends(get_listings)) -> list[TeamMember]:
    return listings.list_team()


@router.get("/health")
async def health() -> dict[str, str]:
    """
    Health check endpoint.

    Lives outside the API prefix so it is never served from cache.
    """
    return {"status": "ok", "service": "realty-api"}
