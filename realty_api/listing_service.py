"""In-memory listing service backing the public API routes."""

from __future__ import annotations

import logging
from itertools import count

from fastapi import HTTPException

from .models import BlogPost, Developer, ListingStatus, Property, PropertyCreate, TeamMember
from .service_base import BaseService

_SEED_PROPERTIES = [
    PropertyCreate(
        title="Sea-view apartment",
        description="Two-bedroom apartment on the waterfront.",
        price=420000,
        city="Limassol",
        address="12 Seafront Ave",
        bedrooms=2,
        bathrooms=2,
        area=95,
        featured=True,
    ),
    PropertyCreate(
        title="Family villa with garden",
        price=890000,
        city="Paphos",
        bedrooms=4,
        bathrooms=3,
        area=240,
        featured=True,
    ),
    PropertyCreate(
        title="City studio",
        price=1100,
        city="Nicosia",
        bedrooms=1,
        bathrooms=1,
        area=38,
        status="for_rent",
    ),
    PropertyCreate(
        title="Marina Towers, phase 2",
        description="Off-plan residences with completion in 2027.",
        price=350000,
        city="Limassol",
        bedrooms=1,
        bathrooms=1,
        area=70,
        status="off_plan",
        developer_id=1,
    ),
]

_SEED_BLOG_POSTS = [
    BlogPost(
        id=1,
        title="Buying off-plan: what to check",
        slug="buying-off-plan",
        excerpt="Payment schedules, permits and completion guarantees.",
        published_at="2024-04-02",
    ),
    BlogPost(
        id=2,
        title="Rental yields by city",
        slug="rental-yields-by-city",
        published_at="2024-05-17",
    ),
]

_SEED_DEVELOPERS = [
    Developer(id=1, name="Marina Developments", projects_count=3),
    Developer(id=2, name="Cedar Homes", projects_count=5),
]

_SEED_TEAM = [
    TeamMember(id=1, name="Elena Georgiou", role="Managing Broker"),
    TeamMember(id=2, name="Andreas Christou", role="Sales Agent"),
]


class ListingService(BaseService):
    """Holds listings in process memory; content resets on restart."""

    def __init__(self, logger: logging.Logger | None = None, *, seed: bool = True):
        super().__init__(logger=logger)
        self._ids = count(1)
        self._properties: dict[int, Property] = {}
        self._blog_posts: list[BlogPost] = list(_SEED_BLOG_POSTS) if seed else []
        self._developers: list[Developer] = list(_SEED_DEVELOPERS) if seed else []
        self._team: list[TeamMember] = list(_SEED_TEAM) if seed else []
        if seed:
            for listing in _SEED_PROPERTIES:
                self.create_property(listing)

    def list_properties(
        self,
        *,
        city: str | None = None,
        min_price: float | None = None,
        max_price: float | None = None,
        bedrooms: int | None = None,
        status: ListingStatus | None = None,
    ) -> list[Property]:
        results = []
        for listing in self._properties.values():
            if city and listing.city.lower() != city.lower():
                continue
            if min_price is not None and listing.price < min_price:
                continue
            if max_price is not None and listing.price > max_price:
                continue
            if bedrooms is not None and listing.bedrooms < bedrooms:
                continue
            if status and listing.status != status:
                continue
            results.append(listing)
        return results

    def featured_properties(self) -> list[Property]:
        return [listing for listing in self._properties.values() if listing.featured]

    def get_property(self, property_id: int) -> Property:
        listing = self._properties.get(property_id)
        if listing is None:
            raise HTTPException(status_code=404, detail=f"Property {property_id} not found")
        return listing

    def create_property(self, payload: PropertyCreate) -> Property:
        listing = Property(id=next(self._ids), **payload.model_dump())
        self._properties[listing.id] = listing
        self.logger.info("Created property %s (%s)", listing.id, listing.title)
        return listing

    def list_blog_posts(self) -> list[BlogPost]:
        return list(self._blog_posts)

    def list_developers(self) -> list[Developer]:
        return list(self._developers)

    def list_team(self) -> list[TeamMember]:
        return list(self._team)
