"""
Pydantic models for the Realty API.

Request and response schemas for the listing endpoints, plus the option
record accepted by the data-fetching layer.
"""

from typing import Literal

from pydantic import BaseModel, Field

ListingStatus = Literal["for_sale", "for_rent", "off_plan", "sold"]


class PropertyCreate(BaseModel):
    """
    Request model for creating a property listing.

    Attributes:
        title: Listing headline
        description: Free-form listing text
        price: Asking price in the listing currency
        city: City the property is located in
        address: Street address (optional)
        bedrooms: Number of bedrooms
        bathrooms: Number of bathrooms
        area: Floor area in square metres
        status: Market status of the listing
        featured: Whether the listing shows up on the featured endpoint
        developer_id: Developer for off-plan projects (optional)
    """

    title: str = Field(min_length=1)
    description: str = ""
    price: float = Field(ge=0)
    city: str
    address: str | None = None
    bedrooms: int = Field(default=0, ge=0)
    bathrooms: int = Field(default=0, ge=0)
    area: float | None = Field(default=None, gt=0)
    status: ListingStatus = "for_sale"
    featured: bool = False
    developer_id: int | None = None


class Property(PropertyCreate):
    id: int


class BlogPost(BaseModel):
    id: int
    title: str
    slug: str
    excerpt: str = ""
    published_at: str


class Developer(BaseModel):
    id: int
    name: str
    projects_count: int = 0


class TeamMember(BaseModel):
    id: int
    name: str
    role: str


class FetchOptions(BaseModel):
    """
    Options for a DataFetcher.

    Attributes:
        cache_time: Seconds a fetched result stays fresh in the store
        revalidate_on_focus: Refetch when a focus event is emitted
        revalidate_on_reconnect: Refetch when an online event is emitted
        deduping_interval: Seconds during which repeat fetches of a key are suppressed
    """

    cache_time: float = Field(default=300.0, gt=0)
    revalidate_on_focus: bool = True
    revalidate_on_reconnect: bool = True
    deduping_interval: float = Field(default=2.0, ge=0)


__all__ = [
    "BlogPost",
    "Developer",
    "FetchOptions",
    "ListingStatus",
    "Property",
    "PropertyCreate",
    "TeamMember",
]
