from __future__ import annotations

from pydantic import BaseModel, Field

DEFAULT_CATEGORY = "기타"


class Place(BaseModel):
    place_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    group: str = ""
    category: str = DEFAULT_CATEGORY
    lat: float
    lng: float
    map_url: str = ""
    status: str = ""
    updated_at: str | None = None


class RankedPlace(Place):
    distance: int = Field(..., ge=0, description="Metres from the company location")
    walk_minutes: int = Field(..., ge=1)


class FilterCriteria(BaseModel):
    radius: int = Field(..., gt=0)
    categories: set[str] = Field(default_factory=set)
    search: str = ""


class PlaceOut(RankedPlace):
    is_new: bool = False


class PlaceListResponse(BaseModel):
    places: list[PlaceOut]
    total: int
    radius: int


class RandomPickResponse(BaseModel):
    place: PlaceOut | None
    total: int
