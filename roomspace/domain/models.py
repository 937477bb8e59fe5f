from __future__ import annotations

from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

from roomspace.domain.enums import DesignStyle, ProductSort, RoomType


class _In(BaseModel):
    """Request bodies: unknown keys are rejected, camelCase on the wire."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True, allow_inf_nan=False)


class _Payload(BaseModel):
    """Shapes produced by external services: extra keys are kept as-is."""

    model_config = ConfigDict(extra="allow", populate_by_name=True, allow_inf_nan=False)


# -------------------------
# Shared value objects
# -------------------------
class Dimensions(_In):
    width: float = Field(gt=0)
    length: float = Field(gt=0)
    height: float = Field(gt=0)


class Budget(_In):
    min: float = Field(ge=0)
    max: float = Field(ge=0)

    @model_validator(mode="after")
    def _min_not_above_max(self) -> "Budget":
        if self.min > self.max:
            raise ValueError("min must be less than or equal to max")
        return self


# -------------------------
# Auth
# -------------------------
class RegisterIn(_In):
    email: EmailStr
    password: str = Field(min_length=8, max_length=256)
    first_name: str = Field(alias="firstName", min_length=1, max_length=100)
    last_name: str = Field(alias="lastName", min_length=1, max_length=100)


class LoginIn(_In):
    email: EmailStr
    password: str = Field(min_length=1, max_length=256)


# -------------------------
# Rooms
# -------------------------
class RoomScanIn(_In):
    name: str = Field(min_length=1, max_length=200)
    dimensions: Dimensions
    scan_data: str = Field(alias="scanData", min_length=1)  # base64 ARKit payload, never interpreted
    room_type: RoomType = Field(alias="roomType")
    budget: Budget
    style: DesignStyle


# -------------------------
# Design payload (AI output)
# -------------------------
class Position(_Payload):
    x: float = 0
    y: float = 0
    z: float = 0


class ItemDimensions(_Payload):
    width: float = 0
    depth: float = 0
    height: float = 0


class FurnitureItem(_Payload):
    name: str = Field(min_length=1)
    category: str = "Other"
    estimated_price: float = Field(default=0, ge=0, alias="estimatedPrice")
    position: Optional[Position] = None
    dimensions: Optional[ItemDimensions] = None
    search_terms: List[str] = Field(default_factory=list, alias="searchTerms")


class ZonePosition(_Payload):
    x: float = 0
    y: float = 0
    rotation: float = 0


class LayoutZone(_Payload):
    name: str
    furniture: List[str] = Field(default_factory=list)
    position: Optional[ZonePosition] = None


class Layout(_Payload):
    description: str = ""
    zones: List[LayoutZone] = Field(default_factory=list)


class ColorScheme(_Payload):
    primary: str
    secondary: str
    accent: str


class DesignPayload(_Payload):
    layout: Layout = Field(default_factory=Layout)
    furniture_items: List[FurnitureItem] = Field(default_factory=list, alias="furnitureItems")
    color_scheme: ColorScheme = Field(alias="colorScheme")
    lighting: List[str] = Field(default_factory=list)
    accessories: List[str] = Field(default_factory=list)
    total_cost: float = Field(ge=0, alias="totalCost")
    error: Optional[str] = None

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# -------------------------
# Designs
# -------------------------
class Preferences(_In):
    colors: Optional[List[str]] = None
    furniture: Optional[List[str]] = None
    avoid: Optional[List[str]] = None


class DesignGenerateIn(_In):
    room_id: str = Field(alias="roomId", min_length=1)
    style: DesignStyle
    budget: Budget
    preferences: Optional[Preferences] = None


class DesignUpdateIn(_In):
    notes: Optional[str] = Field(default=None, max_length=5000)
    is_favorite: Optional[bool] = Field(default=None, alias="isFavorite")
    furniture_items: Optional[List[FurnitureItem]] = Field(default=None, alias="furnitureItems")
    custom_layout: Optional[Dict[str, Any]] = Field(default=None, alias="customLayout")
    design_data: Optional[Dict[str, Any]] = Field(default=None, alias="designData")

    @model_validator(mode="after")
    def _not_empty(self) -> "DesignUpdateIn":
        if not self.model_fields_set:
            raise ValueError("at least one field must be provided")
        return self


class DesignCopyIn(_In):
    new_style: Optional[DesignStyle] = Field(default=None, alias="newStyle")
    new_budget: Optional[Budget] = Field(default=None, alias="newBudget")


# -------------------------
# Products
# -------------------------
class ProductSearchQuery(_In):
    keywords: str = Field(min_length=1, max_length=200)
    category: Optional[str] = None
    min_price: Optional[float] = Field(default=None, ge=0, alias="minPrice")
    max_price: Optional[float] = Field(default=None, ge=0, alias="maxPrice")
    sort_by: ProductSort = Field(default=ProductSort.relevance, alias="sortBy")


class ProductPrice(BaseModel):
    amount: float
    currency: str = "USD"


class ProductImages(BaseModel):
    primary: str
    thumbnails: List[str] = Field(default_factory=list)


class Product(BaseModel):
    asin: str
    title: str
    category: Optional[str] = None
    price: ProductPrice
    images: ProductImages
    rating: float
    review_count: int = Field(serialization_alias="reviewCount")
    features: List[str] = Field(default_factory=list)
    affiliate_url: str
    availability: str = "In Stock"


class RecommendationsIn(_In):
    design_id: Optional[str] = Field(default=None, alias="designId")
    furniture_items: Optional[List[FurnitureItem]] = Field(default=None, alias="furnitureItems")

    @model_validator(mode="after")
    def _one_source(self) -> "RecommendationsIn":
        if not self.design_id and self.furniture_items is None:
            raise ValueError("Either designId or furnitureItems array is required")
        return self


class FavoriteIn(_In):
    asin: str = Field(min_length=1, max_length=64)
    title: str = Field(min_length=1, max_length=500)
    price: Optional[float] = Field(default=None, ge=0)
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    design_id: Optional[UUID] = Field(default=None, alias="designId")
