from __future__ import annotations

from enum import Enum


class RoomType(str, Enum):
    living_room = "living_room"
    bedroom = "bedroom"
    kitchen = "kitchen"
    dining_room = "dining_room"
    office = "office"
    other = "other"


class DesignStyle(str, Enum):
    modern = "modern"
    minimalist = "minimalist"
    scandinavian = "scandinavian"
    industrial = "industrial"
    bohemian = "bohemian"


class ProductSort(str, Enum):
    relevance = "relevance"     # upstream order
    price_low = "price_low"
    price_high = "price_high"
    rating = "rating"


class Collection(str, Enum):
    room_scans = "room_scans"
    saved_designs = "saved_designs"
    user_favorites = "user_favorites"
