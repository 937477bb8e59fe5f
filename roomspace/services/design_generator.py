from __future__ import annotations

import asyncio
import json
import logging
import math
import re
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

import httpx
from pydantic import ValidationError as PydanticValidationError

from roomspace.config import Settings, settings as default_settings
from roomspace.domain.enums import DesignStyle
from roomspace.domain.models import Budget, DesignPayload, Preferences
from roomspace.errors import UpstreamError
from roomspace.services.shaper import compute_total_cost

log = logging.getLogger(__name__)

# (system, user) -> raw completion text
Completion = Callable[[str, str], Awaitable[str]]

SYSTEM_PROMPT = (
    "You are an expert interior designer with knowledge of furniture placement, color theory, "
    "and budget-conscious design. Provide practical, implementable design suggestions."
)

STYLE_PALETTES: Dict[str, Dict[str, str]] = {
    "modern": {"primary": "#2C3E50", "secondary": "#ECF0F1", "accent": "#E74C3C"},
    "minimalist": {"primary": "#FFFFFF", "secondary": "#F8F9FA", "accent": "#6C757D"},
    "scandinavian": {"primary": "#FFFFFF", "secondary": "#F5F5DC", "accent": "#4A90E2"},
    "industrial": {"primary": "#34495E", "secondary": "#95A5A6", "accent": "#E67E22"},
    "bohemian": {"primary": "#8B4513", "secondary": "#DEB887", "accent": "#CD853F"},
}

_RESPONSE_SHAPE = """{
  "layout": {
    "description": "Overall layout description",
    "zones": [
      {"name": "Zone name", "furniture": ["furniture items"], "position": {"x": number, "y": number, "rotation": number}}
    ]
  },
  "furnitureItems": [
    {
      "name": "Item name",
      "category": "Category",
      "estimatedPrice": number,
      "position": {"x": number, "y": number, "z": number},
      "dimensions": {"width": number, "depth": number, "height": number},
      "searchTerms": ["search", "terms"]
    }
  ],
  "colorScheme": {"primary": "#color", "secondary": "#color", "accent": "#color"},
  "lighting": ["lighting suggestions"],
  "accessories": ["accessory suggestions"],
  "totalCost": number
}"""

_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


def _val(x: Any) -> Any:
    """Return enum.value if present, else the object itself."""
    return getattr(x, "value", x)


def style_palette(style: Any) -> Dict[str, str]:
    return dict(STYLE_PALETTES.get(str(_val(style)).lower(), STYLE_PALETTES["modern"]))


def _budget(budget: Any) -> Budget:
    if isinstance(budget, Budget):
        return budget
    return Budget.model_validate(dict(budget))


def _prefs(preferences: Any) -> Preferences:
    if preferences is None:
        return Preferences()
    if isinstance(preferences, Preferences):
        return preferences
    return Preferences.model_validate(dict(preferences))


def _fmt_num(v: Any) -> str:
    f = float(v)
    return str(int(f)) if f.is_integer() else f"{f:g}"


def build_prompt(room: Mapping[str, Any], style: Any, budget: Any, preferences: Any = None) -> str:
    b = _budget(budget)
    p = _prefs(preferences)
    dims = room.get("dimensions") or {}
    lines = [
        f"Create an interior design layout for a {room.get('room_type', 'room')} with the following specifications:",
        "",
        f"Room Dimensions: {_fmt_num(dims.get('width', 0))}ft x {_fmt_num(dims.get('length', 0))}ft "
        f"x {_fmt_num(dims.get('height', 0))}ft",
        f"Style: {_val(style)}",
        f"Budget: ${_fmt_num(b.min)} - ${_fmt_num(b.max)}",
    ]
    if p.colors:
        lines.append(f"Preferred Colors: {', '.join(p.colors)}")
    if p.furniture:
        lines.append(f"Preferred Furniture: {', '.join(p.furniture)}")
    if p.avoid:
        lines.append(f"Avoid: {', '.join(p.avoid)}")
    lines += [
        "",
        "Please provide:",
        "1. A furniture layout with specific item placements",
        "2. A list of recommended furniture items with estimated prices",
        "3. Color scheme recommendations",
        "4. Lighting suggestions",
        "5. Accessory recommendations",
        "",
        "Format the response as JSON with the following structure:",
        _RESPONSE_SHAPE,
    ]
    return "\n".join(lines)


def fallback_design(room: Mapping[str, Any], style: Any, budget: Any, *, reason: str = "") -> DesignPayload:
    """
    Deterministic, network-free design derived only from the inputs.
    One placeholder item at 40% of budget.max; totalCost is the budget midpoint.
    """
    b = _budget(budget)
    s = str(_val(style))
    room_type = str(room.get("room_type") or "room")
    return DesignPayload.model_validate(
        {
            "layout": {
                "description": f"{s} design for your {room_type}",
                "zones": [
                    {
                        "name": "Main seating area",
                        "furniture": ["Sofa", "Coffee table"],
                        "position": {"x": 0, "y": 0, "rotation": 0},
                    }
                ],
            },
            "furnitureItems": [
                {
                    "name": f"{s} Sofa",
                    "category": "Seating",
                    "estimatedPrice": math.floor(b.max * 0.4),
                    "position": {"x": 0, "y": 0, "z": 0},
                    "dimensions": {"width": 72, "depth": 36, "height": 32},
                    "searchTerms": [s.lower(), "sofa", room_type],
                }
            ],
            "colorScheme": style_palette(s),
            "lighting": ["Natural light", "Floor lamps"],
            "accessories": ["Throw pillows", "Wall art"],
            "totalCost": max(b.min, math.floor((b.min + b.max) / 2)),
            "error": "Used fallback design" + (f" ({reason})" if reason else ""),
        }
    )


def parse_design_payload(text: str) -> Optional[DesignPayload]:
    """Best-effort parse of model output; None when it does not fit the shape."""
    s = _FENCE.sub("", (text or "").strip())
    if not s:
        return None
    try:
        data = json.loads(s)
    except ValueError:
        start, end = s.find("{"), s.rfind("}")
        if start < 0 or end <= start:
            return None
        try:
            data = json.loads(s[start : end + 1])
        except ValueError:
            return None
    if not isinstance(data, dict):
        return None
    try:
        payload = DesignPayload.model_validate(data)
    except PydanticValidationError:
        return None
    if payload.furniture_items:
        payload.total_cost = compute_total_cost(
            {"estimatedPrice": i.estimated_price} for i in payload.furniture_items
        )
    return payload


class DesignGenerator:
    """
    Single-attempt AI layout generation.

    generate_design never raises: any call failure, timeout or unusable
    output yields fallback_design(). No retries, no caching.
    """

    def __init__(
        self,
        *,
        settings: Optional[Settings] = None,
        complete: Optional[Completion] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._settings = settings or default_settings
        self._complete = complete or self._openai_complete
        self._transport = transport

    @property
    def timeout_seconds(self) -> float:
        return float(self._settings.OPENAI_TIMEOUT_SECONDS)

    async def generate_design(
        self,
        room: Mapping[str, Any],
        style: DesignStyle | str,
        budget: Budget | Mapping[str, Any],
        preferences: Preferences | Mapping[str, Any] | None = None,
    ) -> DesignPayload:
        prompt = build_prompt(room, style, budget, preferences)
        try:
            text = await asyncio.wait_for(self._complete(SYSTEM_PROMPT, prompt), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            log.warning("design generation timed out", extra={"room_id": room.get("id"), "timeout_s": self.timeout_seconds})
            return fallback_design(room, style, budget, reason="timeout")
        except Exception as e:  # noqa: BLE001
            log.warning("design generation failed", extra={"room_id": room.get("id"), "error": str(e)})
            return fallback_design(room, style, budget, reason="ai service error")

        payload = parse_design_payload(text)
        if payload is None:
            log.warning("design response not parseable", extra={"room_id": room.get("id"), "chars": len(text or "")})
            return fallback_design(room, style, budget, reason="unparseable response")
        return payload

    async def _openai_complete(self, system: str, user: str) -> str:
        cfg = self._settings
        if not cfg.service_available("openai"):
            raise UpstreamError("openai_not_configured")

        payload: Dict[str, Any] = {
            "model": cfg.OPENAI_MODEL,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            "temperature": float(cfg.OPENAI_TEMPERATURE),
            "max_tokens": int(cfg.OPENAI_MAX_TOKENS),
        }

        async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport) as client:
            r = await client.post(
                f"{cfg.OPENAI_BASE_URL.rstrip('/')}/chat/completions",
                headers={"Authorization": f"Bearer {cfg.OPENAI_API_KEY}", "Content-Type": "application/json"},
                json=payload,
            )
            r.raise_for_status()
            out = r.json()

        return (
            (((out.get("choices") or [{}])[0]).get("message") or {}).get("content")
            or ""
        ).strip()
