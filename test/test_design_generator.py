"""Prompt building, response parsing and the deterministic fallback."""

import asyncio
import json

import httpx
import pytest

from roomspace.config import Settings
from roomspace.domain.enums import DesignStyle
from roomspace.services.design_generator import (
    STYLE_PALETTES,
    DesignGenerator,
    build_prompt,
    fallback_design,
    parse_design_payload,
)

ROOM = {"id": "r1", "room_type": "living_room", "dimensions": {"width": 10, "length": 12.5, "height": 8}}
BUDGET = {"min": 100, "max": 1000}

AI_DESIGN = {
    "layout": {"description": "Open plan", "zones": [{"name": "Reading nook", "furniture": ["Chair"]}]},
    "furnitureItems": [
        {"name": "Chair", "category": "Seating", "estimatedPrice": 150, "searchTerms": ["accent chair"]},
        {"name": "Lamp", "category": "Lighting", "estimatedPrice": 60},
    ],
    "colorScheme": {"primary": "#111111", "secondary": "#EEEEEE", "accent": "#FF0000"},
    "lighting": ["Floor lamp"],
    "accessories": ["Plant"],
    "totalCost": 9999,
}


def _settings(timeout=1.0, **kw):
    return Settings(ENVIRONMENT="test", OPENAI_TIMEOUT_SECONDS=timeout, **kw)


class TestFallback:
    @pytest.mark.parametrize("style", [s.value for s in DesignStyle])
    def test_palette_matches_style(self, style):
        payload = fallback_design(ROOM, style, BUDGET)
        assert payload.color_scheme.model_dump() == STYLE_PALETTES[style]

    def test_single_item_and_midpoint_total(self):
        payload = fallback_design(ROOM, "modern", BUDGET, reason="timeout")
        assert len(payload.furniture_items) == 1
        item = payload.furniture_items[0]
        assert item.name == "modern Sofa"
        assert item.estimated_price == 400
        assert payload.total_cost == 550
        assert payload.error == "Used fallback design (timeout)"

    @pytest.mark.parametrize("lo,hi", [(0, 0), (100, 101), (99.5, 100.2), (0, 1), (2500, 2500)])
    def test_total_within_budget(self, lo, hi):
        payload = fallback_design(ROOM, "industrial", {"min": lo, "max": hi})
        assert lo <= payload.total_cost <= hi

    def test_is_deterministic(self):
        assert fallback_design(ROOM, "bohemian", BUDGET) == fallback_design(ROOM, "bohemian", BUDGET)


class TestPrompt:
    def test_includes_room_and_preferences(self):
        prompt = build_prompt(ROOM, DesignStyle.scandinavian, BUDGET, {"colors": ["white", "oak"], "avoid": ["glass"]})
        assert "living_room" in prompt
        assert "10ft x 12.5ft x 8ft" in prompt
        assert "Style: scandinavian" in prompt
        assert "Budget: $100 - $1000" in prompt
        assert "Preferred Colors: white, oak" in prompt
        assert "Avoid: glass" in prompt
        assert "Preferred Furniture" not in prompt


class TestParse:
    def test_plain_json_total_recomputed_from_items(self):
        payload = parse_design_payload(json.dumps(AI_DESIGN))
        assert payload is not None
        assert payload.total_cost == 210
        assert payload.furniture_items[0].search_terms == ["accent chair"]

    def test_code_fence_and_chatter(self):
        text = "Here you go:\n```json\n" + json.dumps(AI_DESIGN) + "\n```"
        assert parse_design_payload(text) is not None

    @pytest.mark.parametrize(
        "text",
        ["", "no json here", "[1, 2]", json.dumps({"layout": {}}), json.dumps({**AI_DESIGN, "totalCost": -5})],
    )
    def test_unusable_output(self, text):
        assert parse_design_payload(text) is None


class TestGenerateDesign:
    @pytest.mark.asyncio
    async def test_uses_model_output(self):
        async def complete(system, user):
            assert "Budget: $100 - $1000" in user
            return json.dumps(AI_DESIGN)

        gen = DesignGenerator(settings=_settings(), complete=complete)
        payload = await gen.generate_design(ROOM, "modern", BUDGET)
        assert payload.error is None
        assert [i.name for i in payload.furniture_items] == ["Chair", "Lamp"]

    @pytest.mark.asyncio
    async def test_call_failure_falls_back(self):
        async def complete(system, user):
            raise RuntimeError("boom")

        gen = DesignGenerator(settings=_settings(), complete=complete)
        payload = await gen.generate_design(ROOM, "minimalist", BUDGET)
        assert payload.total_cost == 550
        assert payload.color_scheme.model_dump() == STYLE_PALETTES["minimalist"]

    @pytest.mark.asyncio
    async def test_timeout_falls_back(self):
        async def complete(system, user):
            await asyncio.sleep(5)
            return json.dumps(AI_DESIGN)

        gen = DesignGenerator(settings=_settings(timeout=0.05), complete=complete)
        payload = await gen.generate_design(ROOM, "modern", BUDGET)
        assert payload.error == "Used fallback design (timeout)"

    @pytest.mark.asyncio
    async def test_garbage_falls_back(self):
        async def complete(system, user):
            return "I cannot help with that."

        gen = DesignGenerator(settings=_settings(), complete=complete)
        payload = await gen.generate_design(ROOM, "modern", BUDGET)
        assert payload.error == "Used fallback design (unparseable response)"

    @pytest.mark.asyncio
    async def test_unconfigured_openai_falls_back(self):
        gen = DesignGenerator(settings=_settings(OPENAI_API_KEY=""))
        payload = await gen.generate_design(ROOM, "modern", BUDGET)
        assert payload.error == "Used fallback design (ai service error)"

    @pytest.mark.asyncio
    async def test_openai_http_call(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["Authorization"]
            body = json.loads(request.content)
            seen["model"] = body["model"]
            return httpx.Response(200, json={"choices": [{"message": {"content": json.dumps(AI_DESIGN)}}]})

        cfg = _settings(OPENAI_API_KEY="sk-test", OPENAI_BASE_URL="https://llm.local/v1")
        gen = DesignGenerator(settings=cfg, transport=httpx.MockTransport(handler))
        payload = await gen.generate_design(ROOM, "modern", BUDGET)

        assert payload.error is None
        assert seen["url"] == "https://llm.local/v1/chat/completions"
        assert seen["auth"] == "Bearer sk-test"
        assert seen["model"] == "gpt-4"

    @pytest.mark.asyncio
    async def test_openai_http_error_falls_back(self):
        cfg = _settings(OPENAI_API_KEY="sk-test")
        gen = DesignGenerator(settings=cfg, transport=httpx.MockTransport(lambda r: httpx.Response(503)))
        payload = await gen.generate_design(ROOM, "modern", BUDGET)
        assert payload.error == "Used fallback design (ai service error)"


def test_non_finite_model_numbers_are_unusable():
    text = json.dumps(AI_DESIGN).replace('"estimatedPrice": 150', '"estimatedPrice": 1e400')
    assert "1e400" in text
    assert parse_design_payload(text) is None
