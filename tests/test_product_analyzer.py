import json

import pytest
from aioresponses import aioresponses

from taswira.services.openai_client import OpenAIClient
from taswira.services.product_analyzer import DEFAULT_ANALYSIS_PROMPT, ProductAnalyzer
from taswira.utils.api_retry import ProviderError

from tests.fakes import FakeChatClient

CATEGORIES = [
    {"id": "jewelry", "name": "Jewelry", "description": "Rings and necklaces"},
    {"id": "kitchen", "name": "Kitchen", "description": "Cookware and utensils"},
]

ANALYSIS = {
    "analysis": "A hand-thrown ceramic mug with a matte glaze.",
    "suggested_category_id": "kitchen",
    "confidence": 0.92,
    "features": ["handle", "matte glaze"],
    "materials": "ceramic",
    "colors": ["sand", "white"],
    "emotional_appeal": "cozy mornings",
    "marketing_angles": ["handmade"],
    "target_audiences": ["coffee lovers"],
}


async def test_analyze_builds_profile(png_bytes):
    client = FakeChatClient([json.dumps(ANALYSIS)])
    analyzer = ProductAnalyzer(client=client, model="vision-test")

    result = await analyzer.analyze(png_bytes, "  Sand Mug ", CATEGORIES)

    assert result["success"] is True
    assert result["suggested_category_id"] == "kitchen"
    assert result["suggested_category_name"] == "Kitchen"
    assert result["confidence"] == pytest.approx(0.92)
    assert result["product_profile"] == {
        "productName": "Sand Mug",
        "category": "Kitchen",
        "features": ["handle", "matte glaze"],
        "materials": ["ceramic"],
        "colors": ["sand", "white"],
        "emotionalAppeal": "cozy mornings",
        "marketingAngles": ["handmade"],
        "targetAudiences": ["coffee lovers"],
    }

    call = client.calls[0]
    assert call["model"] == "vision-test"
    assert call["messages"][0]["content"] == DEFAULT_ANALYSIS_PROMPT
    user_parts = call["messages"][1]["content"]
    assert "kitchen | Kitchen" in user_parts[0]["text"]
    assert user_parts[1]["image_url"]["url"].startswith("data:image/png;base64,")


async def test_fenced_json_and_custom_prompt(png_bytes):
    client = FakeChatClient(["Sure!\n```json\n" + json.dumps(ANALYSIS) + "\n```"])
    analyzer = ProductAnalyzer(client=client)

    result = await analyzer.analyze(png_bytes, "Mug", CATEGORIES, system_prompt="custom system")

    assert result["suggested_category_id"] == "kitchen"
    assert client.calls[0]["messages"][0]["content"] == "custom system"


async def test_unknown_category_is_dropped(png_bytes):
    payload = dict(ANALYSIS, suggested_category_id="garden", confidence=7)
    analyzer = ProductAnalyzer(client=FakeChatClient([json.dumps(payload)]))

    result = await analyzer.analyze(png_bytes, "Mug", CATEGORIES)

    assert result["success"] is True
    assert result["suggested_category_id"] is None
    assert result["suggested_category_name"] is None
    assert result["confidence"] == 1.0


async def test_unparseable_answer_falls_back(png_bytes):
    analyzer = ProductAnalyzer(client=FakeChatClient(["This looks like a lovely mug. " * 60]))

    result = await analyzer.analyze(png_bytes, "Mug", CATEGORIES)

    assert result["success"] is True
    assert len(result["analysis"]) == 800
    assert result["suggested_category_id"] == "jewelry"
    assert result["confidence"] == 0.5
    assert result["product_profile"] == {"productName": "Mug"}


async def test_provider_error_is_reported(png_bytes):
    analyzer = ProductAnalyzer(client=FakeChatClient(error=ProviderError("OpenAI API error: 401")))

    result = await analyzer.analyze(png_bytes, "Mug", CATEGORIES)

    assert result["success"] is False
    assert result["error"] == "OpenAI API error: 401"


@pytest.mark.parametrize("image, name, error", [
    (b"", "Mug", "Image is required"),
    (b"x", "   ", "Product name is required"),
])
async def test_missing_inputs(image, name, error):
    client = FakeChatClient()
    result = await ProductAnalyzer(client=client).analyze(image, name, CATEGORIES)

    assert result["error"] == error
    assert client.calls == []


# ==================== OPENAI CLIENT ====================

async def test_openai_chat_over_http(fast_retry):
    client = OpenAIClient(api_key="sk-test", base_url="https://openai.test/v1", retry_handler=fast_retry)
    url = "https://openai.test/v1/chat/completions"

    with aioresponses() as mocked:
        mocked.post(url, status=500)
        mocked.post(url, payload={"choices": [{"message": {"content": "  {\"prompt\": \"spin\"}  "}}]})

        content = await client.chat([{"role": "user", "content": "hi"}], model="m", json_mode=True)

    assert content == '{"prompt": "spin"}'


async def test_openai_client_error_not_retried(fast_retry):
    client = OpenAIClient(api_key="sk-test", base_url="https://openai.test/v1", retry_handler=fast_retry)

    with aioresponses() as mocked:
        mocked.post("https://openai.test/v1/chat/completions", status=400, body="bad request")

        with pytest.raises(ProviderError, match="400"):
            await client.chat([{"role": "user", "content": "hi"}], model="m")


async def test_openai_requires_key():
    with pytest.raises(ProviderError, match="OPENAI_API_KEY"):
        await OpenAIClient(api_key="").chat([], model="m")
