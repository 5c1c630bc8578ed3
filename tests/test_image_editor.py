import base64

import pytest
from aioresponses import aioresponses

from taswira.services.image_editor import (
    KIE_4O,
    KIE_FLUX_KONTEXT,
    ImageEditor,
    prepare_source_image,
)
from taswira.services.openai_client import OpenAIClient

from tests.conftest import make_image
from tests.fakes import FakeKie


class FakeOpenAI:
    def __init__(self, result: bytes):
        self.result = result
        self.calls = []

    async def edit_image(self, image_bytes, prompt, model, size, quality, filename="image.png", retry_handler=None):
        self.calls.append({"image": image_bytes, "prompt": prompt, "model": model, "size": size, "filename": filename})
        return self.result


def test_supported_sources_pass_through(png_bytes, jpeg_bytes):
    assert prepare_source_image(png_bytes) == (png_bytes, "png")
    assert prepare_source_image(jpeg_bytes) == (jpeg_bytes, "jpeg")


def test_other_sources_converted_to_png():
    converted, extension = prepare_source_image(make_image("GIF"))
    assert extension == "png"
    assert converted[:8] == b"\x89PNG\r\n\x1a\n"


def test_unknown_provider():
    with pytest.raises(ValueError):
        ImageEditor(provider="midjourney", openai_client=FakeOpenAI(b""), kie_client=FakeKie())


async def test_openai_edit(jpeg_bytes, png_bytes):
    openai = FakeOpenAI(png_bytes)
    editor = ImageEditor(provider="openai", openai_client=openai, kie_client=FakeKie())

    result = await editor.generate(jpeg_bytes, "On marble")

    assert result["success"] is True
    assert result["image_bytes"] == png_bytes
    assert result["provider"] == "openai"
    assert openai.calls[0]["image"] == jpeg_bytes
    assert openai.calls[0]["filename"] == "image.jpeg"
    assert openai.calls[0]["size"] == "1024x1536"


async def test_invalid_result_image(png_bytes):
    editor = ImageEditor(provider="openai", openai_client=FakeOpenAI(b"not an image"), kie_client=FakeKie())

    result = await editor.generate(png_bytes, "On marble")

    assert result["success"] is False


async def test_invalid_source_image():
    editor = ImageEditor(provider="openai", openai_client=FakeOpenAI(b""), kie_client=FakeKie())

    result = await editor.generate(b"garbage", "On marble")

    assert result["error"] == "Invalid image format"


async def test_prompt_required(png_bytes):
    editor = ImageEditor(provider="openai", openai_client=FakeOpenAI(png_bytes), kie_client=FakeKie())
    assert (await editor.generate(png_bytes, "  "))["error"] == "Prompt is required"


@pytest.mark.parametrize("provider, kind", [(KIE_4O, "4o"), (KIE_FLUX_KONTEXT, "flux")])
async def test_kie_providers(provider, kind, png_bytes):
    result_jpeg = make_image("JPEG")
    kie = FakeKie(
        outcomes={f"{kind}-1": {"state": "success", "result_url": "https://cdn.test/out.jpg", "error": None}},
        downloads={"https://cdn.test/out.jpg": result_jpeg}
    )
    editor = ImageEditor(provider=provider, openai_client=FakeOpenAI(b""), kie_client=kie)

    result = await editor.generate(png_bytes, "On marble", image_url="http://testserver/media/upload.png")

    assert result["success"] is True
    assert result["image_bytes"] == result_jpeg
    assert kie.created[0]["kind"] == kind
    assert kie.created[0]["image_url"] == "http://testserver/media/upload.png"


async def test_kie_requires_public_url(png_bytes):
    editor = ImageEditor(provider=KIE_4O, openai_client=FakeOpenAI(b""), kie_client=FakeKie())

    result = await editor.generate(png_bytes, "On marble")

    assert "public image URL" in result["error"]


async def test_kie_task_failure(png_bytes):
    kie = FakeKie(outcomes={"4o-1": {"state": "error", "result_url": None, "error": "content policy"}})
    editor = ImageEditor(provider=KIE_4O, openai_client=FakeOpenAI(b""), kie_client=kie)

    result = await editor.generate(png_bytes, "On marble", image_url="http://testserver/media/u.png")

    assert result["success"] is False
    assert result["error"] == "content policy"


async def test_openai_client_decodes_edit(png_bytes, fast_retry):
    client = OpenAIClient(api_key="sk-test", base_url="https://openai.test/v1", retry_handler=fast_retry)
    encoded = base64.b64encode(png_bytes).decode()

    with aioresponses() as mocked:
        mocked.post("https://openai.test/v1/images/edits", payload={"data": [{"b64_json": encoded}]})

        result = await client.edit_image(png_bytes, "On marble", model="gpt-image-1", size="1024x1536", quality="high")

    assert result == png_bytes
