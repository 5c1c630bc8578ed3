import pytest
from aioresponses import aioresponses
from yarl import URL

from taswira.services.kie import (
    KieClient,
    RUNWAY,
    VEO,
    parse_flag_status,
    parse_runway_status,
)
from taswira.utils.api_retry import ProviderError

from tests.conftest import no_sleep

BASE = "https://kie.test"


@pytest.fixture
def kie(fast_retry):
    return KieClient(api_key="test-key", base_url=BASE, retry_handler=fast_retry)


def sent_json(mocked, method, url):
    return mocked.requests[(method, URL(url))][0].kwargs["json"]


# ==================== STATUS PARSING ====================

def test_flag_status_success():
    status = parse_flag_status({"successFlag": 1, "response": {"resultUrls": ["https://cdn/a.mp4"]}})
    assert status["state"] == "success"
    assert status["url"] == "https://cdn/a.mp4"


def test_flag_status_success_without_url_is_pending():
    assert parse_flag_status({"successFlag": 1, "response": {}})["state"] == "pending"


def test_flag_status_zero_with_error_is_error():
    status = parse_flag_status({"successFlag": 0, "errorCode": 400, "errorMessage": "unsafe prompt"})
    assert status["state"] == "error"
    assert status["error"] == "unsafe prompt"


@pytest.mark.parametrize("flag", [-1, 2, 3])
def test_flag_status_failed_flags(flag):
    assert parse_flag_status({"successFlag": flag})["state"] == "error"


def test_flag_status_generating():
    status = parse_flag_status({"successFlag": 0})
    assert status == {"state": "pending", "url": None, "error": None, "raw": {"successFlag": 0}}


def test_flag_status_result_image_url():
    status = parse_flag_status({"successFlag": 1, "response": {"resultImageUrl": "https://cdn/i.jpg"}})
    assert status["url"] == "https://cdn/i.jpg"


def test_runway_status():
    done = parse_runway_status({"state": "success", "videoInfo": {"videoUrl": "https://cdn/r.mp4"}})
    assert done["state"] == "success"
    assert done["url"] == "https://cdn/r.mp4"

    assert parse_runway_status({"state": "fail", "failMsg": "nsfw"})["error"] == "nsfw"
    assert parse_runway_status({"state": "generating"})["state"] == "pending"
    assert parse_runway_status({})["state"] == "pending"


# ==================== REQUESTS ====================

async def test_generate_veo_sends_payload(kie):
    url = f"{BASE}/api/v1/veo/generate"
    with aioresponses() as mocked:
        mocked.post(url, payload={"code": 200, "msg": "success", "data": {"taskId": "veo-1"}})

        task_id = await kie.generate_veo("A mug on a table", image_urls=["https://cdn/ref.png"])

        payload = sent_json(mocked, "POST", url)

    assert task_id == "veo-1"
    assert payload == {
        "model": "veo3_fast",
        "aspectRatio": "9:16",
        "enableFallback": False,
        "prompt": "A mug on a table",
        "imageUrls": ["https://cdn/ref.png"],
    }


async def test_generate_runway_sends_payload(kie):
    url = f"{BASE}/api/v1/runway/generate"
    with aioresponses() as mocked:
        mocked.post(url, payload={"code": 200, "data": {"taskId": "rw-1"}})

        assert await kie.generate_runway("slow dolly-in", "https://cdn/still.png") == "rw-1"
        payload = sent_json(mocked, "POST", url)

    assert payload["imageUrl"] == "https://cdn/still.png"
    assert payload["duration"] == 5
    assert payload["quality"] == "720p"
    assert payload["aspectRatio"] == "9:16"


async def test_envelope_error_raises_provider_error(kie):
    with aioresponses() as mocked:
        mocked.post(f"{BASE}/api/v1/veo/generate", payload={"code": 402, "msg": "Insufficient credits"})

        with pytest.raises(ProviderError, match="Insufficient credits"):
            await kie.generate_veo("prompt")


async def test_missing_task_id_raises(kie):
    with aioresponses() as mocked:
        mocked.post(f"{BASE}/api/v1/veo/generate", payload={"code": 200, "data": {}})

        with pytest.raises(ProviderError, match="taskId"):
            await kie.generate_veo("prompt")


async def test_server_error_is_retried(kie):
    url = f"{BASE}/api/v1/veo/generate"
    with aioresponses() as mocked:
        mocked.post(url, status=503)
        mocked.post(url, payload={"code": 200, "data": {"taskId": "veo-2"}})

        assert await kie.generate_veo("prompt") == "veo-2"


async def test_missing_api_key():
    client = KieClient(api_key="", base_url=BASE)
    with pytest.raises(ProviderError, match="KIE_AI_API_KEY"):
        await client.generate_veo("prompt")


async def test_empty_prompt_rejected(kie):
    with pytest.raises(ProviderError):
        await kie.generate_veo("")


async def test_get_status_reads_record(kie):
    with aioresponses() as mocked:
        mocked.get(
            f"{BASE}/api/v1/runway/record-detail?taskId=rw-1",
            payload={"code": 200, "data": {"state": "success", "videoInfo": {"videoUrl": "https://cdn/r.mp4"}}}
        )

        status = await kie.get_status(RUNWAY, "rw-1")

    assert status["state"] == "success"
    assert status["url"] == "https://cdn/r.mp4"


async def test_wait_for_task_polls_until_done(kie):
    url = f"{BASE}/api/v1/veo/record-info?taskId=veo-1"
    with aioresponses() as mocked:
        mocked.get(url, payload={"code": 200, "data": {"successFlag": 0}})
        mocked.get(url, payload={"code": 200, "data": {"successFlag": 0}})
        mocked.get(url, payload={
            "code": 200,
            "data": {"successFlag": 1, "response": {"resultUrls": ["https://cdn/v.mp4"]}}
        })

        outcome = await kie.wait_for_task(VEO, "veo-1", interval=5, max_attempts=10, sleep=no_sleep)

    assert outcome["state"] == "success"
    assert outcome["result_url"] == "https://cdn/v.mp4"
    assert outcome["attempts"] == 3


async def test_download(kie):
    with aioresponses() as mocked:
        mocked.get("https://cdn/i.jpg", body=b"jpeg-bytes")
        assert await kie.download("https://cdn/i.jpg") == b"jpeg-bytes"
