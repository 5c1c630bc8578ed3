"""
KIE.ai task client

Every KIE generator works the same way: POST a generate request, get a
taskId in the {code, msg, data} envelope, then read a record endpoint until
the task finishes. Covers Veo and Runway video plus GPT-4o and Flux Kontext
image generation.
"""
import aiohttp
import logging
from typing import Callable, Dict, List, Optional

from taswira.config import settings
from taswira.services.task_poller import ERROR, PENDING, SUCCESS, poll_task
from taswira.utils.api_retry import APIRetryHandler, ProviderError, kie_api_retry

logger = logging.getLogger(__name__)

VEO = "veo"
RUNWAY = "runway"
GPT4O_IMAGE = "gpt4o-image"
FLUX_KONTEXT = "flux-kontext"

# successFlag 0 is "generating", 1 is "done"; any other value is a failure
RUNNING_FLAG = 0
SUCCESS_FLAG = 1


def _first_result_url(data: Dict) -> Optional[str]:
    response = data.get("response") or {}
    urls = response.get("resultUrls")
    if isinstance(urls, list) and urls:
        return urls[0]
    return response.get("resultImageUrl") or response.get("resultVideoUrl")


def parse_flag_status(data: Dict) -> Dict:
    """Status of Veo, GPT-4o image and Flux Kontext records (successFlag based)"""
    data = data or {}
    flag = data.get("successFlag")
    url = _first_result_url(data)
    error = data.get("errorMessage") or data.get("errorCode")

    if flag == SUCCESS_FLAG and url:
        state = SUCCESS
    elif (flag is not None and flag not in (RUNNING_FLAG, SUCCESS_FLAG)) or error:
        state = ERROR
    else:
        state = PENDING

    return {
        "state": state,
        "url": url if state == SUCCESS else None,
        "error": str(error or "Generation failed") if state == ERROR else None,
        "raw": data
    }


def parse_runway_status(data: Dict) -> Dict:
    """Status of Runway records (state string based)"""
    data = data or {}
    state_name = (data.get("state") or "pending").lower()
    url = (data.get("videoInfo") or {}).get("videoUrl")

    if state_name == "success" and url:
        state = SUCCESS
    elif state_name == "fail":
        state = ERROR
    else:
        state = PENDING

    return {
        "state": state,
        "url": url if state == SUCCESS else None,
        "error": str(data.get("failMsg") or "Video generation failed") if state == ERROR else None,
        "raw": data
    }


TASK_ENDPOINTS: Dict[str, Dict] = {
    VEO: {
        "generate": "/api/v1/veo/generate",
        "status": "/api/v1/veo/record-info",
        "parser": parse_flag_status,
    },
    RUNWAY: {
        "generate": "/api/v1/runway/generate",
        "status": "/api/v1/runway/record-detail",
        "parser": parse_runway_status,
    },
    GPT4O_IMAGE: {
        "generate": "/api/v1/gpt4o-image/generate",
        "status": "/api/v1/gpt4o-image/record-info",
        "parser": parse_flag_status,
    },
    FLUX_KONTEXT: {
        "generate": "/api/v1/flux/kontext/generate",
        "status": "/api/v1/flux/kontext/record-info",
        "parser": parse_flag_status,
    },
}


class KieClient:
    """Create, check and wait for KIE.ai tasks"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        retry_handler: Optional[APIRetryHandler] = None
    ):
        self.api_key = api_key if api_key is not None else settings.KIE_AI_API_KEY
        self.base_url = (base_url or settings.KIE_BASE_URL).rstrip('/')
        self.retry = retry_handler or kie_api_retry

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json"
        }

    async def _request(self, method: str, path: str, **kwargs) -> Dict:
        """
        Send one request and unwrap the {code, msg, data} envelope.

        Raises:
            ProviderError: code != 200 or a 4xx response
            aiohttp.ClientResponseError: 5xx response (retried by the handler)
        """
        async with aiohttp.ClientSession() as session:
            async with session.request(
                method,
                f"{self.base_url}{path}",
                headers=self._headers(),
                **kwargs
            ) as response:
                if response.status >= 500:
                    response.raise_for_status()
                try:
                    body = await response.json(content_type=None)
                except ValueError:
                    body = None

                if response.status >= 400 or not isinstance(body, dict) or body.get("code") != 200:
                    message = body.get("msg") if isinstance(body, dict) else None
                    logger.error(f"KIE {path} error: {response.status} - {body}")
                    raise ProviderError(
                        message or f"KIE request failed ({response.status})",
                        status=response.status,
                        payload=body
                    )

                return body.get("data") or {}

    async def create_task(self, task_type: str, payload: Dict) -> str:
        """
        Start a generation task.

        Returns:
            KIE taskId

        Raises:
            ProviderError: Missing key, rejected request or no taskId in the answer
        """
        if not self.api_key:
            raise ProviderError("KIE_AI_API_KEY is not configured")

        endpoint = TASK_ENDPOINTS[task_type]["generate"]
        data = await self.retry.execute_with_retry(self._request, "POST", endpoint, json=payload)

        task_id = data.get("taskId")
        if not task_id:
            raise ProviderError(f"KIE {task_type} generate response is missing taskId", payload=data)

        logger.info(f"KIE {task_type} task created: {task_id}")
        return task_id

    async def get_status(self, task_type: str, task_id: str) -> Dict:
        """
        Read the task record once.

        Returns:
            {"state": "pending" | "success" | "error", "url", "error", "raw"}
        """
        endpoint = TASK_ENDPOINTS[task_type]
        data = await self._request("GET", endpoint["status"], params={"taskId": task_id})
        return endpoint["parser"](data)

    async def wait_for_task(
        self,
        task_type: str,
        task_id: str,
        interval: float,
        max_attempts: int,
        max_consecutive_errors: Optional[int] = None,
        sleep: Optional[Callable] = None
    ) -> Dict:
        """Poll the task record until a terminal state. See poll_task for the result shape."""
        kwargs = {}
        if sleep is not None:
            kwargs["sleep"] = sleep
        return await poll_task(
            lambda: self.get_status(task_type, task_id),
            interval=interval,
            max_attempts=max_attempts,
            max_consecutive_errors=max_consecutive_errors or settings.POLL_MAX_CONSECUTIVE_ERRORS,
            label=f"KIE {task_type} {task_id}",
            **kwargs
        )

    # ==================== GENERATORS ====================

    async def generate_veo(self, prompt: str, image_urls: Optional[List[str]] = None) -> str:
        if not prompt:
            raise ProviderError("prompt is required")
        payload = {
            "model": settings.VEO_MODEL,
            "aspectRatio": settings.VIDEO_ASPECT_RATIO,
            "enableFallback": False,
            "prompt": prompt,
        }
        if image_urls:
            payload["imageUrls"] = image_urls
        return await self.create_task(VEO, payload)

    async def generate_runway(self, prompt: str, image_url: str) -> str:
        if not prompt or not image_url:
            raise ProviderError("prompt and image_url are required")
        payload = {
            "prompt": prompt,
            "imageUrl": image_url,
            "duration": settings.RUNWAY_DURATION,
            "quality": settings.RUNWAY_QUALITY,
            "aspectRatio": settings.VIDEO_ASPECT_RATIO,
            "waterMark": "",
        }
        return await self.create_task(RUNWAY, payload)

    async def generate_4o_image(self, prompt: str, image_url: str) -> str:
        if not prompt or not image_url:
            raise ProviderError("prompt and image_url are required")
        payload = {
            "prompt": prompt,
            "inputImage": image_url,
        }
        return await self.create_task(GPT4O_IMAGE, payload)

    async def generate_flux_kontext(self, prompt: str, image_url: str) -> str:
        if not prompt or not image_url:
            raise ProviderError("prompt and image_url are required")
        payload = {
            "aspectRatio": settings.VIDEO_ASPECT_RATIO,
            "outputFormat": "jpeg",
            "promptUpsampling": False,
            "model": settings.FLUX_KONTEXT_MODEL,
            "safetyTolerance": 2,
            "prompt": prompt,
            "inputImage": image_url,
        }
        return await self.create_task(FLUX_KONTEXT, payload)

    async def download(self, url: str) -> bytes:
        """Fetch a finished result file"""
        async def _get() -> bytes:
            async with aiohttp.ClientSession() as session:
                async with session.get(url) as response:
                    response.raise_for_status()
                    return await response.read()

        return await self.retry.execute_with_retry(_get)
