"""
Thin aiohttp client for the OpenAI endpoints used by the wizard:
chat completions (analysis, prompt writing) and image edits.
"""
import aiohttp
import base64
import logging
from io import BytesIO
from typing import Dict, List, Optional

from PIL import Image

from taswira.config import settings
from taswira.utils.api_retry import APIRetryHandler, ProviderError, prompt_api_retry

logger = logging.getLogger(__name__)


def image_data_url(image_bytes: bytes) -> str:
    """Encode image bytes as a data URL, detecting the MIME type with Pillow"""
    try:
        img = Image.open(BytesIO(image_bytes))
        img_format = img.format.lower() if img.format else 'jpeg'
    except (OSError, ValueError):
        img_format = 'jpeg'
    mime_type = f"image/{img_format}"
    base64_image = base64.b64encode(image_bytes).decode('utf-8')
    return f"data:{mime_type};base64,{base64_image}"


async def _raise_for_provider(response: aiohttp.ClientResponse, provider: str):
    """5xx -> aiohttp error (retried), other non-2xx -> ProviderError"""
    if response.status < 400:
        return
    error_text = await response.text()
    logger.error(f"{provider} API error: {response.status} - {error_text[:500]}")
    if response.status >= 500 or response.status == 429:
        response.raise_for_status()
    raise ProviderError(f"{provider} API error: {response.status}", status=response.status, payload=error_text)


class OpenAIClient:
    """Chat completions and image edits over aiohttp"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        retry_handler: Optional[APIRetryHandler] = None
    ):
        self.api_key = api_key if api_key is not None else settings.OPENAI_API_KEY
        self.base_url = (base_url or settings.OPENAI_BASE_URL).rstrip('/')
        self.retry = retry_handler or prompt_api_retry

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"}

    async def chat(
        self,
        messages: List[Dict],
        model: str,
        temperature: float = 0.2,
        max_tokens: Optional[int] = None,
        json_mode: bool = False
    ) -> str:
        """
        Run a chat completion and return the message content.

        Raises:
            ProviderError: API rejected the request or returned no content
            aiohttp.ClientError / asyncio.TimeoutError: transport failure after retries
        """
        if not self.api_key:
            raise ProviderError("OPENAI_API_KEY is not configured")

        payload = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
        }
        if max_tokens:
            payload["max_tokens"] = max_tokens
        if json_mode:
            payload["response_format"] = {"type": "json_object"}

        return await self.retry.execute_with_retry(self._chat_request, payload)

    async def _chat_request(self, payload: Dict) -> str:
        async with aiohttp.ClientSession() as session:
            async with session.post(
                f"{self.base_url}/chat/completions",
                json=payload,
                headers=self._headers()
            ) as response:
                await _raise_for_provider(response, "OpenAI")
                result = await response.json()

        choices = result.get('choices') or []
        if not choices:
            raise ProviderError("No choices in OpenAI response", payload=result)

        content = (choices[0].get('message') or {}).get('content') or ''
        if not content.strip():
            raise ProviderError("Empty content in OpenAI response", payload=result)
        return content.strip()

    async def edit_image(
        self,
        image_bytes: bytes,
        prompt: str,
        model: str,
        size: str,
        quality: str,
        filename: str = "image.png",
        retry_handler: Optional[APIRetryHandler] = None
    ) -> bytes:
        """
        Send an image edit request and return the decoded first image.

        Raises:
            ProviderError: API rejected the request or returned no image
        """
        if not self.api_key:
            raise ProviderError("OPENAI_API_KEY is not configured")

        retry = retry_handler or self.retry
        return await retry.execute_with_retry(
            self._edit_request, image_bytes, prompt, model, size, quality, filename
        )

    async def _edit_request(
        self,
        image_bytes: bytes,
        prompt: str,
        model: str,
        size: str,
        quality: str,
        filename: str
    ) -> bytes:
        form = aiohttp.FormData()
        form.add_field("image", image_bytes, filename=filename, content_type=f"image/{filename.rsplit('.', 1)[-1]}")
        form.add_field("prompt", prompt)
        form.add_field("model", model)
        form.add_field("size", size)
        form.add_field("quality", quality)
        form.add_field("n", "1")

        async with aiohttp.ClientSession() as session:
            async with session.post(
                f"{self.base_url}/images/edits",
                data=form,
                headers=self._headers()
            ) as response:
                await _raise_for_provider(response, "OpenAI")
                result = await response.json()

        data = result.get('data') or []
        b64_image = data[0].get('b64_json') if data else None
        if not b64_image:
            raise ProviderError("No image data received from OpenAI", payload=result)

        return base64.b64decode(b64_image)
