"""
Image Editor Service

Restyles the product photo with the chosen prompt. The default provider is
OpenAI image edits; KIE GPT-4o and Flux Kontext are task based and need a
public URL of the source image.
"""
import logging
from io import BytesIO
from typing import Dict, Optional, Tuple

from PIL import Image

from taswira.config import settings
from taswira.services.kie import FLUX_KONTEXT, GPT4O_IMAGE, KieClient
from taswira.services.openai_client import OpenAIClient
from taswira.services.task_poller import SUCCESS
from taswira.utils.api_retry import image_api_retry

logger = logging.getLogger(__name__)

OPENAI = "openai"
KIE_4O = "kie-4o"
KIE_FLUX_KONTEXT = "kie-flux-kontext"

PROVIDERS = (OPENAI, KIE_4O, KIE_FLUX_KONTEXT)

PASSTHROUGH_FORMATS = {"PNG": "png", "JPEG": "jpeg", "WEBP": "webp"}


def convert_to_png(image_bytes: bytes) -> bytes:
    """Re-encode any Pillow-readable image as PNG"""
    img = Image.open(BytesIO(image_bytes))
    if img.mode in ('RGBA', 'LA', 'P'):
        img = img.convert('RGBA')
    else:
        img = img.convert('RGB')
    output = BytesIO()
    img.save(output, format='PNG', optimize=True)
    return output.getvalue()


def prepare_source_image(image_bytes: bytes) -> Tuple[bytes, str]:
    """
    Make the upload acceptable for the edits endpoint.

    Returns:
        (image bytes, file extension); PNG, JPEG and WEBP pass through,
        anything else is converted to PNG
    """
    img = Image.open(BytesIO(image_bytes))
    img_format = (img.format or "").upper()
    if img_format in PASSTHROUGH_FORMATS:
        return image_bytes, PASSTHROUGH_FORMATS[img_format]
    logger.info(f"Converting {img.format} to PNG")
    return convert_to_png(image_bytes), "png"


class ImageEditor:
    def __init__(
        self,
        provider: Optional[str] = None,
        openai_client: Optional[OpenAIClient] = None,
        kie_client: Optional[KieClient] = None
    ):
        self.provider = provider or settings.IMAGE_PROVIDER
        if self.provider not in PROVIDERS:
            raise ValueError(f"Unknown image provider: {self.provider}")
        self.openai = openai_client or OpenAIClient(retry_handler=image_api_retry)
        self.kie = kie_client or KieClient()

    async def generate(self, image_bytes: bytes, prompt: str, image_url: Optional[str] = None) -> Dict:
        """
        Generate the styled still

        Args:
            image_bytes: Uploaded product image
            prompt: Final image prompt
            image_url: Public URL of the upload (KIE providers only)

        Returns:
            dict with keys: success (bool), image_bytes (bytes), provider (str), error (str)
        """
        if not prompt or not prompt.strip():
            return self._error("Prompt is required")

        try:
            source, extension = prepare_source_image(image_bytes)
        except Exception as e:
            logger.error(f"Image format validation failed: {e}")
            return self._error("Invalid image format")

        try:
            logger.info(f"Generating image with provider {self.provider}")
            if self.provider == OPENAI:
                result_bytes = await self.openai.edit_image(
                    source,
                    prompt,
                    model=settings.IMAGE_MODEL,
                    size=settings.IMAGE_SIZE,
                    quality=settings.IMAGE_QUALITY,
                    filename=f"image.{extension}"
                )
            else:
                if not image_url:
                    return self._error("A public image URL is required for KIE image generation")
                result_bytes, error = await self._generate_with_kie(prompt, image_url)
                if error:
                    return self._error(error)

            # Validate it's a real image
            Image.open(BytesIO(result_bytes)).verify()

        except Exception as e:
            logger.error(f"Image generation error ({self.provider}): {e}", exc_info=True)
            return self._error(str(e) or type(e).__name__)

        logger.info(f"Image generated with {self.provider} ({len(result_bytes)} bytes)")
        return {
            "success": True,
            "image_bytes": result_bytes,
            "provider": self.provider,
            "error": None
        }

    async def _generate_with_kie(self, prompt: str, image_url: str) -> Tuple[Optional[bytes], Optional[str]]:
        if self.provider == KIE_4O:
            task_type = GPT4O_IMAGE
            task_id = await self.kie.generate_4o_image(prompt, image_url)
        else:
            task_type = FLUX_KONTEXT
            task_id = await self.kie.generate_flux_kontext(prompt, image_url)

        outcome = await self.kie.wait_for_task(
            task_type,
            task_id,
            interval=settings.IMAGE_POLL_INTERVAL,
            max_attempts=settings.IMAGE_POLL_MAX_ATTEMPTS
        )
        if outcome["state"] != SUCCESS:
            return None, outcome["error"] or "Image generation failed"

        return await self.kie.download(outcome["result_url"]), None

    def _error(self, error: str) -> Dict:
        logger.warning(f"Image generation failed: {error}")
        return {
            "success": False,
            "image_bytes": None,
            "provider": self.provider,
            "error": error
        }
