"""
Product Analysis Service using Vision AI

Describes the uploaded product and suggests one of the catalog categories.
"""
import logging
from typing import Dict, List, Optional

from taswira.config import settings
from taswira.services.openai_client import OpenAIClient, image_data_url
from taswira.utils.api_retry import vision_api_retry
from taswira.utils.json_extract import extract_json

logger = logging.getLogger(__name__)

ANALYSIS_PROMPT_KEY = "analyze_product"

DEFAULT_ANALYSIS_PROMPT = """You are an expert product photographer and e-commerce analyst.
Look at the product image and the product name provided by the user.

Write a concise analysis (2-4 sentences) of what the product is, its materials, colors and
what makes it marketable. Then pick the single best matching category from the provided list.

Respond with strict JSON only, no markdown:
{
  "analysis": string,
  "suggested_category_id": string (one of the provided IDs),
  "confidence": number between 0 and 1,
  "features": [string],
  "materials": [string],
  "colors": [string],
  "emotional_appeal": string,
  "marketing_angles": [string],
  "target_audiences": [string]
}"""

FALLBACK_CONFIDENCE = 0.5
MAX_FALLBACK_ANALYSIS = 800


def format_categories(categories: List[Dict]) -> str:
    return "\n".join(
        f"- {c['id']} | {c['name']}: {c.get('description') or ''}" for c in categories
    )


def _as_list(value) -> List[str]:
    if isinstance(value, list):
        return [str(item) for item in value if item]
    if isinstance(value, str) and value.strip():
        return [value.strip()]
    return []


class ProductAnalyzer:
    """Analyzes the product image and suggests a catalog category"""

    def __init__(self, client: Optional[OpenAIClient] = None, model: Optional[str] = None):
        self.client = client or OpenAIClient(retry_handler=vision_api_retry)
        self.model = model or settings.ANALYSIS_MODEL

    async def analyze(
        self,
        image_bytes: bytes,
        product_name: str,
        categories: List[Dict],
        system_prompt: Optional[str] = None
    ) -> Dict:
        """
        Analyze product image

        Args:
            image_bytes: Uploaded product image
            product_name: Name typed by the user
            categories: [{"id", "name", "description"}, ...]
            system_prompt: Override for the default analysis prompt

        Returns:
            {
                "success": bool,
                "analysis": str,
                "suggested_category_id": Optional[str],
                "suggested_category_name": Optional[str],
                "confidence": float,
                "product_profile": dict,
                "error": Optional[str]
            }
        """
        if not image_bytes:
            return self._error_response("Image is required")
        if not product_name or not product_name.strip():
            return self._error_response("Product name is required")

        product_name = product_name.strip()

        user_text = (
            f"Product name: {product_name}\n\n"
            f"Available categories (ID | Name: Description):\n"
            f"{format_categories(categories)}\n\n"
            f"Return JSON only."
        )

        messages = [
            {"role": "system", "content": system_prompt or DEFAULT_ANALYSIS_PROMPT},
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": user_text},
                    {"type": "image_url", "image_url": {"url": image_data_url(image_bytes)}}
                ]
            }
        ]

        try:
            logger.info(f"Analyzing product '{product_name}' with {self.model}...")
            content = await self.client.chat(messages, model=self.model, temperature=0.2)
        except Exception as e:
            logger.error(f"Product analysis error: {e}", exc_info=True)
            return self._error_response(str(e) or type(e).__name__)

        return self._build_result(content, product_name, categories)

    def _build_result(self, content: str, product_name: str, categories: List[Dict]) -> Dict:
        names = {c['id']: c['name'] for c in categories}
        parsed = extract_json(content)

        if not isinstance(parsed, dict):
            logger.warning("Could not parse analysis JSON, using raw content")
            suggested_id = categories[0]['id'] if categories else None
            return {
                "success": True,
                "analysis": content[:MAX_FALLBACK_ANALYSIS] or "No analysis available",
                "suggested_category_id": suggested_id,
                "suggested_category_name": names.get(suggested_id),
                "confidence": FALLBACK_CONFIDENCE,
                "product_profile": {"productName": product_name},
                "error": None
            }

        suggested_id = parsed.get('suggested_category_id')
        if suggested_id is not None:
            suggested_id = str(suggested_id)
        if suggested_id not in names:
            if suggested_id:
                logger.warning(f"Model suggested unknown category '{suggested_id}'")
            suggested_id = None

        try:
            confidence = float(parsed.get('confidence', FALLBACK_CONFIDENCE))
        except (TypeError, ValueError):
            confidence = FALLBACK_CONFIDENCE
        confidence = min(max(confidence, 0.0), 1.0)

        analysis = str(parsed.get('analysis') or '').strip() or "No analysis available"

        profile = {
            "productName": product_name,
            "category": names.get(suggested_id),
            "features": _as_list(parsed.get('features')),
            "materials": _as_list(parsed.get('materials')),
            "colors": _as_list(parsed.get('colors')),
            "emotionalAppeal": str(parsed.get('emotional_appeal') or ''),
            "marketingAngles": _as_list(parsed.get('marketing_angles')),
            "targetAudiences": _as_list(parsed.get('target_audiences')),
        }

        logger.info(f"Product analyzed: suggested={suggested_id} confidence={confidence:.2f}")

        return {
            "success": True,
            "analysis": analysis,
            "suggested_category_id": suggested_id,
            "suggested_category_name": names.get(suggested_id),
            "confidence": confidence,
            "product_profile": profile,
            "error": None
        }

    def _error_response(self, error: str) -> Dict:
        logger.warning(f"Product analysis failed: {error}")
        return {
            "success": False,
            "analysis": None,
            "suggested_category_id": None,
            "suggested_category_name": None,
            "confidence": 0.0,
            "product_profile": None,
            "error": error
        }
