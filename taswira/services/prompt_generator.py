"""
Prompt generation for image edits and video providers

- image prompt: style prompt or user prompt, with vertical framing for video
- motion prompt: short camera/effects prompt for animating the styled still
- campaign scenes: five-scene ad sequence for Veo
"""
import json
import logging
from typing import Dict, List, Optional

from taswira.config import settings
from taswira.services.openai_client import OpenAIClient
from taswira.states import WizardMode
from taswira.utils.json_extract import extract_json

logger = logging.getLogger(__name__)

VERTICAL_FRAMING_SUFFIX = "\nVertical 9:16 composition, portrait 720x1280 framing."

MOTION_PROMPT_KEY = "motion_prompt"
VIDEO_PROMPTS_KEY = "video_prompts"

MAX_MOTION_PROMPT = 220
DEFAULT_MOTION_PROMPT = (
    "Slow dolly-in on the product with subtle parallax, soft glow and gentle vignette, "
    "smooth cinematic motion, portrait 9:16."
)

DEFAULT_MOTION_SYSTEM_PROMPT = (
    "You craft short, production-ready prompts to animate a still image into a simple 5-second "
    "portrait 9:16 video with tasteful camera motion (e.g., slow dolly-in, parallax, slight rack focus) "
    "and subtle effects (e.g., soft glow, vignette). Return JSON: {\"prompt\": string} with a single "
    "concise prompt (max 220 chars). No extra text."
)

SCENE_BEATS = [
    ("The Hook", False),
    ("The Problem", False),
    ("The Discovery", True),
    ("The Transformation", True),
    ("Product Showcase + VO", True),
]

DEFAULT_VIDEO_SYSTEM_PROMPT = """You are a professional video marketing specialist creating VEO3 video prompts for a creative ad sequence.

Generate exactly 5 video prompts that tell a compelling story in sequence (like a mini ad campaign).
All spoken dialogue must be delivered in a perfect American English accent.
Do not include any captions, text overlays, or written text in the videos.

Video 1: "The Hook" - a fast, visually striking attention-grabber that teases the problem without showing the product. referenceImage: false.
Video 2: "The Problem" - someone frustrated by the ABSENCE of this product. referenceImage: false.
Video 3: "The Discovery" - someone trying the product for the first time with a positive reaction. referenceImage: true.
Video 4: "The Transformation" - how the product improves their life. referenceImage: true.
Video 5: "Product Showcase + VO" - ONLY the product on screen, dynamic camera movement, a voice-over narrator line with the key benefit. referenceImage: true.
When referenceImage is true, the reference image only shows what the product looks like; generate the scene described in the prompt.

Return strictly a JSON array with exactly 5 objects, no markdown, each with this structure:
{
  "sceneDurationSeconds": 8,
  "referenceImage": boolean,
  "person": {
    "name": string,
    "description": string,
    "actions": [string],
    "line": string,
    "tone": string,
    "speaker": true
  },
  "place": {"description": string},
  "additionalInstructions": {
    "cameraMovement": string,
    "lighting": string,
    "backgroundMusic": string
  }
}"""

REQUIRED_SCENE_FIELDS = ("person", "place", "additionalInstructions")


def compose_image_prompt(
    style_prompt: Optional[str],
    custom_prompt: Optional[str] = None,
    mode: WizardMode = WizardMode.photo
) -> str:
    """
    Build the image edit prompt.

    A non-blank custom prompt replaces the style prompt. Photo+video mode
    asks for vertical framing so the still can be animated as-is.

    Raises:
        ValueError: If neither prompt has text
    """
    prompt = (custom_prompt or "").strip() or (style_prompt or "").strip()
    if not prompt:
        raise ValueError("Please select a style or enter a custom prompt")

    if WizardMode(mode) == WizardMode.photovideo:
        prompt += VERTICAL_FRAMING_SUFFIX
    return prompt


def _join(values, default: str = "None specified") -> str:
    if isinstance(values, list) and values:
        return ", ".join(str(v) for v in values)
    if isinstance(values, str) and values.strip():
        return values.strip()
    return default


def scene_to_video_prompt(scene: Dict) -> str:
    """Serialize a campaign scene into the text prompt sent to Veo"""
    payload = {key: value for key, value in scene.items() if key != "referenceImage"}
    return json.dumps(payload, ensure_ascii=False)


def validate_scenes(data, expected_count: int = 5) -> bool:
    if not isinstance(data, list) or len(data) != expected_count:
        logger.error(f"Expected {expected_count} scenes, got {len(data) if isinstance(data, list) else type(data).__name__}")
        return False

    for index, scene in enumerate(data):
        if not isinstance(scene, dict) or not all(scene.get(field) for field in REQUIRED_SCENE_FIELDS):
            logger.error(f"Invalid scene structure at index {index}: {scene}")
            return False
    return True


class PromptGenerator:
    """Writes motion prompts and campaign scenes with a chat model"""

    def __init__(self, client: Optional[OpenAIClient] = None, model: Optional[str] = None):
        self.client = client or OpenAIClient()
        self.model = model or settings.PROMPT_MODEL

    async def generate_motion_prompt(self, image_url: str, system_prompt: Optional[str] = None) -> Dict:
        """
        Ask for a short animation prompt for the styled still.

        Returns:
            {"success": bool, "prompt": str, "fallback": bool, "error": Optional[str]}
        """
        messages = [
            {"role": "system", "content": system_prompt or DEFAULT_MOTION_SYSTEM_PROMPT},
            {
                "role": "user",
                "content": [
                    {
                        "type": "text",
                        "text": (
                            f"Generate a short motion/effects prompt for {settings.RUNWAY_DURATION} sec, "
                            f"{settings.VIDEO_WIDTH}x{settings.VIDEO_HEIGHT}, {settings.VIDEO_ASPECT_RATIO}."
                        )
                    },
                    {"type": "image_url", "image_url": {"url": image_url}}
                ]
            }
        ]

        try:
            content = await self.client.chat(messages, model=self.model, temperature=0.4)
        except Exception as e:
            logger.error(f"Motion prompt generation error: {e}", exc_info=True)
            return {"success": True, "prompt": DEFAULT_MOTION_PROMPT, "fallback": True, "error": str(e)}

        parsed = extract_json(content)
        prompt = parsed.get("prompt") if isinstance(parsed, dict) else None
        if isinstance(prompt, str) and prompt.strip():
            return {"success": True, "prompt": prompt.strip()[:MAX_MOTION_PROMPT], "fallback": False, "error": None}

        logger.warning("Motion prompt was not JSON, using raw content")
        prompt = content.strip()[:MAX_MOTION_PROMPT] or DEFAULT_MOTION_PROMPT
        return {"success": True, "prompt": prompt, "fallback": True, "error": None}

    async def generate_video_prompts(
        self,
        product_profile: Dict,
        analysis: Optional[str] = None,
        marketing_angles: Optional[List[str]] = None,
        target_audiences: Optional[List[str]] = None,
        system_prompt: Optional[str] = None
    ) -> Dict:
        """
        Generate the five campaign scenes.

        Returns:
            {"success": bool, "scenes": List[dict], "error": Optional[str]}
        """
        if not product_profile or not product_profile.get("productName"):
            return {"success": False, "scenes": [], "error": "Product profile is required"}

        marketing_angles = marketing_angles or product_profile.get("marketingAngles")
        target_audiences = target_audiences or product_profile.get("targetAudiences")

        user_prompt = (
            f"Product: {product_profile['productName']}\n"
            f"Category: {product_profile.get('category') or 'Unknown'}\n"
            f"Features: {_join(product_profile.get('features'))}\n"
            f"Materials: {_join(product_profile.get('materials'))}\n"
            f"Colors: {_join(product_profile.get('colors'))}\n"
            f"Emotional Appeal: {_join(product_profile.get('emotionalAppeal'))}\n"
            f"Trend Fit: {product_profile.get('trendFit') or 'Not specified'}\n\n"
            f"Marketing Angles: {_join(marketing_angles)}\n"
            f"Target Audiences: {_join(target_audiences)}\n\n"
            f"Analysis: {analysis or 'No additional analysis provided'}\n\n"
            f"Create {len(SCENE_BEATS)} distinct video prompts that showcase this product effectively for marketing purposes."
        )

        messages = [
            {"role": "system", "content": system_prompt or DEFAULT_VIDEO_SYSTEM_PROMPT},
            {"role": "user", "content": user_prompt}
        ]

        try:
            logger.info(f"Generating campaign scenes for {product_profile['productName']}...")
            content = await self.client.chat(messages, model=self.model, temperature=0.8, max_tokens=2000)
        except Exception as e:
            logger.error(f"Video prompt generation error: {e}", exc_info=True)
            return {"success": False, "scenes": [], "error": str(e) or type(e).__name__}

        scenes = extract_json(content)
        if isinstance(scenes, dict):
            # json_object style wrappers: {"videoPrompts": [...]} / {"scenes": [...]}
            scenes = next((v for v in scenes.values() if isinstance(v, list)), scenes)

        if not validate_scenes(scenes, len(SCENE_BEATS)):
            return {"success": False, "scenes": [], "error": f"Expected exactly {len(SCENE_BEATS)} valid video prompts"}

        for scene, (_, needs_reference) in zip(scenes, SCENE_BEATS):
            scene.setdefault("sceneDurationSeconds", settings.SCENE_DURATION_SECONDS)
            # only a real JSON boolean overrides the beat default
            reference = scene.get("referenceImage")
            scene["referenceImage"] = reference if isinstance(reference, bool) else needs_reference

        logger.info(f"Generated {len(scenes)} campaign scenes")
        return {"success": True, "scenes": scenes, "error": None}
