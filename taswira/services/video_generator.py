"""
Video Generation Service

- animate_image: styled still -> motion prompt -> Runway image-to-video
- generate_campaign: product profile -> 5 Veo scenes in parallel -> one video
"""
import asyncio
import logging
from typing import Dict, List, Optional

from taswira.config import settings
from taswira.services.kie import RUNWAY, VEO, KieClient
from taswira.services.prompt_generator import PromptGenerator, scene_to_video_prompt
from taswira.services.task_poller import ERROR, SUCCESS
from taswira.services.video_combiner import VideoCombiner

logger = logging.getLogger(__name__)


class VideoGenerator:
    def __init__(
        self,
        kie_client: Optional[KieClient] = None,
        prompt_generator: Optional[PromptGenerator] = None,
        combiner: Optional[VideoCombiner] = None,
        poll_interval: Optional[float] = None,
        poll_max_attempts: Optional[int] = None
    ):
        self.kie = kie_client or KieClient()
        self.prompts = prompt_generator or PromptGenerator()
        self.combiner = combiner or VideoCombiner()
        self.poll_interval = settings.VIDEO_POLL_INTERVAL if poll_interval is None else poll_interval
        self.poll_max_attempts = poll_max_attempts or settings.VIDEO_POLL_MAX_ATTEMPTS

    async def animate_image(self, image_url: str, motion_system_prompt: Optional[str] = None) -> Dict:
        """
        Turn the styled still into a short vertical clip

        Returns:
            {
                "success": bool,
                "video_url": Optional[str],
                "motion_prompt": Optional[str],
                "task_id": Optional[str],
                "state": str,
                "error": Optional[str]
            }
        """
        result = {
            "success": False,
            "video_url": None,
            "motion_prompt": None,
            "task_id": None,
            "state": ERROR,
            "error": None
        }

        if not image_url:
            result["error"] = "Image URL is required"
            return result

        motion = await self.prompts.generate_motion_prompt(image_url, system_prompt=motion_system_prompt)
        result["motion_prompt"] = motion["prompt"]
        logger.info(f"Motion prompt: {motion['prompt']}")

        try:
            task_id = await self.kie.generate_runway(motion["prompt"], image_url)
        except Exception as e:
            logger.error(f"Runway task creation failed: {e}", exc_info=True)
            result["error"] = str(e) or type(e).__name__
            return result

        result["task_id"] = task_id
        outcome = await self.kie.wait_for_task(
            RUNWAY,
            task_id,
            interval=self.poll_interval,
            max_attempts=self.poll_max_attempts
        )

        result["state"] = outcome["state"]
        if outcome["state"] == SUCCESS:
            result["success"] = True
            result["video_url"] = outcome["result_url"]
        else:
            result["error"] = outcome["error"]
        return result

    async def _run_scene(self, index: int, scene: Dict, reference_image_url: Optional[str]) -> Dict:
        prompt = scene_to_video_prompt(scene)
        image_urls = [reference_image_url] if scene.get("referenceImage") and reference_image_url else None

        task_id = await self.kie.generate_veo(prompt, image_urls=image_urls)
        logger.info(f"Scene {index + 1}: Veo task {task_id}")

        outcome = await self.kie.wait_for_task(
            VEO,
            task_id,
            interval=self.poll_interval,
            max_attempts=self.poll_max_attempts
        )
        return {"task_id": task_id, **outcome}

    async def generate_campaign(
        self,
        product_profile: Dict,
        analysis: Optional[str] = None,
        reference_image_url: Optional[str] = None,
        video_system_prompt: Optional[str] = None
    ) -> Dict:
        """
        Generate and combine the five-scene ad campaign

        Returns:
            {
                "success": bool,
                "scenes": List[dict],   # scene, task_id, state, video_url, error per scene
                "video_urls": List[str],
                "combined": Optional[dict],  # VideoCombiner.combine result
                "error": Optional[str]
            }
        """
        prompts = await self.prompts.generate_video_prompts(
            product_profile,
            analysis=analysis,
            system_prompt=video_system_prompt
        )
        if not prompts["success"]:
            return {
                "success": False,
                "scenes": [],
                "video_urls": [],
                "combined": None,
                "error": prompts["error"]
            }

        scenes = prompts["scenes"]
        logger.info(f"Starting {len(scenes)} Veo tasks in parallel")

        results = await asyncio.gather(
            *[self._run_scene(i, scene, reference_image_url) for i, scene in enumerate(scenes)],
            return_exceptions=True
        )

        scene_results: List[Dict] = []
        video_urls: List[str] = []
        for i, (scene, res) in enumerate(zip(scenes, results)):
            if isinstance(res, Exception):
                logger.error(f"Scene {i + 1} failed with exception: {res}")
                scene_results.append({
                    "scene": scene, "task_id": None, "state": ERROR, "video_url": None, "error": str(res)
                })
            elif res["state"] != SUCCESS:
                logger.warning(f"Scene {i + 1} ended with {res['state']}: {res['error']}")
                scene_results.append({
                    "scene": scene, "task_id": res["task_id"], "state": res["state"],
                    "video_url": None, "error": res["error"]
                })
            else:
                scene_results.append({
                    "scene": scene, "task_id": res["task_id"], "state": SUCCESS,
                    "video_url": res["result_url"], "error": None
                })
                video_urls.append(res["result_url"])

        logger.info(f"Campaign scenes completed: {len(video_urls)}/{len(scenes)} successful")

        if not video_urls:
            return {
                "success": False,
                "scenes": scene_results,
                "video_urls": [],
                "combined": None,
                "error": "All scene generations failed"
            }

        combined = await self.combiner.combine(video_urls)
        return {
            "success": combined["success"],
            "scenes": scene_results,
            "video_urls": video_urls,
            "combined": combined,
            "error": combined["error"]
        }
