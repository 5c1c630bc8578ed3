"""
Product wizard orchestration

Drives one product through upload -> category -> mode -> style ->
generating -> confirm -> video_generating -> video_ready. Sessions live in
memory; video jobs run as background tasks and are polled by the client
through the session state.
"""
import asyncio
import logging
import time
import uuid
from typing import Any, Awaitable, Callable, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from taswira.config import settings
from taswira.database import crud, get_db
from taswira.services.image_editor import ImageEditor
from taswira.services.media_store import MediaFile, MediaStore
from taswira.services.product_analyzer import ANALYSIS_PROMPT_KEY, ProductAnalyzer
from taswira.services.prompt_generator import MOTION_PROMPT_KEY, VIDEO_PROMPTS_KEY, compose_image_prompt
from taswira.services.video_combiner import VideoCombiner
from taswira.services.video_generator import VideoGenerator
from taswira.states import BACK_TRANSITIONS, WizardMode, WizardStep
from taswira.utils.locks import SessionProcessingLock
from taswira.utils.logging_config import log_error_with_context, log_session_action
from taswira.utils.validators import (
    detect_image_format,
    sanitize_text,
    validate_image_upload,
    validate_product_name,
)

logger = logging.getLogger(__name__)

SUFFIX_BY_FORMAT = {"PNG": ".png", "JPEG": ".jpg", "WEBP": ".webp", "GIF": ".gif"}

VIDEO_JOB = "video"
CAMPAIGN_JOB = "campaign"


class WizardError(Exception):
    """Invalid wizard input"""
    pass


class WizardStepError(WizardError):
    """Operation not allowed in the current step"""
    pass


class SessionNotFound(WizardError):
    pass


class WizardSession:
    def __init__(self, session_id: str, product_name: str, image: MediaFile):
        self.id = session_id
        self.product_name = product_name
        self.image = image
        self.step = WizardStep.upload
        self.mode: Optional[WizardMode] = None

        self.analysis: Optional[Dict] = None
        self.category_id: Optional[str] = None
        self.style_id: Optional[str] = None
        self.custom_prompt: Optional[str] = None
        self.prompt_used: Optional[str] = None
        self.generated_image: Optional[MediaFile] = None
        self.completed = False

        self.video_job: Optional[str] = None
        self.video_url: Optional[str] = None
        self.playlist: Optional[Dict] = None
        self.video_details: Optional[Dict] = None

        self.error: Optional[str] = None
        self.created_at = time.time()
        self.updated_at = self.created_at

    def touch(self):
        self.updated_at = time.time()

    def move_to(self, step: WizardStep, error: Optional[str] = None):
        logger.debug(f"Session {self.id}: {self.step.value} -> {step.value}")
        self.step = step
        self.error = error
        self.touch()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "step": self.step.value,
            "mode": self.mode.value if self.mode else None,
            "productName": self.product_name,
            "imageUrl": self.image.url,
            "analysis": self.analysis,
            "categoryId": self.category_id,
            "styleId": self.style_id,
            "customPrompt": self.custom_prompt,
            "promptUsed": self.prompt_used,
            "generatedImageUrl": self.generated_image.url if self.generated_image else None,
            "completed": self.completed,
            "videoJob": self.video_job,
            "videoUrl": self.video_url,
            "playlist": self.playlist,
            "videoDetails": self.video_details,
            "error": self.error,
        }


class WizardStore:
    """In-memory sessions with inactivity expiry"""

    def __init__(self, ttl_seconds: Optional[int] = None):
        self.ttl = ttl_seconds or settings.SESSION_TTL_SECONDS
        self._sessions: Dict[str, WizardSession] = {}

    def add(self, session: WizardSession):
        self._sessions[session.id] = session

    def get(self, session_id: str) -> WizardSession:
        session = self._sessions.get(session_id)
        if session is None or self._expired(session):
            raise SessionNotFound(f"Session {session_id} not found")
        return session

    def _expired(self, session: WizardSession) -> bool:
        return (
            time.time() - session.updated_at > self.ttl
            and session.step not in (WizardStep.generating, WizardStep.video_generating)
        )

    def cleanup_expired(self) -> List[WizardSession]:
        """Drop idle sessions and return them"""
        expired = [s for s in self._sessions.values() if self._expired(s)]
        for session in expired:
            del self._sessions[session.id]
        if expired:
            logger.info(f"Removed {len(expired)} expired wizard sessions, {len(self._sessions)} active")
        return expired

    def __len__(self) -> int:
        return len(self._sessions)


class WizardService:
    def __init__(
        self,
        store: Optional[WizardStore] = None,
        media_store: Optional[MediaStore] = None,
        analyzer: Optional[ProductAnalyzer] = None,
        image_editor: Optional[ImageEditor] = None,
        video_generator: Optional[VideoGenerator] = None,
        lock: Optional[SessionProcessingLock] = None,
        session_factory: Optional[Callable[[], AsyncSession]] = None
    ):
        self.store = store or WizardStore()
        self.media = media_store or MediaStore()
        self.analyzer = analyzer or ProductAnalyzer()
        self.image_editor = image_editor or ImageEditor()
        self.video_generator = video_generator or VideoGenerator(
            combiner=VideoCombiner(media_store=self.media)
        )
        self.lock = lock or SessionProcessingLock()
        self._session_factory = session_factory
        self._jobs: Dict[str, asyncio.Task] = {}

    # ==================== HELPERS ====================

    def _require_step(self, session: WizardSession, *steps: WizardStep):
        if session.step not in steps:
            allowed = ", ".join(step.value for step in steps)
            raise WizardStepError(f"Not allowed in step '{session.step.value}' (expected: {allowed})")

    def _open_db_session(self) -> Optional[AsyncSession]:
        if self._session_factory:
            return self._session_factory()
        database = get_db()
        return database.get_session() if database else None

    async def _prompt_override(self, db: AsyncSession, key: str) -> Optional[str]:
        prompt = await crud.get_prompt_by_key(db, key)
        return prompt.content if prompt else None

    async def _record(self, session: WizardSession, kind: str, prompt_used: str, result_url: str,
                      db: Optional[AsyncSession] = None):
        try:
            if db is not None:
                await self._create_record(db, session, kind, prompt_used, result_url)
                return

            new_db = self._open_db_session()
            if new_db is None:
                logger.warning(f"Database not initialized, {kind} result of session {session.id} not recorded")
                return
            async with new_db:
                await self._create_record(new_db, session, kind, prompt_used, result_url)
        except Exception as e:
            log_error_with_context(logger, e, f"Recording {kind} generation", session.id)

    async def _create_record(self, db: AsyncSession, session: WizardSession, kind: str,
                             prompt_used: str, result_url: str):
        await crud.create_generation_record(
            db,
            session_id=session.id,
            product_name=session.product_name,
            mode=session.mode.value if session.mode else WizardMode.photo.value,
            kind=kind,
            prompt_used=prompt_used,
            result_url=result_url,
            category_id=session.category_id,
            style_id=session.style_id
        )

    def _owned_media(self, session: WizardSession) -> List[str]:
        names = [media.name for media in (session.image, session.generated_image) if media]
        local_prefix = self.media.url_for("")
        if session.video_url and session.video_url.startswith(local_prefix):
            names.append(session.video_url[len(local_prefix):])
        return names

    def cleanup_expired(self) -> int:
        """Forget idle sessions and delete the files they stored"""
        expired = self.store.cleanup_expired()
        for session in expired:
            for name in self._owned_media(session):
                try:
                    self.media.delete(name)
                except (OSError, ValueError) as e:
                    logger.warning(f"Could not delete {name} of expired session {session.id}: {e}")
        return len(expired)

    # ==================== OPERATIONS ====================

    def create_session(self, image_bytes: bytes, product_name: str) -> WizardSession:
        """
        Start a wizard with an uploaded image and a product name

        Raises:
            WizardError: Invalid image or blank product name
        """
        is_valid, error = validate_image_upload(image_bytes, settings.max_upload_bytes)
        if not is_valid:
            raise WizardError(error)

        product_name = sanitize_text(product_name or "", max_length=200)
        is_valid, error = validate_product_name(product_name)
        if not is_valid:
            raise WizardError(error)

        self.cleanup_expired()

        suffix = SUFFIX_BY_FORMAT.get(detect_image_format(image_bytes) or "", ".png")
        image = self.media.save(image_bytes, suffix, prefix="upload")

        session = WizardSession(uuid.uuid4().hex, product_name, image)
        self.store.add(session)
        log_session_action(logger, session.id, "Created", f"product={product_name}")
        return session

    def get_session(self, session_id: str) -> WizardSession:
        return self.store.get(session_id)

    async def analyze(self, db: AsyncSession, session_id: str) -> WizardSession:
        session = self.store.get(session_id)
        self._require_step(session, WizardStep.upload)

        async with self.lock.acquire(session_id, "analysis"):
            categories = [c.to_dict() for c in await crud.get_categories(db)]
            system_prompt = await self._prompt_override(db, ANALYSIS_PROMPT_KEY)

            log_session_action(logger, session.id, "Analyzing", f"{len(categories)} categories")
            result = await self.analyzer.analyze(
                self.media.read(session.image.name),
                session.product_name,
                categories,
                system_prompt=system_prompt
            )

            if not result["success"]:
                session.move_to(WizardStep.upload, error=result["error"] or "Analysis failed")
                return session

            session.analysis = {
                "analysis": result["analysis"],
                "suggestedCategoryId": result["suggested_category_id"],
                "suggestedCategoryName": result["suggested_category_name"],
                "confidence": result["confidence"],
                "productProfile": result["product_profile"],
            }
            session.category_id = result["suggested_category_id"]
            session.move_to(WizardStep.category)
            log_session_action(logger, session.id, "Analyzed", f"suggested={session.category_id}")
            return session

    async def select_category(self, db: AsyncSession, session_id: str, category_id: str) -> WizardSession:
        session = self.store.get(session_id)
        self._require_step(session, WizardStep.category)

        if not category_id or not await crud.get_category_by_id(db, category_id):
            raise WizardError(f"Unknown category: {category_id}")

        if category_id != session.category_id:
            session.style_id = None
        session.category_id = category_id
        session.move_to(WizardStep.mode)
        return session

    def select_mode(self, session_id: str, mode: str) -> WizardSession:
        session = self.store.get(session_id)
        self._require_step(session, WizardStep.mode)

        try:
            session.mode = WizardMode(mode)
        except ValueError:
            raise WizardError(f"Unknown mode: {mode}")

        session.move_to(WizardStep.style)
        return session

    async def generate_image(
        self,
        db: AsyncSession,
        session_id: str,
        style_id: Optional[str] = None,
        custom_prompt: Optional[str] = None
    ) -> WizardSession:
        session = self.store.get(session_id)
        self._require_step(session, WizardStep.style)

        custom_prompt = sanitize_text(custom_prompt or "", max_length=2000)
        style = None
        if style_id:
            style = await crud.get_style_by_id(db, style_id)
            if not style:
                raise WizardError(f"Unknown style: {style_id}")

        try:
            prompt = compose_image_prompt(style.prompt if style else None, custom_prompt, session.mode)
        except ValueError as e:
            raise WizardError(str(e))

        async with self.lock.acquire(session_id, "image"):
            session.style_id = style.id if style else None
            session.custom_prompt = custom_prompt or None
            session.prompt_used = prompt
            session.completed = False
            session.move_to(WizardStep.generating)

            log_session_action(logger, session.id, "Generating image", f"style={session.style_id}")
            try:
                result = await self.image_editor.generate(
                    self.media.read(session.image.name),
                    prompt,
                    image_url=session.image.url
                )
                if not result["success"]:
                    session.move_to(WizardStep.style, error=result["error"] or "Image generation failed")
                    return session

                generated = self.media.save(result["image_bytes"], ".png", prefix="styled")
            except Exception as e:
                log_error_with_context(logger, e, "Image generation", session.id)
                session.move_to(WizardStep.style, error="Internal processing error")
                return session

            session.generated_image = generated
            session.video_url = None
            session.playlist = None
            session.video_details = None
            session.move_to(WizardStep.confirm)

        await self._record(session, "image", prompt, session.generated_image.url, db=db)
        return session

    async def confirm(self, db: AsyncSession, session_id: str) -> WizardSession:
        """Accept the still. Photo mode ends here, photo+video starts the animation job."""
        session = self.store.get(session_id)
        self._require_step(session, WizardStep.confirm)

        if session.mode != WizardMode.photovideo:
            session.completed = True
            session.touch()
            log_session_action(logger, session.id, "Completed", "photo")
            return session

        motion_prompt = await self._prompt_override(db, MOTION_PROMPT_KEY)
        await self._start_job(session, VIDEO_JOB, lambda: self._run_video_job(session, motion_prompt))
        return session

    async def create_campaign(self, db: AsyncSession, session_id: str) -> WizardSession:
        """Start the five-scene campaign video from the confirmed still"""
        session = self.store.get(session_id)
        self._require_step(session, WizardStep.confirm, WizardStep.video_ready)

        if not session.analysis or not session.analysis.get("productProfile"):
            raise WizardError("Product analysis is required for a campaign")

        video_prompt = await self._prompt_override(db, VIDEO_PROMPTS_KEY)
        await self._start_job(session, CAMPAIGN_JOB, lambda: self._run_campaign_job(session, video_prompt))
        return session

    def back(self, session_id: str) -> WizardSession:
        session = self.store.get(session_id)
        if self.lock.is_processing(session_id):
            raise WizardStepError("Cannot go back while processing")

        previous = BACK_TRANSITIONS.get(session.step)
        if previous is None:
            raise WizardStepError(f"Cannot go back from step '{session.step.value}'")

        session.completed = False
        session.move_to(previous)
        return session

    # ==================== BACKGROUND JOBS ====================

    async def _start_job(self, session: WizardSession, job: str, factory: Callable[[], Awaitable[None]]):
        await self.lock.try_acquire(session.id, job)

        session.video_job = job
        session.video_url = None
        session.playlist = None
        session.video_details = None
        session.move_to(WizardStep.video_generating)
        log_session_action(logger, session.id, "Video job started", job)

        async def runner():
            try:
                await factory()
            except asyncio.CancelledError:
                session.move_to(WizardStep.confirm, error="Video generation cancelled")
                raise
            except Exception as e:
                log_error_with_context(logger, e, f"{job} job", session.id)
                session.move_to(WizardStep.confirm, error="Internal processing error")
            finally:
                self._jobs.pop(session.id, None)
                await self.lock.release(session.id)

        self._jobs[session.id] = asyncio.create_task(runner())

    async def _run_video_job(self, session: WizardSession, motion_prompt: Optional[str]):
        result = await self.video_generator.animate_image(
            session.generated_image.url,
            motion_system_prompt=motion_prompt
        )
        session.video_details = {
            "motionPrompt": result["motion_prompt"],
            "taskId": result["task_id"],
            "state": result["state"],
        }

        if not result["success"]:
            session.move_to(WizardStep.confirm, error=result["error"] or "Video generation failed")
            return

        session.video_url = result["video_url"]
        session.move_to(WizardStep.video_ready)
        log_session_action(logger, session.id, "Video ready", session.video_url)
        await self._record(session, "video", result["motion_prompt"] or "", session.video_url)

    async def _run_campaign_job(self, session: WizardSession, video_prompt: Optional[str]):
        reference = session.generated_image.url if session.generated_image else session.image.url
        result = await self.video_generator.generate_campaign(
            session.analysis["productProfile"],
            analysis=session.analysis.get("analysis"),
            reference_image_url=reference,
            video_system_prompt=video_prompt
        )
        session.video_details = {
            "scenes": [
                {"taskId": s["task_id"], "state": s["state"], "videoUrl": s["video_url"], "error": s["error"]}
                for s in result["scenes"]
            ],
        }

        if not result["success"]:
            session.move_to(WizardStep.confirm, error=result["error"] or "Campaign generation failed")
            return

        combined = result["combined"]
        session.video_url = combined["video_url"]
        session.playlist = combined["playlist"]
        session.video_details["message"] = combined["message"]
        session.video_details["totalDuration"] = combined["total_duration"]
        session.move_to(WizardStep.video_ready)
        log_session_action(logger, session.id, "Campaign ready", f"fallback={combined['fallback']}")

        result_url = session.video_url or ",".join(result["video_urls"])
        prompts = "\n".join(str(s["scene"]) for s in result["scenes"])
        await self._record(session, "campaign", prompts, result_url)

    async def wait_for_job(self, session_id: str):
        task = self._jobs.get(session_id)
        if task:
            await asyncio.gather(task, return_exceptions=True)

    async def shutdown(self):
        """Cancel running video jobs"""
        tasks = list(self._jobs.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info(f"Cancelled {len(tasks)} video jobs")
