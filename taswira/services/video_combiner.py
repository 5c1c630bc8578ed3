"""
Video concatenation

Joins the campaign clips into one vertical video. Routes, in order:
external combining service, local ffmpeg concat, sequential playlist.
"""
import aiohttp
import asyncio
import base64
import logging
import subprocess
import tempfile
from pathlib import Path
from typing import Dict, List, Optional

import imageio_ffmpeg

from taswira.config import settings
from taswira.services.media_store import MediaStore
from taswira.utils.api_retry import APIRetryHandler, ProviderError, combine_api_retry

logger = logging.getLogger(__name__)


class Playlist:
    """
    Sequential playback of clips that could not be merged.

    Every clip is treated as clip_duration seconds long; progress is over
    the whole playlist. After the last clip playback stops and rewinds.
    """

    def __init__(self, video_urls: List[str], clip_duration: Optional[int] = None):
        if not video_urls:
            raise ValueError("Playlist needs at least one video")
        self.video_urls = list(video_urls)
        self.clip_duration = clip_duration or settings.SCENE_DURATION_SECONDS

    @property
    def total_duration(self) -> int:
        return len(self.video_urls) * self.clip_duration

    def progress(self, index: int, current_time: float) -> float:
        """Overall progress in percent for position current_time inside clip index"""
        if not 0 <= index < len(self.video_urls):
            raise IndexError(f"Clip index {index} out of range")
        current_time = min(max(current_time, 0.0), float(self.clip_duration))
        elapsed = index * self.clip_duration + current_time
        return elapsed / self.total_duration * 100

    def next_index(self, index: int) -> Optional[int]:
        """Clip to play after index ends; None means stop and rewind to 0"""
        if index + 1 < len(self.video_urls):
            return index + 1
        return None

    def as_dict(self) -> Dict:
        return {
            "videoUrls": self.video_urls,
            "clipDuration": self.clip_duration,
            "totalDuration": self.total_duration,
        }


class VideoCombiner:
    def __init__(
        self,
        media_store: Optional[MediaStore] = None,
        service_url: Optional[str] = None,
        ffmpeg_enabled: Optional[bool] = None,
        retry_handler: Optional[APIRetryHandler] = None
    ):
        self.media_store = media_store or MediaStore()
        self.service_url = service_url if service_url is not None else settings.VIDEO_COMBINE_SERVICE_URL
        self.ffmpeg_enabled = settings.FFMPEG_CONCAT_ENABLED if ffmpeg_enabled is None else ffmpeg_enabled
        self.retry = retry_handler or combine_api_retry
        self.clip_duration = settings.SCENE_DURATION_SECONDS

    async def combine(self, video_urls: List[str]) -> Dict:
        """
        Combine clips into one video

        Returns:
            {
                "success": bool,
                "video_url": Optional[str],
                "playlist": Optional[dict],
                "fallback": bool,
                "total_duration": int,
                "message": Optional[str],
                "error": Optional[str]
            }
        """
        video_urls = [url for url in (video_urls or []) if url]
        if not video_urls:
            return {
                "success": False,
                "video_url": None,
                "playlist": None,
                "fallback": False,
                "total_duration": 0,
                "message": None,
                "error": "videoUrls array is required"
            }

        total_duration = len(video_urls) * self.clip_duration

        if len(video_urls) == 1:
            return self._combined(video_urls[0], total_duration, "Single clip, nothing to combine")

        if self.service_url:
            try:
                video_url = await self.retry.execute_with_retry(self._combine_with_service, video_urls)
                return self._combined(video_url, total_duration, "Videos combined by service")
            except Exception as e:
                logger.warning(f"Combining service failed, trying local ffmpeg: {e}")

        if self.ffmpeg_enabled:
            try:
                video_url = await self._combine_with_ffmpeg(video_urls)
                return self._combined(video_url, total_duration, "Videos combined with ffmpeg")
            except Exception as e:
                logger.error(f"Local ffmpeg concat failed: {e}", exc_info=True)

        logger.warning(f"Falling back to playlist of {len(video_urls)} clips")
        playlist = Playlist(video_urls, self.clip_duration)
        return {
            "success": True,
            "video_url": None,
            "playlist": playlist.as_dict(),
            "fallback": True,
            "total_duration": playlist.total_duration,
            "message": "Video concatenation unavailable. Playing clips in sequence.",
            "error": None
        }

    def _combined(self, video_url: str, total_duration: int, message: str) -> Dict:
        logger.info(f"{message}: {video_url}")
        return {
            "success": True,
            "video_url": video_url,
            "playlist": None,
            "fallback": False,
            "total_duration": total_duration,
            "message": message,
            "error": None
        }

    async def _combine_with_service(self, video_urls: List[str]) -> str:
        async with aiohttp.ClientSession() as session:
            async with session.post(self.service_url, json={"videoUrls": video_urls}) as response:
                if response.status >= 500:
                    response.raise_for_status()
                if response.status >= 400:
                    raise ProviderError(f"Combining service error: {response.status}", status=response.status)
                result = await response.json(content_type=None)

        if result.get("videoUrl"):
            return result["videoUrl"]

        if result.get("videoData"):
            video_bytes = base64.b64decode(result["videoData"])
            suffix = ".webm" if result.get("mimeType") == "video/webm" else ".mp4"
            return self.media_store.save(video_bytes, suffix, prefix="campaign").url

        raise ProviderError("Combining service returned no video", payload=result)

    async def _download(self, session: aiohttp.ClientSession, url: str, path: Path):
        async with session.get(url) as response:
            response.raise_for_status()
            path.write_bytes(await response.read())

    async def _combine_with_ffmpeg(self, video_urls: List[str]) -> str:
        with tempfile.TemporaryDirectory(prefix="taswira_concat_") as tmp:
            tmp_dir = Path(tmp)
            clip_paths = [tmp_dir / f"clip_{i:02d}.mp4" for i in range(len(video_urls))]

            logger.info(f"Downloading {len(video_urls)} clips for concatenation...")
            async with aiohttp.ClientSession() as session:
                await asyncio.gather(*[
                    self._download(session, url, path) for url, path in zip(video_urls, clip_paths)
                ])

            list_file = tmp_dir / "list.txt"
            list_file.write_text("".join(f"file '{path}'\n" for path in clip_paths))
            output_path = tmp_dir / "output.mp4"

            cmd = [
                imageio_ffmpeg.get_ffmpeg_exe(),
                '-f', 'concat',
                '-safe', '0',
                '-i', str(list_file),
                '-c', 'copy',  # Same codec for every clip, no re-encoding
                '-y',
                str(output_path)
            ]

            logger.info("Running ffmpeg concat...")
            result = await asyncio.to_thread(
                subprocess.run,
                cmd,
                capture_output=True,
                text=True,
                timeout=settings.FFMPEG_TIMEOUT
            )
            if result.returncode != 0:
                raise RuntimeError(f"ffmpeg error: {result.stderr[-500:]}")

            return self.media_store.save(output_path.read_bytes(), ".mp4", prefix="campaign").url
