"""
Local media storage

Uploads, generated stills and combined videos are written under MEDIA_DIR
and served by the web app at /media/{name}. The public URL doubles as the
input URL for providers that fetch images themselves (Runway, KIE image).
"""
import logging
import mimetypes
import re
import uuid
from pathlib import Path
from typing import NamedTuple, Optional

from taswira.config import settings

logger = logging.getLogger(__name__)

SAFE_NAME = re.compile(r'^[A-Za-z0-9_\-]+\.[A-Za-z0-9]+$')


class MediaFile(NamedTuple):
    name: str
    path: Path
    url: str
    content_type: str


class MediaStore:
    def __init__(self, root_dir: Optional[Path] = None, public_base_url: Optional[str] = None):
        self.root = Path(root_dir) if root_dir else settings.media_root
        self.public_base_url = (public_base_url or settings.PUBLIC_BASE_URL).rstrip('/')
        self.root.mkdir(parents=True, exist_ok=True)

    def _resolve(self, name: str) -> Path:
        if not SAFE_NAME.match(name):
            raise ValueError(f"Invalid media name: {name!r}")
        return self.root / name

    def url_for(self, name: str) -> str:
        return f"{self.public_base_url}/media/{name}"

    def save(self, data: bytes, suffix: str, prefix: str = "file") -> MediaFile:
        """Write bytes under a random name and return its public location"""
        if not suffix.startswith('.'):
            suffix = f".{suffix}"
        prefix = re.sub(r'[^A-Za-z0-9_\-]', '', prefix) or "file"
        name = f"{prefix}_{uuid.uuid4().hex}{suffix.lower()}"
        path = self._resolve(name)
        path.write_bytes(data)

        content_type = mimetypes.guess_type(name)[0] or "application/octet-stream"
        logger.debug(f"Stored {len(data)} bytes as {name}")
        return MediaFile(name=name, path=path, url=self.url_for(name), content_type=content_type)

    def read(self, name: str) -> bytes:
        return self._resolve(name).read_bytes()

    def delete(self, name: str) -> bool:
        path = self._resolve(name)
        if not path.exists():
            return False
        path.unlink()
        return True
