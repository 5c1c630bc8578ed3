from io import BytesIO

import pytest
from PIL import Image

from taswira.database import init_db
from taswira.services.media_store import MediaStore
from taswira.utils.api_retry import APIRetryHandler

SQLITE_URL = "sqlite+aiosqlite:///:memory:"


def make_image(fmt: str = "PNG", size=(64, 96), color=(200, 30, 30)) -> bytes:
    buffer = BytesIO()
    Image.new("RGB", size, color).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
    return make_image("PNG")


@pytest.fixture
def jpeg_bytes() -> bytes:
    return make_image("JPEG")


@pytest.fixture
def fast_retry() -> APIRetryHandler:
    return APIRetryHandler(
        name="test",
        max_retries=2,
        base_delay=0,
        timeout_base=5,
        circuit_failure_threshold=100
    )


@pytest.fixture
def media_store(tmp_path) -> MediaStore:
    return MediaStore(root_dir=tmp_path / "media", public_base_url="http://testserver")


@pytest.fixture
async def database():
    database = init_db(SQLITE_URL)
    await database.create_tables()
    yield database
    await database.close()


@pytest.fixture
async def db_session(database):
    async with database.get_session() as session:
        yield session


async def no_sleep(_seconds):
    return None
