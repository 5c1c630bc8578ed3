import pytest


def test_save_and_read(media_store):
    stored = media_store.save(b"png-data", "png", prefix="upload")

    assert stored.name.startswith("upload_")
    assert stored.name.endswith(".png")
    assert stored.url == f"http://testserver/media/{stored.name}"
    assert stored.content_type == "image/png"
    assert stored.path.parent == media_store.root
    assert media_store.read(stored.name) == b"png-data"


def test_names_are_unique(media_store):
    first = media_store.save(b"a", ".mp4")
    second = media_store.save(b"b", ".mp4")
    assert first.name != second.name


def test_prefix_is_sanitized(media_store):
    stored = media_store.save(b"a", ".jpg", prefix="../../etc")
    assert stored.name.startswith("etc_")


def test_delete(media_store):
    stored = media_store.save(b"a", ".png")

    assert media_store.delete(stored.name) is True
    assert not stored.path.exists()
    assert media_store.delete(stored.name) is False


@pytest.mark.parametrize("name", ["../secret.txt", "a/b.png", "noextension", ""])
def test_rejects_unsafe_names(media_store, name):
    with pytest.raises(ValueError):
        media_store.read(name)
