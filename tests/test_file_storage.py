import pytest

from agencyhub.utils.file_storage import (
    build_attachment_path,
    resolve_storage_path,
    save_bytes_to_storage,
)


def test_attachment_path_layout():
    path = build_attachment_path("abc-123", "ref", 2, "Outfit.JPEG", timestamp_ms=1700000000000)
    assert path == "abc-123/ref-1700000000000-2.jpeg"


def test_attachment_path_without_extension_uses_bin():
    path = build_attachment_path("abc", "ref", 0, "README", timestamp_ms=1)
    assert path == "abc/ref-1-0.bin"


def test_attachment_prefix_is_sanitized():
    path = build_attachment_path("abc", " Final Delivery! ", 0, "clip.mp4", timestamp_ms=5)
    assert path == "abc/final_delivery-5-0.mp4"


def test_save_and_resolve(storage_root):
    stored = save_bytes_to_storage(b"payload", "/abc/ref-1-0.bin")

    assert stored == "abc/ref-1-0.bin"
    assert resolve_storage_path(stored).read_bytes() == b"payload"
    assert (storage_root / stored).exists()


def test_save_rejects_parent_traversal(storage_root):
    with pytest.raises(ValueError):
        save_bytes_to_storage(b"x", "abc/../../etc/passwd")
