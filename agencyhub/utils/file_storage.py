# agencyhub/utils/file_storage.py
import re
from pathlib import Path

from agencyhub.core.config import get_settings
from agencyhub.utils.datetime_utils import epoch_millis

_SAFE_PREFIX = re.compile(r"[^a-z0-9_]+")


def get_storage_root() -> Path:
    """
    Returns the absolute path to the file storage root directory.

    By default, this is "<cwd>/uploads", but it can be overridden
    via FILE_STORAGE_ROOT or file_storage_root in settings.
    """
    root = Path(get_settings().file_storage_root)
    if not root.is_absolute():
        root = Path.cwd() / root
    root.mkdir(parents=True, exist_ok=True)
    return root


def build_attachment_path(
    entity_id: str,
    prefix: str,
    index: int,
    original_filename: str,
    timestamp_ms: int | None = None,
) -> str:
    """
    Storage key for one attachment:

        {entity_id}/{prefix}-{timestamp_ms}-{index}.{ext}

    The extension comes from the uploaded file name and is lower-cased;
    files without one get "bin".
    """
    if timestamp_ms is None:
        timestamp_ms = epoch_millis()
    safe_prefix = _SAFE_PREFIX.sub("_", prefix.strip().lower()).strip("_") or "file"
    ext = Path(original_filename).suffix.lstrip(".").lower() or "bin"
    return f"{entity_id}/{safe_prefix}-{timestamp_ms}-{index}.{ext}"


def save_bytes_to_storage(data: bytes, storage_path: str) -> str:
    """
    Write bytes under the storage root at `storage_path`.

    Returns the relative storage path, which is what gets stored in the DB.
    """
    safe_path = storage_path.strip().strip("/").replace("\\", "/")
    if ".." in Path(safe_path).parts:
        raise ValueError("Storage path must not leave the storage root")

    full_path = get_storage_root() / safe_path
    full_path.parent.mkdir(parents=True, exist_ok=True)

    with open(full_path, "wb") as f:
        f.write(data)

    return safe_path


def resolve_storage_path(storage_path: str) -> Path:
    """
    Convert a relative storage path (stored in DB) into an absolute filesystem path.
    """
    return get_storage_root() / storage_path
