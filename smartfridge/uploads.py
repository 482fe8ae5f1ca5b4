"""On-disk handling of uploaded images."""

from __future__ import annotations

import logging
import re
import time
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from uuid import uuid4

logger = logging.getLogger(__name__)

IMAGES_URL_PREFIX = "/images/"

_UNSAFE_CHARS = re.compile(r"[^\w.\-]")


def _safe_name(filename: str | None, default: str = "image.jpg") -> str:
    name = Path(filename or "").name or default
    return _UNSAFE_CHARS.sub("_", name)


def save_product_image(upload_dir: str | Path, data: bytes, filename: str | None) -> str:
    """Store a product photo and return the URL path it is served under."""
    directory = Path(upload_dir)
    directory.mkdir(parents=True, exist_ok=True)
    stored = f"{int(time.time() * 1000)}-{_safe_name(filename)}"
    (directory / stored).write_bytes(data)
    return IMAGES_URL_PREFIX + stored


def remove_product_image(upload_dir: str | Path, image_path: str | None) -> bool:
    """Delete a stored product photo given its URL path."""
    if not image_path:
        return False
    target = Path(upload_dir) / Path(image_path).name
    if target.exists():
        target.unlink()
        logger.debug("Removed product image %s", target)
        return True
    return False


@contextmanager
def temporary_upload(
    upload_dir: str | Path, data: bytes, filename: str | None = None
) -> Iterator[Path]:
    """Keep an upload on disk only for the duration of the ``with`` block."""
    directory = Path(upload_dir)
    directory.mkdir(parents=True, exist_ok=True)
    suffix = Path(_safe_name(filename)).suffix or ".jpg"
    path = directory / f"upload-{uuid4().hex}{suffix}"
    path.write_bytes(data)
    try:
        yield path
    finally:
        path.unlink(missing_ok=True)
