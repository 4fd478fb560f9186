from __future__ import annotations

import json
import logging
import mimetypes
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional

from PIL import Image

from .contracts import ImageFile

logger = logging.getLogger(__name__)

IMAGE_EXTS = {".jpg", ".jpeg", ".png", ".webp", ".bmp", ".gif", ".tif", ".tiff"}

# Not every platform mime table knows these.
mimetypes.add_type("image/webp", ".webp")
mimetypes.add_type("image/gif", ".gif")
mimetypes.add_type("image/bmp", ".bmp")
mimetypes.add_type("image/tiff", ".tif")
mimetypes.add_type("image/tiff", ".tiff")


class PreviewHandle:
    """
    Locally resolvable copy of a selected image, usable for on-screen display.

    Backed by a temporary file that exists until release(). Release is idempotent.
    """

    def __init__(self, path: str):
        self._path: Optional[str] = path

    @property
    def path(self) -> str:
        if self._path is None:
            raise RuntimeError("Preview handle already released")
        return self._path

    @property
    def released(self) -> bool:
        return self._path is None

    def open_image(self) -> Image.Image:
        img = Image.open(self.path)
        img.load()
        return img

    def release(self) -> None:
        if self._path is None:
            return
        path, self._path = self._path, None
        try:
            os.unlink(path)
        except FileNotFoundError:
            pass
        logger.debug("Released preview %s", path)

    def __enter__(self) -> "PreviewHandle":
        return self

    def __exit__(self, *exc) -> None:
        self.release()

    def __repr__(self) -> str:
        return f"PreviewHandle({self._path!r})"


def create_preview(file: ImageFile) -> PreviewHandle:
    suffix = Path(file.filename).suffix or mimetypes.guess_extension(file.media_type) or ""
    fd, path = tempfile.mkstemp(prefix="meowscan-preview-", suffix=suffix)
    try:
        with os.fdopen(fd, "wb") as fp:
            fp.write(file.data)
    except BaseException:
        os.unlink(path)
        raise
    logger.debug("Created preview %s for %s", path, file.filename)
    return PreviewHandle(path)


def guess_media_type(path: str) -> str:
    media_type, _ = mimetypes.guess_type(path)
    return media_type or "application/octet-stream"


def load_image_file(path: str) -> ImageFile:
    """Read a file from disk as a selection candidate; the media type comes from its extension."""
    p = Path(path)
    return ImageFile(filename=p.name, media_type=guess_media_type(str(p)), data=p.read_bytes())


def is_image_path(path: Path) -> bool:
    return path.is_file() and path.suffix.lower() in IMAGE_EXTS


def append_jsonl(path: str, data: Dict[str, Any]) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with open(p, "a", encoding="utf-8") as fp:
        fp.write(json.dumps(data, ensure_ascii=False, sort_keys=True) + "\n")
