from __future__ import annotations

import logging
from typing import Optional

from .config import IMAGE_MEDIA_PREFIX, MAX_IMAGE_BYTES, MSG_INVALID_TYPE, MSG_TOO_LARGE
from .contracts import ErrorKind, ImageFile, ImageSelection, OperationFailure
from .io import create_preview

logger = logging.getLogger(__name__)


def check_candidate(candidate: ImageFile) -> None:
    """Raise a validation failure if the file is not an image or is over 5 MiB."""
    if not (candidate.media_type or "").startswith(IMAGE_MEDIA_PREFIX):
        raise OperationFailure(ErrorKind.VALIDATION, MSG_INVALID_TYPE)
    if candidate.size > MAX_IMAGE_BYTES:
        raise OperationFailure(ErrorKind.VALIDATION, MSG_TOO_LARGE)


def validate(candidate: ImageFile, previous: Optional[ImageSelection] = None) -> ImageSelection:
    """
    Validate a chosen file and turn it into a selection with a fresh preview.

    The previous selection's preview is released only once the new preview
    exists; a rejected candidate or a failed preview leaves it untouched.
    """
    try:
        check_candidate(candidate)
    except OperationFailure as e:
        logger.info("Rejected %s (%s, %d bytes): %s", candidate.filename, candidate.media_type, candidate.size, e)
        raise

    preview = create_preview(candidate)
    if previous is not None:
        previous.preview.release()
    return ImageSelection(file=candidate, preview=preview)
