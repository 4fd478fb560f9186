from __future__ import annotations

import asyncio
import logging
import math
from typing import Any, Dict, Optional

import requests

from .config import MSG_NETWORK, MSG_SERVER_ERROR, MSG_TIMEOUT, get_predict_url, get_timeout_s
from .contracts import ClassificationResult, ErrorKind, ImageFile, ImageSelection, OperationFailure

logger = logging.getLogger(__name__)


def _post_image(url: str, file: ImageFile, timeout_s: float) -> requests.Response:
    # requests builds the multipart body and its boundary header itself.
    files = {"file": (file.filename, file.data, file.media_type)}
    return requests.post(url, files=files, timeout=timeout_s)


def _coerce_label(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _coerce_confidence(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    try:
        confidence = float(value)
    except (TypeError, ValueError, OverflowError):
        return 0.0
    return confidence if math.isfinite(confidence) else 0.0


def decode_result(data: Any) -> ClassificationResult:
    """
    Lenient decode of the service payload.

    Nothing is range-checked; a missing label decodes to "" and a missing or
    non-numeric confidence to 0.0 so the interpreter can still fall back.
    """
    obj: Dict[str, Any] = data if isinstance(data, dict) else {}
    if not isinstance(data, dict):
        logger.warning("Unexpected response payload type: %s", type(data).__name__)
    return ClassificationResult(
        prediction_label=_coerce_label(obj.get("prediction")),
        confidence=_coerce_confidence(obj.get("confidence")),
    )


def _classify_sync(url: str, file: ImageFile, timeout_s: float) -> ClassificationResult:
    try:
        resp = _post_image(url, file, timeout_s)
    except requests.exceptions.Timeout as e:
        logger.warning("Classification request timed out: %s", e)
        raise OperationFailure(ErrorKind.TIMEOUT, MSG_TIMEOUT) from e
    except requests.exceptions.RequestException as e:
        logger.warning("Classification request failed: %s", e)
        raise OperationFailure(ErrorKind.NETWORK_OR_UNKNOWN, MSG_NETWORK) from e

    if resp.status_code == 500:
        logger.warning("Inference service returned HTTP 500")
        raise OperationFailure(ErrorKind.SERVER_ERROR, MSG_SERVER_ERROR)
    try:
        resp.raise_for_status()
        data = resp.json()
    except (requests.exceptions.RequestException, ValueError) as e:
        logger.warning("Unusable response from inference service (HTTP %s): %s", resp.status_code, e)
        raise OperationFailure(ErrorKind.NETWORK_OR_UNKNOWN, MSG_NETWORK) from e

    return decode_result(data)


async def classify(
    selection: ImageSelection,
    *,
    url: Optional[str] = None,
    timeout_s: Optional[float] = None,
) -> ClassificationResult:
    """
    Send the selected image to the inference service.

    Exactly one POST per call, no retries. The timeout bounds the whole call
    from request start; every failure surfaces as an OperationFailure.

    The bound applies to this coroutine only. The worker thread running
    requests cannot be interrupted: it holds its connection until requests'
    own per-read timeout fires, so a server that trickles bytes keeps the
    thread alive past the bound, and asyncio.run() waits for it at shutdown.
    """
    url = url or get_predict_url()
    timeout_s = get_timeout_s() if timeout_s is None else timeout_s
    logger.debug("POST %s (%s, %d bytes)", url, selection.file.filename, selection.file.size)

    try:
        return await asyncio.wait_for(
            asyncio.to_thread(_classify_sync, url, selection.file, timeout_s),
            timeout=timeout_s,
        )
    except asyncio.TimeoutError as e:
        logger.warning("Classification exceeded %.1fs", timeout_s)
        raise OperationFailure(ErrorKind.TIMEOUT, MSG_TIMEOUT) from e
    except OperationFailure:
        raise
    except Exception as e:
        logger.exception("Unexpected error while classifying %s", selection.file.filename)
        raise OperationFailure(ErrorKind.NETWORK_OR_UNKNOWN, MSG_NETWORK) from e
