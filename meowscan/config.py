import os

PREDICT_URL = "https://oqi121-klasifikasi-penyakit-kucing.hf.space/predict"

REQUEST_TIMEOUT_S = 30.0

MAX_IMAGE_BYTES = 5 * 1024 * 1024
IMAGE_MEDIA_PREFIX = "image/"

CONFIDENCE_HIGH = 0.8
CONFIDENCE_MEDIUM = 0.6

# User-facing messages (one fixed message per failure kind).
MSG_INVALID_TYPE = "Please choose a valid image file."
MSG_TOO_LARGE = "File size must be under 5MB."
MSG_NO_SELECTION = "Please choose an image first."
MSG_TIMEOUT = "Request timed out, please try again."
MSG_SERVER_ERROR = "Server error, please try again later."
MSG_NETWORK = "Failed to classify image, check your internet connection and try again."

TIER_TEXT_CLASSES = {
    "high": "text-emerald-400",
    "medium": "text-cyan-400",
    "low": "text-rose-400",
}

TIER_BAR_CLASSES = {
    "high": "bg-gradient-to-r from-emerald-600 to-emerald-500",
    "medium": "bg-gradient-to-r from-cyan-600 to-cyan-500",
    "low": "bg-gradient-to-r from-rose-600 to-rose-500",
}


def get_predict_url() -> str:
    return os.getenv("MEOWSCAN_PREDICT_URL", PREDICT_URL).strip() or PREDICT_URL


def get_timeout_s() -> float:
    try:
        return float(os.getenv("MEOWSCAN_TIMEOUT_S", str(REQUEST_TIMEOUT_S)))
    except ValueError:
        return REQUEST_TIMEOUT_S
