from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class DiagnosticCategory:
    key: str
    keyword: str
    title: str
    summary: str
    description: str
    card_class: str
    badge_class: str
    panel_class: str


# Priority order matters: the first keyword contained in a label wins.
CATEGORIES: Tuple[DiagnosticCategory, ...] = (
    DiagnosticCategory(
        key="healthy",
        keyword="health",
        title="Healthy",
        summary="The cat's skin is healthy and normal.",
        description=(
            "The cat's skin is in a healthy, normal condition. "
            "No significant signs of skin disease were found."
        ),
        card_class="bg-green-900 border-green-700 text-green-200",
        badge_class="bg-green-900 text-green-200",
        panel_class="border-green-700 bg-green-950",
    ),
    DiagnosticCategory(
        key="flea_allergy",
        keyword="flea",
        title="Flea Allergy",
        summary="Flea allergy causing itching and skin irritation.",
        description=(
            "A flea allergy causing itching and skin irritation was detected. "
            "Removing the fleas and consulting a veterinarian is recommended."
        ),
        card_class="bg-yellow-900 border-yellow-700 text-yellow-200",
        badge_class="bg-yellow-900 text-yellow-200",
        panel_class="border-yellow-700 bg-yellow-950",
    ),
    DiagnosticCategory(
        key="ringworm",
        keyword="ringworm",
        title="Ringworm",
        summary="Fungal infection causing circular patches on the skin.",
        description=(
            "A fungal infection (ringworm) causing circular patches on the skin was detected. "
            "Consult a veterinarian promptly for antifungal treatment."
        ),
        card_class="bg-red-900 border-red-700 text-red-200",
        badge_class="bg-red-900 text-red-200",
        panel_class="border-red-700 bg-red-950",
    ),
    DiagnosticCategory(
        key="scabies",
        keyword="scabies",
        title="Scabies",
        summary="Mite infestation causing severe itching and hair loss.",
        description=(
            "A mite infestation (scabies) causing severe itching and hair loss was detected. "
            "Immediate veterinary treatment is required."
        ),
        card_class="bg-purple-900 border-purple-700 text-purple-200",
        badge_class="bg-purple-900 text-purple-200",
        panel_class="border-purple-700 bg-purple-950",
    ),
)

FALLBACK = DiagnosticCategory(
    key="unrecognized",
    keyword="",
    title="Unrecognized",
    summary="The result does not match a known skin condition.",
    description=(
        "Classification result could not be categorized with certainty; "
        "consult a veterinarian for further examination."
    ),
    card_class="bg-gray-900 border-gray-700 text-gray-200",
    badge_class="bg-gray-900 text-gray-200",
    panel_class="border-gray-700 bg-gray-950",
)


def catalog() -> Tuple[DiagnosticCategory, ...]:
    """The known categories, in display order (excludes the fallback)."""
    return CATEGORIES


def get_category(key: str) -> Optional[DiagnosticCategory]:
    if key == FALLBACK.key:
        return FALLBACK
    for category in CATEGORIES:
        if category.key == key:
            return category
    return None


def match_category(label: str) -> DiagnosticCategory:
    p = (label or "").strip().lower()
    for category in CATEGORIES:
        if category.keyword in p:
            return category
    return FALLBACK
