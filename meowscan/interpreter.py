from __future__ import annotations

from .config import CONFIDENCE_HIGH, CONFIDENCE_MEDIUM, TIER_BAR_CLASSES, TIER_TEXT_CLASSES
from .contracts import ClassificationResult, ConfidenceTier, ResolvedDiagnostic
from .taxonomy import match_category


def confidence_tier(confidence: float) -> ConfidenceTier:
    # Display-only bucketing; out-of-range values are not clamped.
    if confidence >= CONFIDENCE_HIGH:
        return "high"
    if confidence >= CONFIDENCE_MEDIUM:
        return "medium"
    return "low"


def format_confidence(confidence: float) -> str:
    return f"{confidence * 100:.1f}%"


def resolve(result: ClassificationResult) -> ResolvedDiagnostic:
    """
    Map a raw classification onto the diagnostic taxonomy.

    Never fails: labels outside the known keywords (including empty ones)
    resolve to the fallback category.
    """
    category = match_category(result.prediction_label)
    tier = confidence_tier(result.confidence)
    return ResolvedDiagnostic(
        category=category.key,
        title=category.title,
        description=category.description,
        badge_class=category.badge_class,
        panel_class=category.panel_class,
        prediction_label=result.prediction_label,
        confidence=result.confidence,
        confidence_tier=tier,
        confidence_text_class=TIER_TEXT_CLASSES[tier],
        confidence_bar_class=TIER_BAR_CLASSES[tier],
        confidence_percent=format_confidence(result.confidence),
    )


def render_report(diagnostic: ResolvedDiagnostic) -> str:
    """Plain-text, printable summary of a resolved diagnostic."""
    lines = [
        "Classification result",
        f"  Diagnosis:  {diagnostic.prediction_label or '-'} ({diagnostic.title})",
        f"  Confidence: {diagnostic.confidence_percent} [{diagnostic.confidence_tier}]",
        f"  {diagnostic.description}",
    ]
    return "\n".join(lines)
