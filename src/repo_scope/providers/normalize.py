import math
from typing import Any

from repo_scope.models.analysis import (
    MAX_INSIGHTS,
    MAX_KEY_FEATURES,
    TECHNOLOGY_CATEGORIES,
    AIAnalysis,
    TechnologyCategory,
    TechnologyInfo,
)

PLACEHOLDER_OVERVIEW = "Unable to generate overview."
PLACEHOLDER_PURPOSE = "Unable to determine purpose."
PLACEHOLDER_ARCHITECTURE = "Architecture details not available."
PLACEHOLDER_TECHNOLOGY_NAME = "Unknown"

DEFAULT_TECHNOLOGY_CONFIDENCE = 0.8


def normalize_confidence(value: Any) -> float:  # pyright: ignore[reportAny]
    if isinstance(value, bool) or not isinstance(value, int | float) or math.isnan(value):
        return DEFAULT_TECHNOLOGY_CONFIDENCE

    return max(0.0, min(1.0, float(value)))


def normalize_category(value: Any) -> TechnologyCategory:  # pyright: ignore[reportAny]
    for category in TECHNOLOGY_CATEGORIES:
        if value == category:
            return category

    return "other"


def normalize_technology(entry: Any) -> TechnologyInfo | None:  # pyright: ignore[reportAny]
    if not isinstance(entry, dict):
        return None

    name: Any = entry.get("name")  # pyright: ignore[reportUnknownMemberType]

    return TechnologyInfo(
        name=str(name) if name else PLACEHOLDER_TECHNOLOGY_NAME,  # pyright: ignore[reportAny]
        category=normalize_category(entry.get("category")),  # pyright: ignore[reportUnknownMemberType]
        confidence=normalize_confidence(entry.get("confidence")),  # pyright: ignore[reportUnknownMemberType]
    )


def normalize_technologies(value: Any) -> list[TechnologyInfo]:  # pyright: ignore[reportAny]
    if not isinstance(value, list):
        return []

    return [technology for entry in value if (technology := normalize_technology(entry)) is not None]  # pyright: ignore[reportUnknownVariableType]


def normalize_strings(value: Any, limit: int) -> list[str]:  # pyright: ignore[reportAny]
    if not isinstance(value, list):
        return []

    return [item for item in value if isinstance(item, str)][:limit]  # pyright: ignore[reportUnknownVariableType]


def normalize_text(value: Any, placeholder: str) -> str:  # pyright: ignore[reportAny]
    if isinstance(value, str) and value.strip():
        return value

    return placeholder


def normalize_analysis(payload: Any) -> AIAnalysis:  # pyright: ignore[reportAny]
    """Coerce the JSON returned by any provider into the canonical analysis.

    Confidence is clamped into [0, 1] (0.8 when missing), unknown categories become `other`, key features and
    insights are cut to 8 and 5 entries, and missing text fields are replaced by placeholders.
    """

    if not isinstance(payload, dict):
        payload = {}

    return AIAnalysis(
        overview=normalize_text(payload.get("overview"), PLACEHOLDER_OVERVIEW),  # pyright: ignore[reportUnknownMemberType]
        purpose=normalize_text(payload.get("purpose"), PLACEHOLDER_PURPOSE),  # pyright: ignore[reportUnknownMemberType]
        architecture=normalize_text(payload.get("architecture"), PLACEHOLDER_ARCHITECTURE),  # pyright: ignore[reportUnknownMemberType]
        key_features=normalize_strings(payload.get("keyFeatures"), limit=MAX_KEY_FEATURES),  # pyright: ignore[reportUnknownMemberType]
        technologies=normalize_technologies(payload.get("technologies")),  # pyright: ignore[reportUnknownMemberType]
        insights=normalize_strings(payload.get("insights"), limit=MAX_INSIGHTS),  # pyright: ignore[reportUnknownMemberType]
    )
