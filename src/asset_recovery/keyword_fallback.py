"""Rule-based asset generation from a project brief.

Used when LLM extraction produced nothing usable: a fixed keyword table
maps brief text to asset categories, one record per category. This sits
outside the recovery pipeline; only the CLI (or another caller) invokes it.
"""

from __future__ import annotations

from .recovery.models import CanonicalRecord

ASSET_KEYWORDS: dict[str, list[str]] = {
    "printing": ["print", "poster", "flyer", "brochure", "signage"],
    "graphics": ["graphic", "creative"],
    "banners": ["banner"],
    "staging": ["stage", "platform", "backdrop", "display"],
    "audio": ["sound", "speaker", "microphone", "audio", "music"],
    "lighting": ["light", "lighting", "illumination", "led"],
    "catering": ["catering"],
    "food": ["food", "meal"],
    "beverages": ["beverage", "refreshment"],
    "design": ["design", "logo"],
    "branding": ["branding"],
    "marketing": ["marketing"],
    "transport": ["transport", "shipping"],
    "logistics": ["logistics"],
    "delivery": ["delivery"],
    "photography": ["photo", "photography", "picture"],
    "video": ["video", "film", "recording"],
    "security": ["security", "guard"],
}

DEFAULT_CATEGORY = "General Requirements"


def categories_from_brief(brief: str) -> list[str]:
    """Asset category names whose keywords appear in the brief, in table order."""
    text = (brief or "").lower()
    found = [
        category.capitalize()
        for category, keywords in ASSET_KEYWORDS.items()
        if any(keyword in text for keyword in keywords)
    ]
    return found or [DEFAULT_CATEGORY]


def fallback_records(brief: str) -> list[CanonicalRecord]:
    return [
        CanonicalRecord(
            name=category,
            specification_text=(
                f"Requirements for {category.lower()} based on project brief"
            ),
            category_tags=[category],
            priority="medium",
            estimated_cost_range="medium",
        )
        for category in categories_from_brief(brief)
    ]
