"""
Small normalisation helpers used by the position filters.
"""

from typing import Any

DEFAULT_TAG_CATEGORY = "Technology"


def norm(value: Any) -> str:
    """String-ify and trim; None becomes ''."""
    return "" if value is None else str(value).strip()


def lower(value: Any) -> str:
    """Trimmed, case-folded form used for case-insensitive comparisons."""
    return norm(value).casefold()


def tag_name(tag: Any) -> str:
    if isinstance(tag, str):
        return tag
    return getattr(tag, "name", None) or ""


def tag_category(tag: Any) -> str:
    if isinstance(tag, str):
        return DEFAULT_TAG_CATEGORY
    return getattr(tag, "category", None) or DEFAULT_TAG_CATEGORY
