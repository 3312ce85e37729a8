"""
TMDB Constants and Language Helpers
"""

from enum import Enum
from typing import List, Optional


class ContentKind(str, Enum):
    """Catalog content kinds synced from TMDB."""
    MOVIE = "movie"
    TV = "tv"


# TMDB refuses pages beyond 500 on list endpoints
TMDB_MAX_PAGES = 500
TMDB_DEFAULT_LANGUAGE = "en-US"

# Bulk export file prefixes differ from the API path segments
EXPORT_KIND = {
    ContentKind.MOVIE: "movie",
    ContentKind.TV: "tv_series",
}

VIETNAMESE_LANGUAGE = "vi-VN"

# Languages fetched per item during daily export sync
TRANSLATION_LANGUAGES: List[str] = [VIETNAMESE_LANGUAGE]


def normalize_language_tag(language: Optional[str] = None) -> str:
    """
    Collapse language tags to the canonical form used for storage.

    "vi", "vi-vn", "VI_VN" -> "vi-VN"; "en", "en-us" -> "en-US";
    blank -> default language; anything else is returned trimmed.
    """
    if not language or not language.strip():
        return TMDB_DEFAULT_LANGUAGE

    trimmed = language.strip()
    normalized = trimmed.lower().replace("_", "-")

    if normalized in ("vi", "vi-vn"):
        return VIETNAMESE_LANGUAGE
    if normalized in ("en", "en-us"):
        return TMDB_DEFAULT_LANGUAGE

    return trimmed


def get_language_candidates(language: Optional[str] = None) -> List[str]:
    """Stored language values that should match a lookup for `language`."""
    normalized = normalize_language_tag(language)

    if normalized == VIETNAMESE_LANGUAGE:
        # Rows written before normalization may still carry the base tag
        return [VIETNAMESE_LANGUAGE, "vi"]

    return [normalized]
