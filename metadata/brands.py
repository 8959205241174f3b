"""Static brand vocabulary shared by the normalizer, resolver and layout."""

from __future__ import annotations

import re
from collections.abc import Mapping
from types import MappingProxyType
from typing import Final

# Order matters: the first matching pattern wins. Some entries are broad on
# purpose (model codes such as "ILCE" or "GR").
BRAND_MATCHERS: Final[tuple[tuple[re.Pattern[str], str], ...]] = (
    (re.compile(r"apple|iphone", re.IGNORECASE), "Apple"),
    (re.compile(r"sony|ilce|dsc|nex", re.IGNORECASE), "Sony"),
    (re.compile(r"canon", re.IGNORECASE), "Canon"),
    (re.compile(r"nikon", re.IGNORECASE), "Nikon"),
    (re.compile(r"fujifilm|fuji", re.IGNORECASE), "Fujifilm"),
    (re.compile(r"leica", re.IGNORECASE), "Leica"),
    (re.compile(r"panasonic|lumix", re.IGNORECASE), "Lumix"),
    (re.compile(r"sigma", re.IGNORECASE), "Sigma"),
    (re.compile(r"zeiss", re.IGNORECASE), "Zeiss"),
    (re.compile(r"olympus|om system|omds", re.IGNORECASE), "Olympus"),
    (re.compile(r"pentax", re.IGNORECASE), "Pentax"),
    (re.compile(r"ricoh|gr", re.IGNORECASE), "Ricoh"),
    (re.compile(r"hasselblad", re.IGNORECASE), "Hasselblad"),
    (re.compile(r"dji", re.IGNORECASE), "DJI"),
    (re.compile(r"gopro", re.IGNORECASE), "GoPro"),
)

BRAND_OPTIONS: Final[tuple[str, ...]] = tuple(dict.fromkeys(label for _, label in BRAND_MATCHERS))

BRAND_LOGOS: Final[Mapping[str, str]] = MappingProxyType(
    {
        "Apple": "Apple.png",
        "Fujifilm": "Fujifilm.png",
        "Leica": "Leica.png",
        "Sigma": "Sigma.png",
        "Sony": "Sony.png",
        "Zeiss": "Zeiss.png",
    }
)

LENS_OPTIONS: Final[tuple[str, ...]] = tuple(BRAND_LOGOS)

# Multipliers on the target logo height for artwork that reads small.
LOGO_SCALES: Final[Mapping[str, float]] = MappingProxyType(
    {
        "Apple": 1.45,
        "Leica": 1.4,
        "Zeiss": 1.35,
    }
)

BRAND_NONE: Final[str] = "none"
CHOICE_OTHER: Final[str] = "other"
LENS_NONE: Final[str] = ""


def _lookup_ci(table: Mapping[str, object], name: str) -> str | None:
    lowered = name.strip().lower()
    if not lowered:
        return None
    for key in table:
        if key.lower() == lowered:
            return key
    return None


def logo_key(name: str) -> str | None:
    """Return the canonical logo key for ``name`` (case-insensitive)."""

    return _lookup_ci(BRAND_LOGOS, name or "")


def logo_scale(name: str) -> float:
    key = _lookup_ci(LOGO_SCALES, name or "")
    return LOGO_SCALES[key] if key else 1.0


__all__ = [
    "BRAND_LOGOS",
    "BRAND_MATCHERS",
    "BRAND_NONE",
    "BRAND_OPTIONS",
    "CHOICE_OTHER",
    "LENS_NONE",
    "LENS_OPTIONS",
    "LOGO_SCALES",
    "logo_key",
    "logo_scale",
]
