"""Turn decoded EXIF values into clean display strings.

Every helper here is total: any decoded value shape (or ``None``) is
accepted and the worst case is an empty string or ``None``.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from .brands import BRAND_MATCHERS, BRAND_NONE, BRAND_OPTIONS, CHOICE_OTHER, LENS_NONE, LENS_OPTIONS
from .tiff_decoder import Rational

__all__ = [
    "CameraMetadata",
    "ChoiceState",
    "derive_camera_name",
    "detect_brand",
    "format_aperture",
    "format_exposure",
    "format_focal_length",
    "format_iso",
    "format_number",
    "normalize_tags",
    "normalize_text",
    "orientation_for",
    "resolve_brand_state",
    "resolve_lens_state",
    "round_half_up",
    "to_numeric",
]

_APERTURE_PREFIX_RE = re.compile(r"^f", re.IGNORECASE)
_FOCAL_UNIT_RE = re.compile(r"\s*mm\s*$", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class CameraMetadata:
    make: str = ""
    model: str = ""
    lens_make: str = ""
    lens_model: str = ""
    iso: str = ""
    aperture: str = ""
    shutter_speed: str = ""
    focal_length: str = ""


@dataclass(frozen=True, slots=True)
class ChoiceState:
    """A dropdown selection plus the free text used when it is ``other``."""

    choice: str
    custom: str = ""

    def as_text(self) -> str:
        if self.choice == CHOICE_OTHER:
            return self.custom
        if self.choice == BRAND_NONE:
            return ""
        return self.choice


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def normalize_text(value: Any) -> str:
    if value is None:
        return ""
    if _is_sequence(value):
        return normalize_text(value[0]) if value else ""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("latin-1").split("\x00", 1)[0].strip()
    return str(value).strip()


def to_numeric(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Rational):
        if not value.denominator:
            return None
        return value.numerator / value.denominator
    if _is_sequence(value):
        return to_numeric(value[0]) if value else None
    if isinstance(value, (int, float)):
        number = float(value)
        return number if math.isfinite(number) else None
    return None


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def format_number(value: float | None) -> str:
    if value is None or not math.isfinite(value * 10):
        return ""
    rounded = round_half_up(value * 10) / 10
    if rounded.is_integer():
        return str(int(rounded))
    return str(rounded)


def _reciprocal(seconds: float) -> str:
    denominator = 1 / seconds
    if not math.isfinite(denominator):
        return ""
    return f"1/{round_half_up(denominator)}"


def _format_seconds(seconds: float | None) -> str:
    if seconds is None or not math.isfinite(seconds) or seconds <= 0:
        return ""
    if seconds < 1:
        return _reciprocal(seconds)
    return format_number(seconds)


def format_exposure(value: Any) -> str:
    """Render an exposure time as ``1/N`` below one second, else seconds."""

    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, str):
        text = value.strip()
        if not text or "/" in text:
            return text
        try:
            seconds = float(text)
        except ValueError:
            return text
        return _format_seconds(seconds)
    if isinstance(value, Rational):
        if not value.denominator or not value.numerator:
            return ""
        if value.numerator == 1:
            return f"1/{value.denominator}"
        return _format_seconds(value.numerator / value.denominator)
    if _is_sequence(value):
        return format_exposure(value[0]) if value else ""
    return _format_seconds(to_numeric(value))


def format_aperture(value: Any) -> str:
    text = normalize_text(value)
    if not text:
        return "-"
    return "f" + _APERTURE_PREFIX_RE.sub("", text)


def format_focal_length(value: Any) -> str:
    return _FOCAL_UNIT_RE.sub("", normalize_text(value)).strip()


def format_iso(value: Any) -> str:
    return normalize_text(value) or "-"


def derive_camera_name(make: str, model: str) -> str:
    make = normalize_text(make)
    model = normalize_text(model)
    if make and model:
        if make.lower() in model.lower():
            return model
        return f"{make} {model}".strip()
    return model or make


def detect_brand(value: Any) -> str:
    text = normalize_text(value)
    if not text:
        return ""
    for pattern, label in BRAND_MATCHERS:
        if pattern.search(text):
            return label
    return ""


def resolve_brand_state(value: Any) -> ChoiceState:
    text = normalize_text(value)
    if not text:
        return ChoiceState(BRAND_NONE)
    lowered = text.lower()
    for option in BRAND_OPTIONS:
        if option.lower() == lowered:
            return ChoiceState(option)
    detected = detect_brand(text)
    if detected in BRAND_OPTIONS:
        return ChoiceState(detected)
    return ChoiceState(CHOICE_OTHER, text)


def resolve_lens_state(value: Any) -> ChoiceState:
    text = normalize_text(value)
    if not text:
        return ChoiceState(LENS_NONE)
    lowered = text.lower()
    for option in LENS_OPTIONS:
        if option.lower() in lowered:
            return ChoiceState(option)
    detected = detect_brand(text)
    if detected in LENS_OPTIONS:
        return ChoiceState(detected)
    return ChoiceState(CHOICE_OTHER, text)


def orientation_for(width: int, height: int) -> str:
    return "landscape" if width >= height else "portrait"


def normalize_tags(tags: Mapping[str, Any]) -> CameraMetadata:
    iso = tags.get("ISOSpeedRatings") or tags.get("PhotographicSensitivity")
    return CameraMetadata(
        make=normalize_text(tags.get("Make")),
        model=normalize_text(tags.get("Model")),
        lens_make=normalize_text(tags.get("LensMake")),
        lens_model=normalize_text(tags.get("LensModel")),
        iso=normalize_text(iso),
        aperture=format_number(to_numeric(tags.get("FNumber"))),
        shutter_speed=format_exposure(tags.get("ExposureTime")),
        focal_length=format_number(to_numeric(tags.get("FocalLength"))),
    )
