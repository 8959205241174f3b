"""Resolve a form into the exact text the panel shows."""

from __future__ import annotations

from metadata.brands import BRAND_NONE, CHOICE_OTHER
from metadata.normalizer import (
    detect_brand,
    format_aperture,
    format_exposure,
    format_focal_length,
    format_iso,
)

from .models import DisplayForm, DisplayRecord, Stat

CAMERA_PLACEHOLDER = "Camera name"
BRAND_PLACEHOLDER = "Brand"

STAT_LABELS: tuple[str, str, str, str] = ("f", "shutter speed", "mm", "ISO")

__all__ = [
    "BRAND_PLACEHOLDER",
    "CAMERA_PLACEHOLDER",
    "STAT_LABELS",
    "brand_display",
    "lens_display",
    "resolve_display",
]


def brand_display(choice: str, custom: str) -> str:
    if choice in (BRAND_NONE, ""):
        return ""
    if choice == CHOICE_OTHER:
        return custom.strip()
    return choice


def lens_display(choice: str, custom: str) -> str:
    if choice == CHOICE_OTHER:
        return custom.strip()
    return choice


def resolve_display(form: DisplayForm) -> DisplayRecord:
    """Collapse a form into the exact strings the panel will show."""

    lens_text = lens_display(form.lens_choice, form.lens_custom)
    explicit_none = form.brand_choice == BRAND_NONE
    if explicit_none:
        brand_key = ""
        brand_text = ""
    else:
        brand_key = brand_display(form.brand_choice, form.brand_custom) or detect_brand(
            form.camera_name
        )
        brand_text = brand_key or ("" if lens_text else BRAND_PLACEHOLDER)

    # The same label on both sides would draw one logo twice; keep the brand.
    if brand_text and lens_text and brand_text.lower() == lens_text.lower():
        lens_text = ""

    stats = (
        Stat(format_aperture(form.aperture), STAT_LABELS[0]),
        Stat(format_exposure(form.shutter_speed) or "-", STAT_LABELS[1]),
        Stat(format_focal_length(form.focal_length) or "-", STAT_LABELS[2]),
        Stat(format_iso(form.iso), STAT_LABELS[3]),
    )
    return DisplayRecord(
        camera_name=form.camera_name.strip() or CAMERA_PLACEHOLDER,
        brand_text=brand_text,
        brand_key=brand_key,
        lens_text=lens_text,
        stats=stats,
    )
