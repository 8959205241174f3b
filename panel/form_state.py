"""Auto/live form snapshots and the transitions between them."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

from metadata.brands import CHOICE_OTHER
from metadata.normalizer import (
    CameraMetadata,
    derive_camera_name,
    resolve_brand_state,
    resolve_lens_state,
)

from .models import DEFAULT_FORM, ORIENTATIONS, PORTRAIT, DisplayForm

__all__ = [
    "FormState",
    "apply_brand_text",
    "apply_edit",
    "apply_lens_text",
    "build_form",
    "reset_to_auto",
]

_EDITABLE_FIELDS = frozenset(DisplayForm.field_names())


def build_form(metadata: CameraMetadata, orientation: str = PORTRAIT) -> DisplayForm:
    """Build the auto-filled form for freshly decoded camera metadata."""

    camera_name = derive_camera_name(metadata.make, metadata.model)
    brand = resolve_brand_state(metadata.make or camera_name)
    lens = resolve_lens_state(metadata.lens_model or metadata.lens_make)
    return DisplayForm(
        camera_name=camera_name,
        brand_choice=brand.choice,
        brand_custom=brand.custom,
        lens_choice=lens.choice,
        lens_custom=lens.custom,
        aperture=metadata.aperture,
        shutter_speed=metadata.shutter_speed,
        focal_length=metadata.focal_length,
        iso=metadata.iso,
        orientation=_checked_orientation(orientation),
    )


def _checked_orientation(value: str) -> str:
    if value not in ORIENTATIONS:
        raise ValueError(f"Unknown orientation: {value!r}")
    return value


@dataclass(frozen=True, slots=True)
class FormState:
    """The last decoded form (``auto``) and the user's edited copy (``live``)."""

    auto: DisplayForm = DEFAULT_FORM
    live: DisplayForm = DEFAULT_FORM

    @classmethod
    def start(cls, auto: DisplayForm) -> FormState:
        return cls(auto=auto, live=auto)

    @property
    def is_edited(self) -> bool:
        return self.live != self.auto


def apply_edit(state: FormState, field_name: str, value: Any) -> FormState:
    if field_name not in _EDITABLE_FIELDS:
        raise ValueError(f"Unknown form field: {field_name!r}")
    text = "" if value is None else str(value)
    changes: dict[str, str] = {field_name: text}
    if field_name == "orientation":
        _checked_orientation(text)
    elif field_name == "brand_choice" and text != CHOICE_OTHER:
        changes["brand_custom"] = ""
    elif field_name == "lens_choice" and text != CHOICE_OTHER:
        changes["lens_custom"] = ""
    return replace(state, live=replace(state.live, **changes))


def apply_brand_text(state: FormState, text: str) -> FormState:
    brand = resolve_brand_state(text)
    live = replace(state.live, brand_choice=brand.choice, brand_custom=brand.custom)
    return replace(state, live=live)


def apply_lens_text(state: FormState, text: str) -> FormState:
    lens = resolve_lens_state(text)
    live = replace(state.live, lens_choice=lens.choice, lens_custom=lens.custom)
    return replace(state, live=live)


def reset_to_auto(state: FormState) -> FormState:
    return replace(state, live=state.auto)
