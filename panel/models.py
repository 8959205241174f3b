"""Data structures passed between the form, the resolver and the layout."""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Final, Protocol, Union

from metadata.brands import BRAND_NONE, LENS_NONE

PORTRAIT: Final[str] = "portrait"
LANDSCAPE: Final[str] = "landscape"
ORIENTATIONS: Final[tuple[str, ...]] = (PORTRAIT, LANDSCAPE)


@dataclass(frozen=True, slots=True)
class DisplayForm:
    """Editable panel fields, mirroring what a user sees in the form."""

    camera_name: str = ""
    brand_choice: str = BRAND_NONE
    brand_custom: str = ""
    lens_choice: str = LENS_NONE
    lens_custom: str = ""
    aperture: str = ""
    shutter_speed: str = ""
    focal_length: str = ""
    iso: str = ""
    orientation: str = PORTRAIT

    @classmethod
    def field_names(cls) -> tuple[str, ...]:
        return tuple(item.name for item in fields(cls))


DEFAULT_FORM: Final[DisplayForm] = DisplayForm()


@dataclass(frozen=True, slots=True)
class Stat:
    value: str
    label: str


@dataclass(frozen=True, slots=True)
class DisplayRecord:
    """Render-ready panel text."""

    camera_name: str
    brand_text: str
    brand_key: str
    lens_text: str
    stats: tuple[Stat, ...]


@dataclass(frozen=True, slots=True)
class LayoutGeometry:
    canvas_width: int
    canvas_height: int
    panel_size: int
    orientation: str


@dataclass(frozen=True, slots=True)
class LogoAsset:
    """A host-supplied logo image, referenced by ``key`` in draw instructions."""

    key: str
    width: int
    height: int


@dataclass(frozen=True, slots=True)
class FillRect:
    x: float
    y: float
    width: float
    height: float
    color: str


@dataclass(frozen=True, slots=True)
class DrawImage:
    asset: str
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True, slots=True)
class FillText:
    """Text with its left edge at ``x`` and alphabetic baseline at ``y``."""

    text: str
    x: float
    y: float
    size: int
    weight: int
    color: str


@dataclass(frozen=True, slots=True)
class StrokeLine:
    x1: float
    y1: float
    x2: float
    y2: float
    width: int
    color: str


DrawInstruction = Union[FillRect, DrawImage, FillText, StrokeLine]


@dataclass(frozen=True, slots=True)
class PanelLayout:
    geometry: LayoutGeometry
    instructions: tuple[DrawInstruction, ...]


class FontMetrics(Protocol):
    def measure(self, text: str, size: int, weight: int) -> float: ...


class LogoProvider(Protocol):
    def lookup(self, name: str) -> LogoAsset | None: ...
