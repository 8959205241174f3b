"""Resolution-independent geometry for the stats panel.

All design constants are expressed for a 238px panel (the panel of a
1080px-wide portrait photo) and scaled by ``panel_size / 238``. Each scaled
value is rounded on its own so that proportions hold at any resolution.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from metadata.brands import logo_scale
from metadata.normalizer import round_half_up

from .models import (
    LANDSCAPE,
    PORTRAIT,
    DisplayRecord,
    DrawImage,
    DrawInstruction,
    FillRect,
    FillText,
    FontMetrics,
    LayoutGeometry,
    LogoAsset,
    LogoProvider,
    PanelLayout,
    StrokeLine,
)

__all__ = [
    "BASE_PANEL",
    "MIN_FONT_SIZE",
    "PHOTO_ASSET",
    "PanelMetrics",
    "build_layout",
    "compute_geometry",
    "fit_text_size",
    "panel_metrics",
]

BASE_PANEL: Final[int] = 238
BASE_WIDTH: Final[int] = 1080
MIN_FONT_SIZE: Final[int] = 8
PHOTO_ASSET: Final[str] = "photo"

BACKGROUND_COLOR: Final[str] = "#ffffff"
TEXT_COLOR: Final[str] = "#191611"
LABEL_COLOR: Final[str] = "#4b463e"

WEIGHT_CAMERA: Final[int] = 200
WEIGHT_LABEL: Final[int] = 300
WEIGHT_VALUE: Final[int] = 500
WEIGHT_BRAND: Final[int] = 600

PORTRAIT_NAME_WIDTH_RATIO: Final[float] = 0.55


@dataclass(frozen=True, slots=True)
class PanelMetrics:
    panel_padding: int
    footer_padding: int
    number_size: int
    label_size: int
    label_gap: int
    info_gap: int
    info_top: int
    info_spacing: int
    portrait_footer_gap: int
    landscape_footer_gap: int
    name_to_brand_gap: int
    camera_size: int
    brand_size: int
    brand_gap: int
    lens_line_gap: int
    logo_height: int
    divider_width: int
    divider_height: int
    divider_stroke: int


def _px(design_value: float, scale: float) -> int:
    return round_half_up(design_value * scale)


def _font_px(design_value: float, scale: float) -> int:
    return max(1, _px(design_value, scale))


def panel_metrics(panel_size: int) -> PanelMetrics:
    scale = panel_size / BASE_PANEL
    return PanelMetrics(
        panel_padding=_px(BASE_PANEL * 0.12, scale),
        footer_padding=_px(BASE_PANEL * 0.18, scale),
        number_size=_font_px(36, scale),
        label_size=_font_px(13, scale),
        label_gap=_px(8, scale),
        info_gap=_px(27, scale),
        info_top=_px(125, scale),
        info_spacing=_px(123, scale),
        portrait_footer_gap=_px(103, scale),
        landscape_footer_gap=_px(211, scale),
        name_to_brand_gap=_px(32, scale),
        camera_size=_font_px(16, scale),
        brand_size=_font_px(18, scale),
        brand_gap=_px(12, scale),
        lens_line_gap=_px(14, scale),
        logo_height=_px(18 * 1.25, scale),
        divider_width=_px(18 * 0.7, scale),
        divider_height=_px(18 * 1.3, scale),
        divider_stroke=max(1, _px(18 * 0.12, scale)),
    )


def compute_geometry(width: int, height: int, orientation: str) -> LayoutGeometry | None:
    if width <= 0 or height <= 0:
        return None
    if orientation == LANDSCAPE:
        panel = round_half_up(height * BASE_PANEL / BASE_WIDTH)
        return LayoutGeometry(width + panel, height, panel, LANDSCAPE)
    panel = round_half_up(width * BASE_PANEL / BASE_WIDTH)
    return LayoutGeometry(width, height + panel, panel, PORTRAIT)


def fit_text_size(
    metrics: FontMetrics, text: str, max_width: float, base_size: int, weight: int
) -> int:
    """Shrink ``base_size`` one pixel at a time until ``text`` fits or the floor is hit."""

    size = base_size
    while size > MIN_FONT_SIZE and metrics.measure(text, size, weight) > max_width:
        size -= 1
    return size


@dataclass(frozen=True, slots=True)
class _Side:
    text: str
    logo: LogoAsset | None
    width: float
    height: float

    @property
    def visible(self) -> bool:
        return self.logo is not None or bool(self.text)


def _resolve_side(
    text: str,
    lookup_name: str,
    logos: LogoProvider | None,
    metrics: FontMetrics,
    pm: PanelMetrics,
) -> _Side:
    logo = logos.lookup(lookup_name) if (logos is not None and lookup_name) else None
    if logo is not None and logo.width > 0 and logo.height > 0:
        height = pm.logo_height * logo_scale(logo.key)
        return _Side(text, logo, logo.width * height / logo.height, height)
    width = metrics.measure(text, pm.brand_size, WEIGHT_BRAND) if text else 0.0
    return _Side(text, None, width, float(pm.brand_size) if text else 0.0)


def _draw_side(side: _Side, x: float, baseline: float, pm: PanelMetrics) -> DrawInstruction:
    if side.logo is not None:
        return DrawImage(side.logo.key, x, baseline - side.height, side.width, side.height)
    return FillText(side.text, x, baseline, pm.brand_size, WEIGHT_BRAND, TEXT_COLOR)


def _brand_line(
    brand: _Side, lens: _Side, right: float, baseline: float, pm: PanelMetrics
) -> list[DrawInstruction]:
    with_divider = brand.visible and lens.visible
    total = (brand.width if brand.visible else 0) + (lens.width if lens.visible else 0)
    if with_divider:
        total += pm.brand_gap * 2 + pm.divider_width
    cursor = right - total
    out: list[DrawInstruction] = []
    if brand.visible:
        out.append(_draw_side(brand, cursor, baseline, pm))
        cursor += brand.width
    if with_divider:
        cursor += pm.brand_gap
        center = cursor + pm.divider_width / 2
        bottom = baseline - pm.divider_height * 0.05
        out.append(
            StrokeLine(center, bottom - pm.divider_height, center, bottom, pm.divider_stroke, TEXT_COLOR)
        )
        cursor += pm.divider_width + pm.brand_gap
    if lens.visible:
        out.append(_draw_side(lens, cursor, baseline, pm))
    return out


def _brand_stack(
    brand: _Side, lens: _Side, left: float, baseline: float, pm: PanelMetrics
) -> list[DrawInstruction]:
    out: list[DrawInstruction] = []
    if brand.visible:
        out.append(_draw_side(brand, left, baseline, pm))
    if lens.visible:
        lens_baseline = baseline + pm.lens_line_gap + lens.height if brand.visible else baseline
        out.append(_draw_side(lens, left, lens_baseline, pm))
    return out


def _stat_slot_widths(record: DisplayRecord, metrics: FontMetrics, pm: PanelMetrics) -> list[float]:
    return [
        max(
            metrics.measure(stat.value, pm.number_size, WEIGHT_VALUE),
            metrics.measure(stat.label, pm.label_size, WEIGHT_LABEL),
        )
        for stat in record.stats
    ]


def _portrait(
    geometry: LayoutGeometry,
    image_height: int,
    record: DisplayRecord,
    metrics: FontMetrics,
    logos: LogoProvider | None,
    pm: PanelMetrics,
) -> list[DrawInstruction]:
    canvas_width = geometry.canvas_width
    panel_top = image_height
    out: list[DrawInstruction] = [
        FillRect(0, panel_top, canvas_width, geometry.panel_size, BACKGROUND_COLOR)
    ]

    widths = _stat_slot_widths(record, metrics, pm)
    row_width = sum(widths) + pm.info_spacing * max(0, len(widths) - 1)
    cursor = (canvas_width - row_width) / 2
    number_baseline = panel_top + pm.info_gap + pm.number_size
    label_baseline = number_baseline + pm.label_gap + pm.label_size
    for stat, slot in zip(record.stats, widths):
        center = cursor + slot / 2
        value_width = metrics.measure(stat.value, pm.number_size, WEIGHT_VALUE)
        label_width = metrics.measure(stat.label, pm.label_size, WEIGHT_LABEL)
        out.append(
            FillText(stat.value, center - value_width / 2, number_baseline, pm.number_size, WEIGHT_VALUE, TEXT_COLOR)
        )
        out.append(
            FillText(stat.label, center - label_width / 2, label_baseline, pm.label_size, WEIGHT_LABEL, LABEL_COLOR)
        )
        cursor += slot + pm.info_spacing

    footer_y = label_baseline + pm.portrait_footer_gap
    name_size = fit_text_size(
        metrics, record.camera_name, canvas_width * PORTRAIT_NAME_WIDTH_RATIO, pm.camera_size, WEIGHT_CAMERA
    )
    out.append(FillText(record.camera_name, pm.footer_padding, footer_y, name_size, WEIGHT_CAMERA, TEXT_COLOR))

    brand = _resolve_side(record.brand_text, record.brand_key or record.brand_text, logos, metrics, pm)
    lens = _resolve_side(record.lens_text, record.lens_text, logos, metrics, pm)
    out.extend(_brand_line(brand, lens, canvas_width - pm.footer_padding, footer_y, pm))
    return out


def _landscape(
    geometry: LayoutGeometry,
    image_width: int,
    record: DisplayRecord,
    metrics: FontMetrics,
    logos: LogoProvider | None,
    pm: PanelMetrics,
) -> list[DrawInstruction]:
    panel_left = image_width
    panel = geometry.panel_size
    out: list[DrawInstruction] = [
        FillRect(panel_left, 0, panel, geometry.canvas_height, BACKGROUND_COLOR)
    ]

    text_x = panel_left + pm.panel_padding
    label_offset = pm.label_gap + pm.label_size
    label_baseline = pm.info_top + pm.number_size + label_offset
    for index, stat in enumerate(record.stats):
        number_baseline = pm.info_top + pm.number_size + index * pm.info_spacing
        label_baseline = number_baseline + label_offset
        out.append(FillText(stat.value, text_x, number_baseline, pm.number_size, WEIGHT_VALUE, TEXT_COLOR))
        out.append(FillText(stat.label, text_x, label_baseline, pm.label_size, WEIGHT_LABEL, LABEL_COLOR))

    camera_baseline = label_baseline + pm.landscape_footer_gap
    brand_baseline = camera_baseline + pm.name_to_brand_gap + pm.brand_size
    left = panel_left + pm.footer_padding
    name_size = fit_text_size(
        metrics, record.camera_name, panel - pm.footer_padding * 2, pm.camera_size, WEIGHT_CAMERA
    )
    out.append(FillText(record.camera_name, left, camera_baseline, name_size, WEIGHT_CAMERA, TEXT_COLOR))

    brand = _resolve_side(record.brand_text, record.brand_key or record.brand_text, logos, metrics, pm)
    lens = _resolve_side(record.lens_text, record.lens_text, logos, metrics, pm)
    out.extend(_brand_stack(brand, lens, left, brand_baseline, pm))
    return out


def build_layout(
    image_width: int,
    image_height: int,
    orientation: str,
    record: DisplayRecord,
    metrics: FontMetrics,
    logos: LogoProvider | None = None,
) -> PanelLayout | None:
    """Compute the complete, ordered draw list for a photo plus its panel.

    ``metrics`` must be backed by fully loaded fonts; identical inputs always
    yield identical output. Returns ``None`` when the image has no pixels.
    """

    geometry = compute_geometry(image_width, image_height, orientation)
    if geometry is None:
        return None
    pm = panel_metrics(geometry.panel_size)
    instructions: list[DrawInstruction] = [
        FillRect(0, 0, geometry.canvas_width, geometry.canvas_height, BACKGROUND_COLOR),
        DrawImage(PHOTO_ASSET, 0, 0, image_width, image_height),
    ]
    if geometry.orientation == LANDSCAPE:
        instructions.extend(_landscape(geometry, image_width, record, metrics, logos, pm))
    else:
        instructions.extend(_portrait(geometry, image_height, record, metrics, logos, pm))
    return PanelLayout(geometry, tuple(instructions))
