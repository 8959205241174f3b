from __future__ import annotations

import os
import sys
from dataclasses import astuple

import pytest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))

from panel.display import resolve_display  # noqa: E402
from panel.layout import (  # noqa: E402
    MIN_FONT_SIZE,
    PHOTO_ASSET,
    build_layout,
    compute_geometry,
    fit_text_size,
    panel_metrics,
)
from panel.models import DisplayForm, DisplayRecord, DrawImage, FillRect, FillText, Stat, StrokeLine  # noqa: E402
from tests.fixtures.fakes import FakeLogos, FakeMetrics  # noqa: E402


def _record(brand: str = "", lens: str = "", camera: str = "Camera name", brand_key: str | None = None) -> DisplayRecord:
    return DisplayRecord(
        camera_name=camera,
        brand_text=brand,
        brand_key=brand if brand_key is None else brand_key,
        lens_text=lens,
        stats=(Stat("f2.8", "f"), Stat("1/125", "shutter speed"), Stat("35", "mm"), Stat("400", "ISO")),
    )


def test_portrait_geometry_appends_panel_below() -> None:
    geometry = compute_geometry(1080, 1350, "portrait")

    assert geometry is not None
    assert geometry.panel_size == 238
    assert (geometry.canvas_width, geometry.canvas_height) == (1080, 1350 + 238)


def test_landscape_geometry_appends_panel_to_the_right() -> None:
    geometry = compute_geometry(6000, 4000, "landscape")

    assert geometry is not None
    assert geometry.panel_size == round(4000 * 238 / 1080)
    assert (geometry.canvas_width, geometry.canvas_height) == (6000 + geometry.panel_size, 4000)


def test_geometry_requires_pixels() -> None:
    assert compute_geometry(0, 100, "portrait") is None
    assert compute_geometry(100, -1, "landscape") is None
    assert build_layout(0, 0, "portrait", _record(), FakeMetrics()) is None


def test_panel_scales_exactly_with_width() -> None:
    small = compute_geometry(1080, 1000, "portrait")
    large = compute_geometry(2160, 2000, "portrait")

    assert small is not None and large is not None
    assert large.panel_size == 2 * small.panel_size


def test_scaled_constants_stay_proportional() -> None:
    base = panel_metrics(238)
    doubled = panel_metrics(476)

    assert base.number_size == 36
    assert base.camera_size == 16
    for small, large in zip(astuple(base), astuple(doubled)):
        assert abs(large - 2 * small) <= 1


def test_scaled_constants_round_independently() -> None:
    pm = panel_metrics(119)

    # 36 * 0.5 and 13 * 0.5 rounded half-up on their own.
    assert pm.number_size == 18
    assert pm.label_size == 7
    assert pm.logo_height == 11


def test_font_sizes_never_reach_zero_on_tiny_panels() -> None:
    for panel in (0, 1, 3):
        pm = panel_metrics(panel)
        assert min(pm.number_size, pm.label_size, pm.camera_size, pm.brand_size) >= 1
        assert pm.divider_stroke == 1


def test_fit_text_size_shrinks_to_floor_and_terminates() -> None:
    metrics = FakeMetrics()
    long_name = "X" * 200
    max_width = metrics.measure("X" * 40, 16, 200)
    metrics.calls.clear()

    size = fit_text_size(metrics, long_name, max_width, 16, 200)

    assert size == MIN_FONT_SIZE
    measured_sizes = [call[1] for call in metrics.calls]
    assert measured_sizes == list(range(16, MIN_FONT_SIZE, -1))
    assert all(metrics.measure(long_name, s, 200) > max_width for s in measured_sizes)


def test_fit_text_size_keeps_base_size_when_text_fits() -> None:
    metrics = FakeMetrics()

    assert fit_text_size(metrics, "Sony A7", 500, 16, 200) == 16


def test_fit_text_size_stops_at_first_fitting_size() -> None:
    metrics = FakeMetrics()
    text = "X" * 20
    # 20 glyphs at size 12 measure 120.
    assert fit_text_size(metrics, text, 120, 16, 200) == 12


def test_layout_starts_with_background_and_photo() -> None:
    layout = build_layout(1080, 1350, "portrait", _record("Sony"), FakeMetrics())

    assert layout is not None
    first, second, third = layout.instructions[:3]
    assert first == FillRect(0, 0, 1080, 1588, "#ffffff")
    assert second == DrawImage(PHOTO_ASSET, 0, 0, 1080, 1350)
    assert third == FillRect(0, 1350, 1080, 238, "#ffffff")


def test_portrait_stat_row_is_centered() -> None:
    metrics = FakeMetrics()
    layout = build_layout(1080, 1350, "portrait", _record(), metrics)
    assert layout is not None
    pm = panel_metrics(238)

    values = [op for op in layout.instructions if isinstance(op, FillText) and op.size == pm.number_size]
    labels = [op for op in layout.instructions if isinstance(op, FillText) and op.size == pm.label_size]
    assert [op.text for op in values] == ["f2.8", "1/125", "35", "400"]
    assert [op.text for op in labels] == ["f", "shutter speed", "mm", "ISO"]
    assert {op.y for op in values} == {1350 + pm.info_gap + pm.number_size}

    slots = [
        max(metrics.measure(v.text, pm.number_size, 500), metrics.measure(lbl.text, pm.label_size, 300))
        for v, lbl in zip(values, labels)
    ]
    row = sum(slots) + pm.info_spacing * 3
    left = (1080 - row) / 2
    first_center = left + slots[0] / 2
    assert values[0].x == pytest.approx(first_center - metrics.measure("f2.8", pm.number_size, 500) / 2)
    last_label = labels[-1]
    last_center = left + sum(slots[:3]) + pm.info_spacing * 3 + slots[3] / 2
    assert last_label.x + metrics.measure("ISO", pm.label_size, 300) / 2 == pytest.approx(last_center)
    assert last_label.color == "#4b463e"


def test_landscape_stats_are_stacked() -> None:
    layout = build_layout(4000, 3000, "landscape", _record(), FakeMetrics())
    assert layout is not None
    pm = panel_metrics(layout.geometry.panel_size)

    values = [op for op in layout.instructions if isinstance(op, FillText) and op.size == pm.number_size]
    assert [op.y for op in values] == [pm.info_top + pm.number_size + i * pm.info_spacing for i in range(4)]
    assert {op.x for op in values} == {4000 + pm.panel_padding}


def test_portrait_brand_line_has_divider_and_is_right_aligned() -> None:
    metrics = FakeMetrics()
    layout = build_layout(1080, 1350, "portrait", _record("Canon", "Tamron"), metrics)
    assert layout is not None
    pm = panel_metrics(238)

    brand = next(op for op in layout.instructions if isinstance(op, FillText) and op.text == "Canon")
    lens = next(op for op in layout.instructions if isinstance(op, FillText) and op.text == "Tamron")
    dividers = [op for op in layout.instructions if isinstance(op, StrokeLine)]

    assert len(dividers) == 1
    assert brand.weight == lens.weight == 600
    lens_right = lens.x + metrics.measure("Tamron", pm.brand_size, 600)
    assert lens_right == pytest.approx(1080 - pm.footer_padding)
    assert brand.x < dividers[0].x1 < lens.x
    assert dividers[0].y2 - dividers[0].y1 == pytest.approx(pm.divider_height)


def test_single_side_has_no_divider() -> None:
    metrics = FakeMetrics()
    layout = build_layout(1080, 1350, "portrait", _record("Canon"), metrics)
    assert layout is not None
    pm = panel_metrics(238)

    assert not [op for op in layout.instructions if isinstance(op, StrokeLine)]
    brand = next(op for op in layout.instructions if isinstance(op, FillText) and op.text == "Canon")
    assert brand.x + metrics.measure("Canon", pm.brand_size, 600) == pytest.approx(1080 - pm.footer_padding)


def test_empty_brand_and_lens_suppress_the_line() -> None:
    layout = build_layout(1080, 1350, "portrait", _record(), FakeMetrics())
    assert layout is not None

    texts = [op for op in layout.instructions if isinstance(op, FillText) and op.weight == 600]
    assert texts == []
    assert not [op for op in layout.instructions if isinstance(op, StrokeLine)]


def test_logos_replace_text_and_apply_scale_corrections(
    fake_metrics: FakeMetrics, fake_logos: FakeLogos
) -> None:
    layout = build_layout(1080, 1350, "portrait", _record("Sony", "Zeiss"), fake_metrics, fake_logos)
    assert layout is not None
    assert fake_logos.requested == ["Sony", "Zeiss"]
    pm = panel_metrics(238)

    images = [op for op in layout.instructions if isinstance(op, DrawImage) and op.asset != PHOTO_ASSET]
    assert [op.asset for op in images] == ["Sony", "Zeiss"]
    sony, zeiss = images
    assert sony.height == pytest.approx(pm.logo_height)
    assert sony.width == pytest.approx(pm.logo_height * 4)
    assert zeiss.height == pytest.approx(pm.logo_height * 1.35)
    assert zeiss.x + zeiss.width == pytest.approx(1080 - pm.footer_padding)
    assert not [op for op in layout.instructions if isinstance(op, FillText) and op.text in {"Sony", "Zeiss"}]


def test_zero_sized_logo_falls_back_to_text() -> None:
    logos = FakeLogos({"Sony": (0, 0)})
    layout = build_layout(1080, 1350, "portrait", _record("Sony"), FakeMetrics(), logos)
    assert layout is not None

    assert any(isinstance(op, FillText) and op.text == "Sony" for op in layout.instructions)


def test_landscape_brand_stack_has_no_divider(fake_metrics: FakeMetrics, fake_logos: FakeLogos) -> None:
    layout = build_layout(4000, 3000, "landscape", _record("Canon", "Tamron"), fake_metrics, fake_logos)
    assert layout is not None
    pm = panel_metrics(layout.geometry.panel_size)

    brand = next(op for op in layout.instructions if isinstance(op, FillText) and op.text == "Canon")
    lens = next(op for op in layout.instructions if isinstance(op, FillText) and op.text == "Tamron")
    assert not [op for op in layout.instructions if isinstance(op, StrokeLine)]
    assert brand.x == lens.x == 4000 + pm.footer_padding
    assert lens.y == brand.y + pm.lens_line_gap + pm.brand_size


def test_landscape_lens_only_sits_on_brand_baseline() -> None:
    layout = build_layout(4000, 3000, "landscape", _record(lens="Tamron"), FakeMetrics())
    assert layout is not None
    pm = panel_metrics(layout.geometry.panel_size)

    camera = next(op for op in layout.instructions if isinstance(op, FillText) and op.weight == 200)
    lens = next(op for op in layout.instructions if isinstance(op, FillText) and op.text == "Tamron")
    assert lens.y == camera.y + pm.name_to_brand_gap + pm.brand_size


def test_long_camera_name_is_fitted_in_portrait() -> None:
    metrics = FakeMetrics()
    name = "Very Long Camera Name " * 4
    layout = build_layout(1080, 1350, "portrait", _record(camera=name), metrics)
    assert layout is not None

    camera = next(op for op in layout.instructions if isinstance(op, FillText) and op.weight == 200)
    assert camera.size < panel_metrics(238).camera_size
    assert metrics.measure(name, camera.size, 200) <= 1080 * 0.55 or camera.size == MIN_FONT_SIZE


def test_layout_is_deterministic() -> None:
    record = resolve_display(
        DisplayForm(camera_name="SONY ILCE-7RM2", brand_choice="Sony", lens_choice="Zeiss", aperture="2.8")
    )
    logos = FakeLogos({"Sony": (400, 100)})

    first = build_layout(3024, 4032, "portrait", record, FakeMetrics(), logos)
    second = build_layout(3024, 4032, "portrait", record, FakeMetrics(), logos)

    assert first == second
