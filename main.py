"""Render a camera-stats panel next to a photo."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

from config import Settings, load_settings
from metadata.brands import BRAND_NONE
from metadata.extractor import PhotoSource, load_photo, tags_as_json
from metadata.normalizer import normalize_tags
from observability import context, log_exc, setup_logging
from panel.display import resolve_display
from panel.form_state import (
    FormState,
    apply_brand_text,
    apply_edit,
    apply_lens_text,
    build_form,
)
from panel.layout import build_layout
from panel.models import ORIENTATIONS
from panel_render import LogoLibrary, PillowFontMetrics, render_layout

STATUS_FROM_EXIF = "Metadata pulled from EXIF. Update the fields if needed."
STATUS_NO_EXIF = "No EXIF metadata found. Fill the fields manually."
STATUS_UNREADABLE = "Could not load the image. Please try another file."

_FIELD_OPTIONS = (
    ("camera_name", "--camera-name"),
    ("aperture", "--aperture"),
    ("shutter_speed", "--shutter-speed"),
    ("focal_length", "--focal-length"),
    ("iso", "--iso"),
    ("orientation", "--orientation"),
)


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="photostats",
        description=(
            "Add a panel with camera, lens and exposure details to a photo. "
            "Fields are filled from EXIF; any option below overrides them."
        ),
    )
    parser.add_argument("image", help="Path to the source photo (JPEG works best).")
    parser.add_argument(
        "--output",
        help="Destination PNG. Defaults to <name>-photostats.png next to the input.",
    )
    parser.add_argument("--orientation", choices=ORIENTATIONS, help="Panel below (portrait) or beside (landscape).")
    parser.add_argument("--camera-name", help="Camera name shown in the footer.")
    parser.add_argument("--brand", help=f"Brand name, or '{BRAND_NONE}' to hide the brand.")
    parser.add_argument("--lens", help="Lens maker or lens name.")
    parser.add_argument("--aperture", help="f-number, e.g. 2.8")
    parser.add_argument("--shutter-speed", help="Exposure time, e.g. 1/125")
    parser.add_argument("--focal-length", help="Focal length in mm, e.g. 35")
    parser.add_argument("--iso", help="ISO sensitivity, e.g. 400")
    parser.add_argument(
        "--print-tags",
        action="store_true",
        help="Print the decoded EXIF tags as JSON and exit.",
    )
    return parser.parse_args(list(argv) if argv is not None else None)


def status_for(photo: PhotoSource) -> str:
    if not photo.is_usable:
        return STATUS_UNREADABLE
    if photo.tags:
        return STATUS_FROM_EXIF
    return STATUS_NO_EXIF


def default_output_path(source: Path, settings: Settings) -> Path:
    return source.with_name(f"{source.stem}{settings.output_suffix}.png")


def build_state(photo: PhotoSource, args: argparse.Namespace) -> FormState:
    auto = build_form(normalize_tags(photo.tags), photo.orientation)
    state = FormState.start(auto)
    for field_name, _ in _FIELD_OPTIONS:
        value = getattr(args, field_name, None)
        if value is not None:
            state = apply_edit(state, field_name, value)
    if args.brand is not None:
        brand = "" if args.brand.strip().lower() == BRAND_NONE else args.brand
        state = apply_brand_text(state, brand)
    if args.lens is not None:
        state = apply_lens_text(state, args.lens)
    return state


def run(args: argparse.Namespace, settings: Settings) -> int:
    source = Path(args.image)
    try:
        photo = load_photo(source, raw_half_size=settings.raw_half_size)
    except OSError:
        logging.warning("Unable to read %s", source, exc_info=True)
        print(STATUS_UNREADABLE)
        return 1
    try:
        status = status_for(photo)
        logging.info(
            "photo_loaded",
            extra={
                "width": photo.width,
                "height": photo.height,
                "tags": len(photo.tags),
                "tag_source": photo.tag_source,
            },
        )
        if args.print_tags:
            print(json.dumps(tags_as_json(photo.tags), indent=2, ensure_ascii=False))
            return 0 if photo.is_usable else 1
        print(status)
        if photo.image is None or not photo.has_pixels:
            return 1

        state = build_state(photo, args)
        record = resolve_display(state.live)
        metrics = PillowFontMetrics(settings.font_dir, fallback_font=settings.fallback_font)
        logos = LogoLibrary(settings.logo_dir)
        try:
            with context(stage="layout", orientation=state.live.orientation):
                layout = build_layout(
                    photo.width, photo.height, state.live.orientation, record, metrics, logos
                )
            if layout is None:
                return 1
            output = Path(args.output) if args.output else default_output_path(source, settings)
            with context(stage="render"):
                rendered = render_layout(photo.image, layout, metrics, logos)
                try:
                    rendered.save(output, format="PNG")
                finally:
                    rendered.close()
            logging.info(
                "panel_rendered",
                extra={
                    "output": str(output),
                    "width": layout.geometry.canvas_width,
                    "height": layout.geometry.canvas_height,
                },
            )
        finally:
            logos.close()
        print(output)
        return 0
    finally:
        photo.close()


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    setup_logging(stream=sys.stderr)
    settings = load_settings()
    with context(file=args.image):
        try:
            return run(args, settings)
        except Exception as err:
            log_exc("photostats failed", err)
            return 2


if __name__ == "__main__":
    raise SystemExit(main())
