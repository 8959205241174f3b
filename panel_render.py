from __future__ import annotations

import logging
from pathlib import Path
from typing import Final

from PIL import Image, ImageDraw, ImageFont

from metadata.brands import BRAND_LOGOS, logo_key
from panel.layout import PHOTO_ASSET
from panel.models import DrawImage, FillRect, FillText, LogoAsset, PanelLayout, StrokeLine

_RESAMPLING = Image.Resampling.LANCZOS

FONT_FILES: Final[dict[int, str]] = {
    200: "PlusJakartaSans-ExtraLight.ttf",
    300: "PlusJakartaSans-Light.ttf",
    500: "PlusJakartaSans-Medium.ttf",
    600: "PlusJakartaSans-SemiBold.ttf",
}

__all__ = ["FONT_FILES", "LogoLibrary", "PillowFontMetrics", "render_layout"]

FontType = ImageFont.FreeTypeFont | ImageFont.ImageFont


class PillowFontMetrics:
    """Measures and supplies Plus Jakarta Sans faces, one file per weight."""

    def __init__(self, font_dir: Path, *, fallback_font: str = "DejaVuSans.ttf") -> None:
        self.font_dir = Path(font_dir)
        self.fallback_font = fallback_font
        self._fonts: dict[tuple[int, int], FontType] = {}
        self._warned_missing = False

    def _font_path(self, weight: int) -> Path | None:
        ordered = sorted(FONT_FILES, key=lambda known: (abs(known - weight), known))
        for candidate in ordered:
            path = self.font_dir / FONT_FILES[candidate]
            if path.is_file():
                return path
        return None

    def font(self, size: int, weight: int) -> FontType:
        key = (size, weight)
        cached = self._fonts.get(key)
        if cached is not None:
            return cached
        path = self._font_path(weight)
        font: FontType
        try:
            if path is None:
                if not self._warned_missing:
                    logging.warning(
                        "Plus Jakarta Sans not found in %s, using %s", self.font_dir, self.fallback_font
                    )
                    self._warned_missing = True
                font = ImageFont.truetype(self.fallback_font, size)
            else:
                font = ImageFont.truetype(str(path), size)
        except Exception:  # pragma: no cover - fallback when font missing
            font = ImageFont.load_default(size=size)
        self._fonts[key] = font
        return font

    def measure(self, text: str, size: int, weight: int) -> float:
        if not text or size <= 0:
            return 0.0
        return float(self.font(size, weight).getlength(text))


class LogoLibrary:
    """Looks up brand logos as ``<logo_dir>/<Brand>.png`` and caches them."""

    def __init__(self, logo_dir: Path) -> None:
        self.logo_dir = Path(logo_dir)
        self._images: dict[str, Image.Image | None] = {}

    def _load(self, key: str) -> Image.Image | None:
        if key in self._images:
            return self._images[key]
        path = self.logo_dir / BRAND_LOGOS[key]
        image: Image.Image | None = None
        if path.is_file():
            try:
                with Image.open(path) as logo_src:
                    image = logo_src.convert("RGBA").copy()
            except Exception:
                logging.warning("Failed to load logo %s", path, exc_info=True)
        self._images[key] = image
        return image

    def lookup(self, name: str) -> LogoAsset | None:
        key = logo_key(name)
        if key is None:
            return None
        image = self._load(key)
        if image is None:
            return None
        return LogoAsset(key, image.width, image.height)

    def image(self, key: str) -> Image.Image | None:
        if key not in BRAND_LOGOS:
            return None
        return self._load(key)

    def close(self) -> None:
        for image in self._images.values():
            if image is not None:
                image.close()
        self._images.clear()


def _paste_scaled(canvas: Image.Image, source: Image.Image, op: DrawImage) -> None:
    width = max(1, int(round(op.width)))
    height = max(1, int(round(op.height)))
    scaled = source if source.size == (width, height) else source.resize((width, height), _RESAMPLING)
    box = (int(round(op.x)), int(round(op.y)))
    try:
        if scaled.mode == "RGBA":
            canvas.paste(scaled, box, scaled)
        elif scaled.mode == "RGB":
            canvas.paste(scaled, box)
        else:
            with scaled.convert("RGB") as converted:
                canvas.paste(converted, box)
    finally:
        if scaled is not source:
            scaled.close()


def _draw_text(draw: ImageDraw.ImageDraw, op: FillText, metrics: PillowFontMetrics) -> None:
    if op.size <= 0:
        return
    font = metrics.font(op.size, op.weight)
    if isinstance(font, ImageFont.FreeTypeFont):
        draw.text((op.x, op.y), op.text, fill=op.color, font=font, anchor="ls")
    else:  # pragma: no cover - bitmap fonts have no baseline anchor
        draw.text((op.x, op.y - op.size), op.text, fill=op.color, font=font)


def render_layout(
    photo: Image.Image,
    layout: PanelLayout,
    metrics: PillowFontMetrics,
    logos: LogoLibrary | None = None,
) -> Image.Image:
    """Rasterise a panel layout onto a new RGB canvas containing ``photo``."""

    geometry = layout.geometry
    canvas = Image.new("RGB", (geometry.canvas_width, geometry.canvas_height), color="#ffffff")
    draw = ImageDraw.Draw(canvas)
    for op in layout.instructions:
        if isinstance(op, FillRect):
            if op.width <= 0 or op.height <= 0:
                continue
            right = op.x + op.width - 1
            bottom = op.y + op.height - 1
            draw.rectangle((op.x, op.y, right, bottom), fill=op.color)
        elif isinstance(op, DrawImage):
            source = photo if op.asset == PHOTO_ASSET else (logos.image(op.asset) if logos else None)
            if source is None:
                logging.debug("No image for asset %s", op.asset)
                continue
            _paste_scaled(canvas, source, op)
        elif isinstance(op, FillText):
            _draw_text(draw, op, metrics)
        elif isinstance(op, StrokeLine):
            draw.line(((op.x1, op.y1), (op.x2, op.y2)), fill=op.color, width=op.width)
    return canvas
