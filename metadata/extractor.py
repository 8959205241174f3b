from __future__ import annotations

import io
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, BinaryIO

from PIL import Image

from .normalizer import orientation_for
from .tiff_decoder import TAG_NAMES, FieldValue, Rational, TagMap, parse_exif, parse_tiff_block

try:  # pragma: no cover - optional dependency
    import exifread  # type: ignore
except Exception:  # pragma: no cover - dependency may be missing in some environments
    exifread = None  # type: ignore[assignment]

try:  # pragma: no cover - optional dependency
    import rawpy  # type: ignore
except Exception:  # pragma: no cover - RAW support is an extra
    rawpy = None  # type: ignore[assignment]

_HEIF_REGISTERED = False
_HEIF_IMPORT_FAILED = False
_RAWPY_WARNED = False

RAW_EXTENSIONS = frozenset({".nef", ".cr2", ".cr3", ".arw", ".rw2", ".raf", ".orf", ".dng"})
_KNOWN_NAMES = frozenset(TAG_NAMES.values())


@dataclass(slots=True)
class PhotoSource:
    """Everything the panel pipeline needs from an uploaded file."""

    image: Image.Image | None = None
    width: int = 0
    height: int = 0
    tags: TagMap = field(default_factory=lambda: MappingProxyType({}))
    format: str | None = None
    origin: str | None = None
    tag_source: str = "none"

    @property
    def orientation(self) -> str:
        return orientation_for(self.width, self.height)

    @property
    def has_pixels(self) -> bool:
        return self.width > 0 and self.height > 0

    @property
    def is_usable(self) -> bool:
        return self.has_pixels or bool(self.tags)

    def close(self) -> None:
        if self.image is not None:
            self.image.close()
            self.image = None


def load_photo(
    path_or_bytes: str | os.PathLike[str] | bytes | bytearray | memoryview | BinaryIO,
    *,
    raw_half_size: bool = False,
) -> PhotoSource:
    """Decode pixels and camera tags from a file path, raw bytes or a stream.

    Decoding problems never raise; they leave the corresponding part of the
    returned :class:`PhotoSource` empty.
    """

    data, origin = _read_source_bytes(path_or_bytes)
    if not data:
        return PhotoSource(origin=origin, format="empty")

    format_hint = _detect_image_format(data, origin)
    if format_hint == "HEIC":
        _ensure_heif_registered()

    if format_hint == "RAW":
        image, tags, tag_source = _load_raw(data, half_size=raw_half_size)
    else:
        image, tags, tag_source = _load_with_pillow(data)

    if not tags and exifread is not None:
        try:
            tags = _extract_with_exifread(data)
        except Exception:
            logging.debug("exifread failed", exc_info=True)
        else:
            if tags:
                tag_source = "exifread"

    width, height = image.size if image is not None else (0, 0)
    return PhotoSource(
        image=image,
        width=width,
        height=height,
        tags=tags,
        format=format_hint,
        origin=origin,
        tag_source=tag_source,
    )


def _read_source_bytes(
    path_or_bytes: str | os.PathLike[str] | bytes | bytearray | memoryview | BinaryIO,
) -> tuple[bytes, str | None]:
    if isinstance(path_or_bytes, (bytes, bytearray, memoryview)):
        return (bytes(path_or_bytes), None)
    if isinstance(path_or_bytes, (str, os.PathLike)):
        path = Path(path_or_bytes)
        return (path.read_bytes(), str(path))
    if hasattr(path_or_bytes, "read"):
        data = path_or_bytes.read()
        if isinstance(data, str):
            data = data.encode("utf-8")
        return (data or b"", getattr(path_or_bytes, "name", None))
    raise TypeError(f"Unsupported input type: {type(path_or_bytes)!r}")


def _detect_image_format(data: bytes, origin: str | None = None) -> str | None:
    if origin and Path(origin).suffix.lower() in RAW_EXTENSIONS:
        return "RAW"
    if data[:15] == b"FUJIFILMCCD-RAW" or data[:4] in {b"IIRO", b"IIU\x00"}:
        return "RAW"
    if len(data) >= 12 and data[4:8] == b"ftyp" and data[8:11] == b"crx":
        return "RAW"
    if data[:2] == b"\xff\xd8":
        return "JPEG"
    if len(data) >= 4 and data[:4] in {b"II*\x00", b"MM\x00*"}:
        return "TIFF"
    if data[:8] == b"\x89PNG\r\n\x1a\n":
        return "PNG"
    if len(data) >= 12 and data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "WEBP"
    if len(data) >= 12 and data[4:8] == b"ftyp":
        brand = data[8:12]
        if brand in {b"heic", b"heix", b"hevc", b"hevx", b"mif1", b"msf1"}:
            return "HEIC"
    return None


def _ensure_heif_registered() -> None:
    global _HEIF_REGISTERED, _HEIF_IMPORT_FAILED
    if _HEIF_REGISTERED or _HEIF_IMPORT_FAILED:
        return
    try:
        from pillow_heif import register_heif_opener  # type: ignore

        register_heif_opener()
        _HEIF_REGISTERED = True
    except Exception:
        logging.debug("Unable to register pillow_heif", exc_info=True)
        _HEIF_IMPORT_FAILED = True


def _load_with_pillow(data: bytes) -> tuple[Image.Image | None, TagMap, str]:
    tags = parse_exif(data)
    tag_source = "jpeg" if tags else "none"
    try:
        with Image.open(io.BytesIO(data)) as opened:
            opened.load()
            exif_bytes = getattr(opened, "info", {}).get("exif")
            image = opened.convert("RGB")
    except Exception:
        logging.warning("Failed to decode image pixels", exc_info=True)
        return None, tags, tag_source
    if not tags and exif_bytes:
        tags = parse_tiff_block(exif_bytes)
        if tags:
            tag_source = "container"
    return image, tags, tag_source


def _warn_rawpy_missing() -> None:
    global _RAWPY_WARNED
    if not _RAWPY_WARNED:
        logging.warning("rawpy is not installed; RAW files fall back to Pillow decoding")
        _RAWPY_WARNED = True


def _load_raw(data: bytes, *, half_size: bool) -> tuple[Image.Image | None, TagMap, str]:
    if rawpy is None:
        _warn_rawpy_missing()
        return _load_with_pillow(data)

    tags: TagMap = MappingProxyType({})
    tag_source = "none"
    try:
        with rawpy.imread(io.BytesIO(data)) as raw:
            try:
                thumb = raw.extract_thumb()
            except Exception:
                logging.debug("RAW file has no embedded preview", exc_info=True)
            else:
                if thumb.format == rawpy.ThumbFormat.JPEG:
                    tags = parse_exif(thumb.data)
                    if tags:
                        tag_source = "raw-preview"
            rgb = raw.postprocess(use_camera_wb=True, output_bps=8, half_size=half_size)
        image = Image.fromarray(rgb.astype("uint8"))
    except Exception:
        logging.warning("Failed to decode RAW image", exc_info=True)
        return None, tags, tag_source
    return image, tags, tag_source


def _convert_exifread_values(values: Any) -> FieldValue | None:
    if isinstance(values, str):
        return values.split("\x00", 1)[0].strip()
    if isinstance(values, (bytes, bytearray)):
        return tuple(values) if len(values) != 1 else values[0]
    if not isinstance(values, (list, tuple)):
        values = [values]
    converted: list[Any] = []
    for item in values:
        if hasattr(item, "numerator") and hasattr(item, "denominator") and not isinstance(item, int):
            converted.append(Rational(int(item.numerator), int(item.denominator)))
        elif isinstance(item, int):
            converted.append(item)
        else:
            return None
    if not converted:
        return None
    return converted[0] if len(converted) == 1 else tuple(converted)


def _extract_with_exifread(data: bytes) -> TagMap:
    if exifread is None:  # pragma: no cover - guarded earlier
        return MappingProxyType({})

    fields = exifread.process_file(io.BytesIO(data), details=False)
    ifd0: dict[str, FieldValue] = {}
    exif_ifd: dict[str, FieldValue] = {}
    for tag_name, tag in fields.items():
        prefix, _, name = tag_name.partition(" ")
        if name not in _KNOWN_NAMES:
            continue
        if prefix == "Image":
            target = ifd0
        elif prefix == "EXIF":
            target = exif_ifd
        else:
            continue
        value = _convert_exifread_values(getattr(tag, "values", tag))
        if value is not None:
            target[name] = value
    ifd0.update(exif_ifd)
    return MappingProxyType(ifd0)


def tags_as_json(tags: Mapping[str, FieldValue]) -> dict[str, Any]:
    """Return a JSON-friendly copy of a tag mapping (rationals as ``"n/d"``)."""

    def _plain(value: Any) -> Any:
        if isinstance(value, Rational):
            return str(value)
        if isinstance(value, tuple):
            return [_plain(item) for item in value]
        return value

    return {name: _plain(value) for name, value in tags.items()}
