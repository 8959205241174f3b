"""Camera metadata decoding and normalisation."""

from .extractor import PhotoSource, load_photo
from .normalizer import CameraMetadata, ChoiceState, normalize_tags
from .tiff_decoder import FieldValue, Rational, TagMap, parse_exif, parse_tiff_block

__all__ = [
    "CameraMetadata",
    "ChoiceState",
    "FieldValue",
    "PhotoSource",
    "Rational",
    "TagMap",
    "load_photo",
    "normalize_tags",
    "parse_exif",
    "parse_tiff_block",
]
