"""Byte-level reader for the Exif block embedded in JPEG streams.

Only a small, fixed vocabulary of camera tags is returned. Every read is
bounds-checked; malformed input produces an empty (or partial) mapping and
never an exception.
"""

from __future__ import annotations

import logging
import struct
from collections.abc import Mapping
from dataclasses import dataclass
from enum import IntEnum
from types import MappingProxyType
from typing import Final, Union

__all__ = [
    "EXIF_POINTER_TAG",
    "FieldValue",
    "Rational",
    "TAG_NAMES",
    "TagMap",
    "TiffType",
    "parse_exif",
    "parse_tiff_block",
]

_SOI: Final[bytes] = b"\xff\xd8"
_APP1: Final[int] = 0xFFE1
_SOS: Final[int] = 0xFFDA
_EXIF_SIGNATURE: Final[bytes] = b"Exif\x00\x00"
_ENTRY_SIZE: Final[int] = 12

EXIF_POINTER_TAG: Final[int] = 0x8769

TAG_NAMES: Final[Mapping[int, str]] = MappingProxyType(
    {
        0x010F: "Make",
        0x0110: "Model",
        0x829A: "ExposureTime",
        0x829D: "FNumber",
        0x8827: "ISOSpeedRatings",
        0x8830: "PhotographicSensitivity",
        0x920A: "FocalLength",
        0xA433: "LensMake",
        0xA434: "LensModel",
    }
)


class TiffType(IntEnum):
    BYTE = 1
    ASCII = 2
    SHORT = 3
    LONG = 4
    RATIONAL = 5
    UNDEFINED = 7

    @property
    def size(self) -> int:
        return _TYPE_SIZES[self]


_TYPE_SIZES: Final[dict[TiffType, int]] = {
    TiffType.BYTE: 1,
    TiffType.ASCII: 1,
    TiffType.SHORT: 2,
    TiffType.LONG: 4,
    TiffType.RATIONAL: 8,
    TiffType.UNDEFINED: 1,
}


@dataclass(frozen=True, slots=True)
class Rational:
    """Unsigned EXIF rational, kept as the raw numerator/denominator pair."""

    numerator: int
    denominator: int

    def __str__(self) -> str:
        return f"{self.numerator}/{self.denominator}"


FieldValue = Union[int, str, Rational, tuple[int, ...], tuple[Rational, ...]]
TagMap = Mapping[str, FieldValue]

_EMPTY: Final[TagMap] = MappingProxyType({})


class _OutOfBounds(Exception):
    pass


class _Reader:
    __slots__ = ("data", "endian")

    def __init__(self, data: bytes, endian: str) -> None:
        self.data = data
        self.endian = endian

    def _unpack(self, fmt: str, offset: int) -> tuple[int, ...]:
        size = struct.calcsize(fmt)
        if offset < 0 or offset + size > len(self.data):
            raise _OutOfBounds(offset)
        return struct.unpack_from(self.endian + fmt, self.data, offset)

    def u16(self, offset: int) -> int:
        return self._unpack("H", offset)[0]

    def u32(self, offset: int) -> int:
        return self._unpack("I", offset)[0]

    def check(self, offset: int, length: int) -> None:
        if offset < 0 or length < 0 or offset + length > len(self.data):
            raise _OutOfBounds(offset)

    def raw(self, offset: int, length: int) -> bytes:
        self.check(offset, length)
        return self.data[offset : offset + length]


def _read_value(reader: _Reader, kind: TiffType, count: int, start: int) -> FieldValue:
    reader.check(start, kind.size * count)
    if kind is TiffType.ASCII:
        text = reader.raw(start, count).decode("latin-1")
        return text.split("\x00", 1)[0].strip()
    if kind in (TiffType.BYTE, TiffType.UNDEFINED):
        values = tuple(reader.raw(start, count))
        return values[0] if count == 1 else values
    if kind is TiffType.RATIONAL:
        pairs = tuple(
            Rational(reader.u32(start + index * 8), reader.u32(start + index * 8 + 4))
            for index in range(count)
        )
        return pairs[0] if count == 1 else pairs
    read = reader.u16 if kind is TiffType.SHORT else reader.u32
    numbers = tuple(read(start + index * kind.size) for index in range(count))
    return numbers[0] if count == 1 else numbers


def _read_ifd(
    reader: _Reader, tiff_start: int, ifd_offset: int
) -> tuple[dict[str, FieldValue], int | None]:
    tags: dict[str, FieldValue] = {}
    exif_pointer: int | None = None
    try:
        entries = reader.u16(ifd_offset)
    except _OutOfBounds:
        logging.debug("IFD at offset %s lies outside the buffer", ifd_offset)
        return tags, None

    for index in range(entries):
        entry_offset = ifd_offset + 2 + index * _ENTRY_SIZE
        try:
            tag = reader.u16(entry_offset)
            type_code = reader.u16(entry_offset + 2)
            count = reader.u32(entry_offset + 4)
        except _OutOfBounds:
            logging.debug("IFD truncated after %s of %s entries", index, entries)
            break
        try:
            kind = TiffType(type_code)
        except ValueError:
            continue
        if tag not in TAG_NAMES and tag != EXIF_POINTER_TAG:
            continue

        value_offset = entry_offset + 8
        try:
            if kind.size * count > 4:
                value_offset = tiff_start + reader.u32(value_offset)
            value = _read_value(reader, kind, count, value_offset)
        except _OutOfBounds:
            logging.debug("Skipping tag 0x%04x: value out of range", tag)
            continue

        if tag == EXIF_POINTER_TAG:
            if isinstance(value, int):
                exif_pointer = value
            continue
        tags[TAG_NAMES[tag]] = value

    return tags, exif_pointer


def _parse_tiff(data: bytes, tiff_start: int) -> TagMap:
    order = data[tiff_start : tiff_start + 2]
    if order == b"II":
        endian = "<"
    elif order == b"MM":
        endian = ">"
    else:
        return _EMPTY
    reader = _Reader(data, endian)
    try:
        first_ifd = reader.u32(tiff_start + 4)
    except _OutOfBounds:
        return _EMPTY

    tags, exif_pointer = _read_ifd(reader, tiff_start, tiff_start + first_ifd)
    if exif_pointer:
        exif_tags, _ = _read_ifd(reader, tiff_start, tiff_start + exif_pointer)
        tags.update(exif_tags)
    return MappingProxyType(tags)


def parse_exif(data: bytes | bytearray | memoryview) -> TagMap:
    """Return the recognised camera tags of a JPEG stream.

    Non-JPEG input, a missing Exif segment or a damaged TIFF structure all
    yield an empty mapping. Values in the Exif sub-IFD override same-named
    values from IFD0.
    """

    buffer = bytes(data)
    if len(buffer) < 4 or buffer[:2] != _SOI:
        return _EMPTY

    offset = 2
    while offset + 4 <= len(buffer):
        if buffer[offset] != 0xFF:
            break
        marker, length = struct.unpack_from(">HH", buffer, offset)
        if marker == _SOS or length < 2:
            break
        body = offset + 4
        if marker == _APP1 and buffer[body : body + 6] == _EXIF_SIGNATURE:
            return _parse_tiff(buffer, body + 6)
        offset += 2 + length
    return _EMPTY


def parse_tiff_block(data: bytes | bytearray | memoryview | None) -> TagMap:
    """Decode a bare TIFF block, such as Pillow's ``info["exif"]`` payload."""

    if not data:
        return _EMPTY
    buffer = bytes(data)
    start = len(_EXIF_SIGNATURE) if buffer.startswith(_EXIF_SIGNATURE) else 0
    return _parse_tiff(buffer, start)
