from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

ASSETS_DIR = Path(__file__).resolve().parent / "assets"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return Path(raw.strip()).expanduser()


def _env_str(name: str, default: str) -> str:
    raw = os.getenv(name)
    if raw is None:
        return default
    value = raw.strip()
    return value or default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    logging.warning("Invalid %s=%s, using %s", name, raw, default)
    return default


@dataclass(frozen=True, slots=True)
class Settings:
    font_dir: Path
    logo_dir: Path
    fallback_font: str
    output_suffix: str
    raw_half_size: bool


def load_settings() -> Settings:
    return Settings(
        font_dir=_env_path("PHOTOSTATS_FONT_DIR", ASSETS_DIR / "fonts"),
        logo_dir=_env_path("PHOTOSTATS_LOGO_DIR", ASSETS_DIR / "logos"),
        fallback_font=_env_str("PHOTOSTATS_FALLBACK_FONT", "DejaVuSans.ttf"),
        output_suffix=_env_str("PHOTOSTATS_OUTPUT_SUFFIX", "-photostats"),
        raw_half_size=_env_bool("PHOTOSTATS_RAW_HALF_SIZE", False),
    )


__all__ = ["ASSETS_DIR", "Settings", "load_settings"]
