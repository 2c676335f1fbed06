from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import List
from urllib.parse import urlparse

SUPPORTED_OUTPUT_FORMATS = {"png": "image/png"}
STORAGE_MODES = ("auto", "managed", "direct")


def _as_bool(value: str | None, default: bool) -> bool:
    """Interpret common truthy / falsy strings while providing a default."""

    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _as_int(value: str | None, default: int) -> int:
    if value is None or not value.strip():
        return default
    try:
        return int(value.strip())
    except (TypeError, ValueError):
        return default


def _parse_allowed_origins(raw: str | None) -> List[str]:
    """Normalise comma-separated origins into values accepted by CORSMiddleware."""

    if not raw:
        return ["*"]

    cleaned: List[str] = []
    for origin in raw.split(","):
        value = origin.strip()
        if not value:
            continue
        if value == "*":
            return ["*"]

        parsed = urlparse(value)
        if parsed.scheme and parsed.netloc:
            normalised = f"{parsed.scheme}://{parsed.netloc}"
        else:
            normalised = value

        if normalised not in cleaned:
            cleaned.append(normalised)

    return cleaned or ["*"]


@dataclass
class GalleryConfig:
    pictures_dir: Path
    subfolder: str
    output_format: str
    compress_level: int
    media_index_path: Path
    api_level: int
    storage_mode: str

    def __post_init__(self) -> None:
        # Canonical location, so a symlinked pictures directory maps to one path.
        self.pictures_dir = Path(self.pictures_dir).expanduser().resolve()

    @property
    def mime_type(self) -> str:
        return SUPPORTED_OUTPUT_FORMATS[self.output_format]

    @property
    def relative_path(self) -> str:
        """Relative path of the sub-collection as the media index stores it."""

        return f"{self.pictures_dir.name}/{self.subfolder}"

    @classmethod
    def from_env(cls) -> "GalleryConfig":
        raw_dir = os.getenv("GALLERY_PICTURES_DIR")
        pictures_dir = Path(raw_dir).expanduser() if raw_dir else Path.home() / "Pictures"

        subfolder = (os.getenv("GALLERY_SUBFOLDER") or "PhotoFrame").strip().strip("/\\")
        if not subfolder or subfolder in {".", ".."} or "/" in subfolder or "\\" in subfolder:
            raise ValueError(f"GALLERY_SUBFOLDER must be a single directory name, got {subfolder!r}")

        output_format = (os.getenv("GALLERY_OUTPUT_FORMAT") or "png").strip().lower()
        if output_format not in SUPPORTED_OUTPUT_FORMATS:
            raise ValueError(f"Unsupported GALLERY_OUTPUT_FORMAT: {output_format}")

        compress_level = min(max(_as_int(os.getenv("GALLERY_PNG_COMPRESS_LEVEL"), 9), 0), 9)

        raw_index = os.getenv("GALLERY_MEDIA_INDEX")
        media_index_path = (
            Path(raw_index).expanduser() if raw_index else pictures_dir / ".media_index.json"
        )

        storage_mode = (os.getenv("GALLERY_STORAGE_MODE") or "auto").strip().lower()
        if storage_mode not in STORAGE_MODES:
            raise ValueError(f"GALLERY_STORAGE_MODE must be one of {', '.join(STORAGE_MODES)}")

        return cls(
            pictures_dir=pictures_dir,
            subfolder=subfolder,
            output_format=output_format,
            compress_level=compress_level,
            media_index_path=media_index_path,
            api_level=_as_int(os.getenv("GALLERY_API_LEVEL"), 29),
            storage_mode=storage_mode,
        )


@dataclass
class GuardConfig:
    max_body_bytes: int
    enabled: bool

    @classmethod
    def from_env(cls) -> "GuardConfig":
        raw_max = os.getenv("MAX_BODY_BYTES", "20971520")
        try:
            max_bytes = max(int(raw_max), 0)
        except (TypeError, ValueError):
            max_bytes = 20 * 1024 * 1024

        enabled = _as_bool(os.getenv("BODY_GUARD_ENABLED"), True)
        return cls(max_body_bytes=max_bytes, enabled=enabled)


@dataclass
class Settings:
    environment: str
    log_level: str
    allowed_origins: List[str]
    gallery: GalleryConfig
    guard: GuardConfig


@lru_cache()
def get_settings() -> Settings:
    def _get(name: str, default: str | None = None) -> str | None:
        v = os.getenv(name)
        return v if v is not None else default

    return Settings(
        environment=_get("ENVIRONMENT", "development") or "development",
        log_level=(_get("LOG_LEVEL", "INFO") or "INFO").upper(),
        allowed_origins=_parse_allowed_origins(_get("ALLOWED_ORIGINS", "*")),
        gallery=GalleryConfig.from_env(),
        guard=GuardConfig.from_env(),
    )
