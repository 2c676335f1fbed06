"""Description of the storage platform a gallery save runs against."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from photoframe.config import GalleryConfig, get_settings

from .media_index import MediaIndex

# First API level that offers managed, permission-scoped media insertion.
MANAGED_INSERTION_API_LEVEL = 29


@dataclass
class Platform:
    pictures_dir: Path
    api_level: int
    media_index: MediaIndex

    @property
    def supports_managed_insertion(self) -> bool:
        return self.api_level >= MANAGED_INSERTION_API_LEVEL

    @classmethod
    def from_config(cls, config: GalleryConfig) -> "Platform":
        index = MediaIndex(config.media_index_path, storage_root=config.pictures_dir.parent)
        return cls(pictures_dir=config.pictures_dir, api_level=config.api_level, media_index=index)


def get_platform() -> Platform:
    return Platform.from_config(get_settings().gallery)
