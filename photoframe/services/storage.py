"""Storage strategies for writing a decoded image into the shared pictures area."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Optional, Protocol

from PIL import Image

from photoframe.config import GalleryConfig

from .errors import StorageAllocationError, WriteError
from .media_index import MediaEntry
from .payload import ImagePayload
from .platform import Platform

logger = logging.getLogger(__name__)

SAVE_FAILED = "Failed to save image to gallery"


@dataclass(frozen=True)
class StorageTarget:
    """Where and how an image lands: ``<pictures>/<subfolder>`` as PNG."""

    directory: Path
    relative_path: str
    mime_type: str = "image/png"
    compress_level: int = 9

    @classmethod
    def from_config(cls, config: GalleryConfig) -> "StorageTarget":
        return cls(
            directory=config.pictures_dir / config.subfolder,
            relative_path=config.relative_path,
            mime_type=config.mime_type,
            compress_level=config.compress_level,
        )


@dataclass(frozen=True)
class StoredImage:
    path: Path
    uri: Optional[str]
    strategy: str


def encode_png(image: Image.Image, stream: BinaryIO, *, compress_level: int = 9) -> None:
    image.save(stream, format="PNG", compress_level=compress_level)


class StorageStrategy(Protocol):
    name: str

    def store(self, payload: ImagePayload, target: StorageTarget) -> StoredImage:
        ...


class ManagedInsertionStrategy:
    """Ask the media index for a new entry, then stream the PNG into its handle.

    Saving the same display name twice yields two distinct entries; the index
    picks a free file name for the second one.
    """

    name = "managed"

    def __init__(self, platform: Platform) -> None:
        self.platform = platform

    def store(self, payload: ImagePayload, target: StorageTarget) -> StoredImage:
        index = self.platform.media_index
        entry = index.insert(
            {
                "display_name": payload.file_name,
                "mime_type": target.mime_type,
                "relative_path": target.relative_path,
            }
        )
        if entry is None:
            logger.error(
                "[gallery-save] Media index returned no handle",
                extra={"display_name": payload.file_name, "relative_path": target.relative_path},
            )
            raise StorageAllocationError(SAVE_FAILED)

        try:
            with index.open_output_stream(entry) as stream:
                encode_png(payload.image, stream, compress_level=target.compress_level)
        except (OSError, ValueError) as exc:
            # The allocated entry stays in the index as pending.
            logger.exception(
                "[gallery-save] Failed to stream image into media entry",
                extra={"uri": entry.uri, "path": entry.data},
            )
            raise WriteError(SAVE_FAILED) from exc

        logger.info("[gallery-save] Image inserted", extra={"uri": entry.uri, "path": entry.data})
        return StoredImage(path=Path(entry.data), uri=entry.uri, strategy=self.name)


class DirectPathStrategy:
    """Write the PNG straight to ``<pictures>/<subfolder>/<name>``, then register it.

    Saving the same file name twice overwrites the file in place.
    """

    name = "direct"

    def __init__(self, platform: Platform) -> None:
        self.platform = platform

    def store(self, payload: ImagePayload, target: StorageTarget) -> StoredImage:
        path = target.directory / payload.file_name
        try:
            target.directory.mkdir(parents=True, exist_ok=True)
            with path.open("wb") as handle:
                encode_png(payload.image, handle, compress_level=target.compress_level)
                handle.flush()
        except (OSError, ValueError) as exc:
            logger.exception("[gallery-save] Failed to write image file", extra={"path": str(path)})
            raise WriteError(SAVE_FAILED) from exc

        logger.info("[gallery-save] Image written", extra={"path": str(path)})
        entry = self.register_best_effort(path, payload.file_name, target.mime_type)
        return StoredImage(path=path, uri=entry.uri if entry else None, strategy=self.name)

    def register_best_effort(self, path: Path, file_name: str, mime_type: str) -> Optional[MediaEntry]:
        """Record ``path`` in the media index; failures never fail the save."""

        try:
            entry = self.platform.media_index.insert(
                {
                    "data": str(path.absolute()),
                    "mime_type": mime_type,
                    "title": file_name,
                    "display_name": file_name,
                }
            )
        except Exception as exc:  # noqa: BLE001 - registration is best effort
            logger.warning(
                "[gallery-save] Media index registration failed; file kept",
                extra={"path": str(path), "error": str(exc)},
            )
            return None

        if entry is None:
            logger.warning("[gallery-save] Media index did not register file", extra={"path": str(path)})
        return entry


def select_strategy(platform: Platform, mode: str = "auto") -> StorageStrategy:
    """Single decision point between the two storage strategies."""

    if mode == "managed":
        return ManagedInsertionStrategy(platform)
    if mode == "direct":
        return DirectPathStrategy(platform)
    if mode != "auto":
        raise ValueError(f"Unknown storage mode: {mode}")
    if platform.supports_managed_insertion:
        return ManagedInsertionStrategy(platform)
    return DirectPathStrategy(platform)


__all__ = [
    "DirectPathStrategy",
    "ManagedInsertionStrategy",
    "StorageStrategy",
    "StorageTarget",
    "StoredImage",
    "encode_png",
    "select_strategy",
]
