"""Save base64 images from the host application into the shared gallery."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from photoframe.config import GalleryConfig, get_settings

from .errors import GallerySaveError, UnexpectedError
from .payload import ImagePayload, build_payload, payload_from_bytes
from .platform import Platform, get_platform
from .storage import StorageTarget, StoredImage, select_strategy

logger = logging.getLogger(__name__)

SAVED_MESSAGE = "Image saved to gallery"


@dataclass(frozen=True)
class SaveResult:
    """Outcome of one save: ``success`` with a message, or a failure reason."""

    success: bool
    message: str
    error: Optional[str] = None
    path: Optional[Path] = None
    uri: Optional[str] = None
    file_name: Optional[str] = None

    @classmethod
    def ok(cls, stored: StoredImage, file_name: str) -> "SaveResult":
        return cls(success=True, message=SAVED_MESSAGE, path=stored.path, uri=stored.uri, file_name=file_name)

    @classmethod
    def failure(cls, error: GallerySaveError) -> "SaveResult":
        return cls(success=False, message=error.reason, error=error.kind)


class GallerySaver:
    def __init__(self, platform: Platform, config: GalleryConfig) -> None:
        self.platform = platform
        self.config = config

    @classmethod
    def from_settings(cls) -> "GallerySaver":
        return cls(get_platform(), get_settings().gallery)

    def save(self, data: str | None, file_name: str | None = None) -> SaveResult:
        """Decode ``data`` (bare base64 or a data URL) and store it as a PNG.

        Never raises: every failure comes back as ``SaveResult(success=False)``.
        """

        logger.info(
            "[gallery-save] Request received",
            extra={"payload_length": len(data or ""), "requested_name": file_name},
        )
        return self._run(lambda: build_payload(data, file_name))

    def save_bytes(self, raw: bytes, file_name: str | None = None) -> SaveResult:
        """Store already decoded image bytes."""

        return self._run(lambda: payload_from_bytes(raw, file_name))

    def _run(self, decode) -> SaveResult:
        try:
            payload = decode()
            return self._store(payload)
        except GallerySaveError as exc:
            logger.warning(
                "[gallery-save] Save rejected",
                extra={"error": exc.kind, "reason": exc.reason},
            )
            return SaveResult.failure(exc)
        except Exception as exc:  # noqa: BLE001 - callers always receive a result
            logger.exception("[gallery-save] Unexpected failure")
            return SaveResult.failure(UnexpectedError(f"Error saving image: {exc}"))

    def _store(self, payload: ImagePayload) -> SaveResult:
        target = StorageTarget.from_config(self.config)
        strategy = select_strategy(self.platform, self.config.storage_mode)
        logger.info(
            "[gallery-save] Storing image",
            extra={
                "strategy": strategy.name,
                "requested_name": payload.file_name,
                "width": payload.size[0],
                "height": payload.size[1],
            },
        )
        stored = strategy.store(payload, target)
        logger.info(
            "[gallery-save] Image stored",
            extra={"strategy": stored.strategy, "path": str(stored.path), "uri": stored.uri},
        )
        return SaveResult.ok(stored, payload.file_name)


def save_to_gallery(data: str | None, file_name: str | None = None) -> SaveResult:
    return GallerySaver.from_settings().save(data, file_name)


__all__ = ["GallerySaver", "SaveResult", "SAVED_MESSAGE", "save_to_gallery"]
