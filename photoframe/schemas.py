"""Pydantic models for the gallery API."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _CompatModel(BaseModel):
    """Base model that ignores unknown fields and accepts field names or aliases."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class SaveToGalleryRequest(_CompatModel):
    base64_data: Optional[str] = Field(
        default=None,
        alias="base64Data",
        description="Raw base64 image data or a data URL such as data:image/png;base64,...",
    )
    file_name: Optional[str] = Field(
        default=None,
        alias="fileName",
        description="File name to store the image under; defaults to photo-frame-<millis>.png",
    )

    @field_validator("file_name", mode="before")
    @classmethod
    def _blank_name_is_missing(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class SaveToGalleryResponse(_CompatModel):
    success: bool = True
    message: str


class SaveToGalleryError(_CompatModel):
    success: bool = False
    error: str
    message: str


class MediaEntryOut(_CompatModel):
    id: int
    uri: str
    display_name: str
    title: str
    mime_type: str
    relative_path: Optional[str] = None
    data: str
    pending: bool = False
    date_added: int = 0


class MediaEntryCollection(_CompatModel):
    entries: list[MediaEntryOut] = Field(default_factory=list)


__all__ = [
    "MediaEntryCollection",
    "MediaEntryOut",
    "SaveToGalleryError",
    "SaveToGalleryRequest",
    "SaveToGalleryResponse",
]
