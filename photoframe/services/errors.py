"""Error taxonomy for gallery saves.

Every failure raised inside a save carries a human readable ``reason`` that
is surfaced to the caller unchanged and a short ``kind`` code used by the
HTTP layer to pick a status code.
"""

from __future__ import annotations


class GallerySaveError(Exception):
    """Base class for failures that end a gallery save."""

    kind = "error"
    status_code = 500

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class InvalidInput(GallerySaveError):
    kind = "invalid_input"
    status_code = 400


class DecodeError(GallerySaveError):
    kind = "decode_error"
    status_code = 400


class StorageAllocationError(GallerySaveError):
    kind = "storage_allocation_error"


class WriteError(GallerySaveError):
    kind = "write_error"


class UnexpectedError(GallerySaveError):
    kind = "unexpected_error"


STATUS_BY_KIND = {
    cls.kind: cls.status_code
    for cls in (InvalidInput, DecodeError, StorageAllocationError, WriteError, UnexpectedError)
}


def status_for(kind: str | None) -> int:
    return STATUS_BY_KIND.get(kind or "", 500)


__all__ = [
    "STATUS_BY_KIND",
    "status_for",
    "GallerySaveError",
    "InvalidInput",
    "DecodeError",
    "StorageAllocationError",
    "WriteError",
    "UnexpectedError",
]
