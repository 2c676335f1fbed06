"""Gallery save pipeline: payload decoding, storage strategies and the media index."""

from .gallery import GallerySaver, SaveResult, save_to_gallery  # noqa: F401

__all__ = ["GallerySaver", "SaveResult", "save_to_gallery"]
