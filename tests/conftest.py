from __future__ import annotations

import base64
from io import BytesIO
from pathlib import Path

import pytest
from PIL import Image

from photoframe.config import GalleryConfig, get_settings
from photoframe.services.gallery import GallerySaver
from photoframe.services.platform import Platform


def encode_image(
    color: tuple[int, int, int] = (255, 0, 0),
    *,
    size: tuple[int, int] = (64, 48),
    fmt: str = "PNG",
    mode: str = "RGB",
) -> bytes:
    image = Image.new(mode, size, color)
    buffer = BytesIO()
    image.save(buffer, format=fmt)
    return buffer.getvalue()


def encode_b64(raw: bytes) -> str:
    return base64.b64encode(raw).decode("ascii")


def make_saver(pictures_dir: Path, *, api_level: int = 29, mode: str = "auto") -> GallerySaver:
    config = GalleryConfig(
        pictures_dir=pictures_dir,
        subfolder="PhotoFrame",
        output_format="png",
        compress_level=9,
        media_index_path=pictures_dir / ".media_index.json",
        api_level=api_level,
        storage_mode=mode,
    )
    return GallerySaver(Platform.from_config(config), config)


@pytest.fixture()
def pictures_dir(tmp_path) -> Path:
    return tmp_path / "Pictures"


@pytest.fixture()
def gallery_env(pictures_dir, monkeypatch):
    monkeypatch.setenv("GALLERY_PICTURES_DIR", str(pictures_dir))
    monkeypatch.delenv("GALLERY_MEDIA_INDEX", raising=False)
    monkeypatch.delenv("GALLERY_SUBFOLDER", raising=False)
    monkeypatch.delenv("GALLERY_STORAGE_MODE", raising=False)
    monkeypatch.setenv("GALLERY_API_LEVEL", "29")
    get_settings.cache_clear()
    yield pictures_dir
    get_settings.cache_clear()
