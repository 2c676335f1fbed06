from pathlib import Path

import pytest

from photoframe.config import GalleryConfig, _parse_allowed_origins, get_settings


def test_parse_allowed_origins_with_paths() -> None:
    raw = "https://example.com/app, https://demo.com/sub"
    assert _parse_allowed_origins(raw) == [
        "https://example.com",
        "https://demo.com",
    ]


def test_parse_allowed_origins_with_wildcard() -> None:
    assert _parse_allowed_origins("*") == ["*"]


def test_parse_allowed_origins_deduplicates_and_handles_empty() -> None:
    raw = " https://example.com/ , https://example.com ,"
    assert _parse_allowed_origins(raw) == ["https://example.com"]


def test_parse_allowed_origins_defaults_to_wildcard() -> None:
    assert _parse_allowed_origins("") == ["*"]


def test_gallery_defaults(monkeypatch, tmp_path) -> None:
    for name in (
        "GALLERY_PICTURES_DIR",
        "GALLERY_SUBFOLDER",
        "GALLERY_OUTPUT_FORMAT",
        "GALLERY_PNG_COMPRESS_LEVEL",
        "GALLERY_MEDIA_INDEX",
        "GALLERY_API_LEVEL",
        "GALLERY_STORAGE_MODE",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))

    config = GalleryConfig.from_env()

    assert config.pictures_dir == Path(tmp_path) / "Pictures"
    assert config.subfolder == "PhotoFrame"
    assert config.relative_path == "Pictures/PhotoFrame"
    assert config.mime_type == "image/png"
    assert config.compress_level == 9
    assert config.media_index_path == Path(tmp_path) / "Pictures" / ".media_index.json"
    assert config.api_level == 29
    assert config.storage_mode == "auto"


def test_gallery_overrides(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("GALLERY_PICTURES_DIR", str(tmp_path / "Photos"))
    monkeypatch.setenv("GALLERY_SUBFOLDER", "Frames")
    monkeypatch.setenv("GALLERY_PNG_COMPRESS_LEVEL", "42")
    monkeypatch.setenv("GALLERY_API_LEVEL", "28")
    monkeypatch.setenv("GALLERY_STORAGE_MODE", "Direct")

    config = GalleryConfig.from_env()

    assert config.relative_path == "Photos/Frames"
    assert config.compress_level == 9
    assert config.api_level == 28
    assert config.storage_mode == "direct"


@pytest.mark.parametrize(
    "name, value",
    [
        ("GALLERY_OUTPUT_FORMAT", "jpeg"),
        ("GALLERY_STORAGE_MODE", "cloud"),
        ("GALLERY_SUBFOLDER", "a/b"),
        ("GALLERY_SUBFOLDER", ".."),
    ],
)
def test_gallery_rejects_invalid_values(monkeypatch, name, value) -> None:
    monkeypatch.setenv(name, value)
    with pytest.raises(ValueError):
        GalleryConfig.from_env()


def test_get_settings_is_cached(gallery_env) -> None:
    first = get_settings()
    assert get_settings() is first
    assert first.gallery.pictures_dir == gallery_env
