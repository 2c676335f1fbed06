import pytest

from photoframe.services.media_index import MediaIndex
from photoframe.services.platform import Platform
from photoframe.services.storage import (
    DirectPathStrategy,
    ManagedInsertionStrategy,
    select_strategy,
)


def _platform(tmp_path, api_level: int) -> Platform:
    pictures = tmp_path / "Pictures"
    return Platform(
        pictures_dir=pictures,
        api_level=api_level,
        media_index=MediaIndex(pictures / ".media_index.json", storage_root=tmp_path),
    )


@pytest.mark.parametrize(
    "api_level, expected",
    [(21, DirectPathStrategy), (28, DirectPathStrategy), (29, ManagedInsertionStrategy), (34, ManagedInsertionStrategy)],
)
def test_auto_mode_follows_managed_insertion_support(tmp_path, api_level, expected):
    platform = _platform(tmp_path, api_level)

    assert platform.supports_managed_insertion is (expected is ManagedInsertionStrategy)
    assert isinstance(select_strategy(platform), expected)


def test_mode_override_wins_over_api_level(tmp_path):
    assert isinstance(select_strategy(_platform(tmp_path, 34), "direct"), DirectPathStrategy)
    assert isinstance(select_strategy(_platform(tmp_path, 21), "managed"), ManagedInsertionStrategy)


def test_unknown_mode_is_rejected(tmp_path):
    with pytest.raises(ValueError):
        select_strategy(_platform(tmp_path, 29), "cloud")
