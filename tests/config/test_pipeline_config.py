from __future__ import annotations

from pathlib import Path  # noqa: TC003

import pytest

from snapdiff.config import (
    DEFAULT_FEED_MAX_GROUPS,
    ConfigurationError,
    env_positive_int,
    get_database_uri,
    get_pipeline_config,
)
from snapdiff.config.storage import DEFAULT_DB_FILENAME


def test_env_positive_int_falls_back_when_unset(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("SNAPDIFF_TEST_INT", raising=False)

    assert env_positive_int("SNAPDIFF_TEST_INT", 7) == 7


@pytest.mark.parametrize("raw", ["zero", "0", "-3"])
def test_env_positive_int_rejects_bad_values(monkeypatch: pytest.MonkeyPatch, raw: str) -> None:
    monkeypatch.setenv("SNAPDIFF_TEST_INT", raw)

    with pytest.raises(ConfigurationError, match="SNAPDIFF_TEST_INT"):
        env_positive_int("SNAPDIFF_TEST_INT", 7)


def test_pipeline_config_reads_overrides(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("SNAPDIFF_ARCHIVE_DIR", str(tmp_path / "crawls"))
    monkeypatch.setenv("SNAPDIFF_FEED_PAGE_SIZE", "25")
    monkeypatch.delenv("SNAPDIFF_FEED_MAX_GROUPS", raising=False)

    config = get_pipeline_config()

    assert config.archive_dir == tmp_path / "crawls"
    assert config.feed_page_size == 25
    assert config.feed_max_groups == DEFAULT_FEED_MAX_GROUPS


def test_archive_defaults_to_data_dir(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv("SNAPDIFF_ARCHIVE_DIR", raising=False)
    monkeypatch.setenv("SNAPDIFF_DATA_DIR", str(tmp_path))

    assert get_pipeline_config().archive_dir == tmp_path.resolve() / "archive"


def test_get_database_uri_creates_data_dir(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv("DATABASE_URI", raising=False)
    monkeypatch.setenv("SNAPDIFF_DATA_DIR", str(tmp_path / "data-dir"))

    uri = get_database_uri()

    expected_path = (tmp_path / "data-dir" / DEFAULT_DB_FILENAME).resolve()
    assert uri == f"sqlite+pysqlite:///{expected_path}"
    assert expected_path.parent.exists()
