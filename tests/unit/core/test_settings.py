"""
配置单元测试
验证默认值与环境变量覆盖
"""
from pathlib import Path

import pytest

from core.config import Settings


class TestSettingsLogic:
    def test_defaults(self):
        s = Settings(_env_file=None)
        assert s.DELIVERY_GLOBAL_GAP_MS == 40
        assert s.DELIVERY_DESTINATION_GAP_MS == 1100
        assert s.SEARCH_FUZZY_LIMIT == 5
        assert s.SEARCH_FUZZY_POOL_CAP == 6
        assert s.MENU_PAGE_SIZE == 8
        assert s.SEARCH_SILENT_GROUP_MISS is True
        assert s.SESSION_DIR == s.BASE_DIR / "sessions"

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("MENU_PAGE_SIZE", "5")
        monkeypatch.setenv("SEARCH_SILENT_GROUP_MISS", "false")

        s = Settings(_env_file=None)
        assert s.MENU_PAGE_SIZE == 5
        assert s.SEARCH_SILENT_GROUP_MISS is False

    @pytest.mark.parametrize("raw, expected", [
        ("telethon, aiosqlite", ["telethon", "aiosqlite"]),
        ('["a", "b"]', ["a", "b"]),
        (["x"], ["x"]),
    ])
    def test_parse_list_fields(self, raw, expected):
        assert Settings.parse_list_fields(raw) == expected

    def test_database_url_relative_to_base_dir(self, tmp_path):
        s = Settings(_env_file=None, BASE_DIR=tmp_path, DB_PATH="db/lessons.db")
        assert s.database_url == f"sqlite+aiosqlite:///{(tmp_path / 'db' / 'lessons.db').as_posix()}"
        assert (tmp_path / "db").is_dir()

    def test_database_url_absolute(self, tmp_path):
        target = tmp_path / "abs.db"
        s = Settings(_env_file=None, DB_PATH=str(target))
        assert s.database_url.endswith(Path(target).as_posix())

    def test_missing_credentials_fatal_only_in_production(self):
        Settings(_env_file=None, APP_ENV="development").validate_required()
        with pytest.raises(SystemExit):
            Settings(_env_file=None, APP_ENV="production").validate_required()
