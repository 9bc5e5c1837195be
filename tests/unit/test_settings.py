import json
import pytest
from pathlib import Path

from worklog.config import settings as settings_module
from worklog.config.settings import DEFAULT_MAX_UPLOAD_BYTES, ConfigLoader, Settings


@pytest.fixture
def config_dirs(tmp_path, monkeypatch):
    """Point user and package config lookups at empty temp dirs"""
    user_dir = tmp_path / "user"
    package_dir = tmp_path / "package"
    user_dir.mkdir()
    package_dir.mkdir()
    monkeypatch.setattr(settings_module, "USER_CONFIG_DIR", user_dir)
    monkeypatch.setattr(settings_module, "PACKAGE_CONFIG_DIR", package_dir)
    return user_dir, package_dir


@pytest.mark.unit
class TestSettings:

    def test_from_dict(self):
        settings = Settings.from_dict({
            "db_path": "/tmp/log.db",
            "attachments_dir": "/tmp/files",
            "max_upload_bytes": "2048",
            "log_level": "debug",
            "unknown": True,
        })

        assert settings.db_path == Path("/tmp/log.db")
        assert settings.attachments_dir == Path("/tmp/files")
        assert settings.max_upload_bytes == 2048
        assert settings.log_level == "DEBUG"

    def test_from_empty_dict_uses_defaults(self):
        assert Settings.from_dict({}) == Settings()
        assert Settings().max_upload_bytes == DEFAULT_MAX_UPLOAD_BYTES == 10 * 1024 * 1024

    def test_bundled_defaults_exist(self):
        defaults = json.loads((settings_module.PACKAGE_CONFIG_DIR / "settings.json").read_text())

        assert Settings.from_dict(defaults) == Settings()

    def test_load_without_any_config(self, config_dirs):
        assert Settings.load() == Settings()

    def test_user_config_wins(self, config_dirs):
        # Arrange
        user_dir, package_dir = config_dirs
        (package_dir / "settings.json").write_text(json.dumps({"log_level": "INFO"}))
        (user_dir / "settings.json").write_text(json.dumps({"log_level": "ERROR"}))

        # Act
        settings = Settings.load()

        # Assert
        assert settings.log_level == "ERROR"

    def test_package_config_used_as_fallback(self, config_dirs):
        _, package_dir = config_dirs
        (package_dir / "settings.json").write_text(json.dumps({"db_path": "other.db"}))

        assert Settings.load().db_path == Path("other.db")

    def test_missing_config_raises(self, config_dirs):
        with pytest.raises(FileNotFoundError, match="nothing.json"):
            ConfigLoader.load_config("nothing.json")
