from dataclasses import dataclass
from pathlib import Path
import json
from typing import Dict, Any

# Package defaults (bundled with code)
PACKAGE_CONFIG_DIR = Path(__file__).parent / "defaults"

# User configs (in project root, gitignored)
PROJECT_ROOT = Path(__file__).parent.parent.parent.parent
USER_CONFIG_DIR = PROJECT_ROOT / "config"

DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024

class ConfigLoader:
    """Load configuration with user overrides"""

    @staticmethod
    def load_config(config_name: str) -> Dict[str, Any]:
        """
        Load config with fallback: user config -> default config

        Args:
            config_name: Name of the config file (e.g., 'settings.json')

        Raises:
            FileNotFoundError: If no config file was found

        Returns:
            Parsed JSON configuration
        """
        user_config_path = USER_CONFIG_DIR / config_name
        if user_config_path.exists():
            with open(user_config_path) as f:
                return json.load(f)

        default_config_path = PACKAGE_CONFIG_DIR / config_name
        if default_config_path.exists():
            with open(default_config_path) as f:
                return json.load(f)

        raise FileNotFoundError(
            f"Config file '{config_name}' not found in:\n"
            f" - {user_config_path}\n"
            f" - {default_config_path}"
        )

    @staticmethod
    def load_settings_config() -> Dict[str, Any]:
        """Load application settings configuration"""
        return ConfigLoader.load_config('settings.json')


@dataclass
class Settings:
    """Runtime settings for the work log"""
    db_path: Path = Path("data/worklog.db")
    attachments_dir: Path = Path("data/attachments")
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    log_level: str = "WARNING"

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> "Settings":
        """Build settings from a parsed config, ignoring unknown keys"""
        defaults = cls()
        return cls(
            db_path=Path(config.get("db_path", defaults.db_path)),
            attachments_dir=Path(config.get("attachments_dir", defaults.attachments_dir)),
            max_upload_bytes=int(config.get("max_upload_bytes", defaults.max_upload_bytes)),
            log_level=str(config.get("log_level", defaults.log_level)).upper(),
        )

    @classmethod
    def load(cls) -> "Settings":
        """Load settings, using built-in defaults when no config exists"""
        try:
            return cls.from_dict(ConfigLoader.load_settings_config())
        except FileNotFoundError:
            return cls()
