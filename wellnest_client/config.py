"""Client configuration with environment and file overrides"""

import os
import json
from typing import Dict, Any, Optional
from dataclasses import dataclass, field
from pathlib import Path
import yaml


@dataclass
class ApiConfig:
    """Remote API configuration"""
    base_url: str = "http://localhost:8080/api"
    timeout: float = 30.0


@dataclass
class StorageConfig:
    """Durable session storage configuration"""
    session_file: str = str(Path.home() / ".wellnest" / "session.json")


@dataclass
class OtpConfig:
    """One-time code entry configuration"""
    resend_cooldown_seconds: int = 60


@dataclass
class LoggingConfig:
    """Logging configuration"""
    level: str = "WARNING"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file_path: Optional[str] = None
    max_file_size: int = 5 * 1024 * 1024  # 5MB
    backup_count: int = 3


@dataclass
class Settings:
    """Main client settings"""
    api: ApiConfig = field(default_factory=ApiConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    otp: OtpConfig = field(default_factory=OtpConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_env(cls) -> 'Settings':
        """Create settings from environment variables"""
        settings = cls()

        if os.getenv("WELLNEST_API_URL"):
            settings.api.base_url = os.getenv("WELLNEST_API_URL")
        if os.getenv("WELLNEST_API_TIMEOUT"):
            settings.api.timeout = float(os.getenv("WELLNEST_API_TIMEOUT"))

        if os.getenv("WELLNEST_SESSION_FILE"):
            settings.storage.session_file = os.getenv("WELLNEST_SESSION_FILE")

        if os.getenv("WELLNEST_LOG_LEVEL"):
            settings.logging.level = os.getenv("WELLNEST_LOG_LEVEL")
        if os.getenv("WELLNEST_LOG_FILE"):
            settings.logging.file_path = os.getenv("WELLNEST_LOG_FILE")

        return settings

    @classmethod
    def from_file(cls, config_path: str) -> 'Settings':
        """Load settings from a YAML or JSON file"""
        config_file = Path(config_path)

        if not config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_file, 'r') as f:
            if config_file.suffix.lower() in ('.yaml', '.yml'):
                config_data = yaml.safe_load(f) or {}
            elif config_file.suffix.lower() == '.json':
                config_data = json.load(f)
            else:
                raise ValueError(f"Unsupported configuration file format: {config_file.suffix}")

        return cls._from_dict(config_data)

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> 'Settings':
        """Create Settings from dictionary, ignoring unknown keys"""
        settings = cls()

        for section in ('api', 'storage', 'otp', 'logging'):
            if section in data:
                target = getattr(settings, section)
                for key, value in (data[section] or {}).items():
                    if hasattr(target, key):
                        setattr(target, key, value)

        return settings

    def to_dict(self) -> Dict[str, Any]:
        """Convert settings to dictionary"""
        return {
            'api': {
                'base_url': self.api.base_url,
                'timeout': self.api.timeout
            },
            'storage': {
                'session_file': self.storage.session_file
            },
            'otp': {
                'resend_cooldown_seconds': self.otp.resend_cooldown_seconds
            },
            'logging': {
                'level': self.logging.level,
                'file_path': self.logging.file_path
            }
        }


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get global settings instance"""
    global _settings

    if _settings is None:
        config_file = os.getenv("WELLNEST_CONFIG_FILE")

        if config_file and os.path.exists(config_file):
            _settings = Settings.from_file(config_file)
        else:
            _settings = Settings.from_env()

    return _settings


def set_settings(settings: Optional[Settings]) -> None:
    """Set global settings instance (``None`` forces a reload)"""
    global _settings
    _settings = settings
