"""
Application configuration for StatBuddy.

Settings live in an optional ``statbuddy_config.json`` inside the data
directory. Missing or malformed files fall back to defaults, the same way
the preferences file is read.

Example config:
    {
        "require_membership": false,
        "max_workers": 2,
        "service": {"update_interval": 15.0, "thumbnail_size": 64}
    }
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from SB_Libs.NotifyLib.notification_service import ServiceConfig
from SB_Libs.constants import (
    APP_DIR_NAME,
    CACHE_DIR_NAME,
    CONFIG_FILENAME,
    DEFAULT_MAX_WORKERS,
    PREFS_FILENAME,
)

logger = logging.getLogger(__name__)


def default_data_dir() -> Path:
    return Path.home() / APP_DIR_NAME


@dataclass
class AppConfig:
    """Configuration for one StatBuddy installation.

    Attributes:
        data_dir: Directory holding preferences and config
        cache_dir: Directory for cropped images and icons (default: data_dir/cache)
        prefs_filename: Preferences file name inside data_dir
        require_membership: Only allow library members as the active image
        max_workers: Background worker threads for decode/encode work
        service: Notification service settings
    """
    data_dir: Path = field(default_factory=default_data_dir)
    cache_dir: Optional[Path] = None
    prefs_filename: str = PREFS_FILENAME
    require_membership: bool = False
    max_workers: int = DEFAULT_MAX_WORKERS
    service: ServiceConfig = field(default_factory=ServiceConfig)

    def __post_init__(self) -> None:
        self.data_dir = Path(self.data_dir)
        self.cache_dir = Path(self.cache_dir) if self.cache_dir else self.data_dir / CACHE_DIR_NAME
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {self.max_workers}")

    @property
    def prefs_path(self) -> Path:
        return self.data_dir / self.prefs_filename

    def ensure_dirs(self) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.cache_dir.mkdir(parents=True, exist_ok=True)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "data_dir": str(self.data_dir),
            "cache_dir": str(self.cache_dir),
            "prefs_filename": self.prefs_filename,
            "require_membership": self.require_membership,
            "max_workers": self.max_workers,
            "service": self.service.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], data_dir: Optional[Path] = None) -> "AppConfig":
        """Create from dictionary. An explicit ``data_dir`` wins over the file's value."""
        service_data = data.get("service")
        service = ServiceConfig.from_dict(service_data) if isinstance(service_data, dict) else ServiceConfig()

        resolved_dir = data_dir or data.get("data_dir") or default_data_dir()
        return cls(
            data_dir=Path(resolved_dir),
            cache_dir=data.get("cache_dir") or None,
            prefs_filename=str(data.get("prefs_filename") or PREFS_FILENAME),
            require_membership=bool(data.get("require_membership", False)),
            max_workers=int(data.get("max_workers", DEFAULT_MAX_WORKERS)),
            service=service,
        )


def load_app_config(data_dir: Optional[Path] = None) -> AppConfig:
    """
    Load configuration from ``data_dir/statbuddy_config.json``.

    Args:
        data_dir: Data directory (default: ~/.statbuddy)

    Returns:
        The loaded AppConfig, or defaults if the file is missing or invalid
    """
    data_dir = Path(data_dir) if data_dir else default_data_dir()
    config_path = data_dir / CONFIG_FILENAME

    try:
        payload = json.loads(config_path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        payload = {}
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning(f"Ignoring unreadable config {config_path}: {exc}")
        payload = {}

    if not isinstance(payload, dict):
        payload = {}

    try:
        return AppConfig.from_dict(payload, data_dir=data_dir)
    except (TypeError, ValueError) as exc:
        logger.warning(f"Invalid config {config_path}, using defaults: {exc}")
        return AppConfig(data_dir=data_dir)
