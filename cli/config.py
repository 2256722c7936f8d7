"""Configuration management for the AirDrop shell."""

import json
import logging
import os
import shutil
from pathlib import Path

from common.constants import (
    DEFAULT_APP_URL,
    DEFAULT_QR_SIZE,
    DEFAULT_STORE_PATH,
    DEFAULT_SWEEP_INTERVAL_SECONDS,
    DOWNLOAD_STAGGER_SECONDS,
    NETWORK_TIMEOUT_SECONDS,
)

logger = logging.getLogger(__name__)


class Config:
    """Manages shell configuration stored in a JSON file."""

    DEFAULT_CONFIG = {
        "store_path": os.environ.get("AIRDROP_STORE_PATH", DEFAULT_STORE_PATH),
        "app_url": os.environ.get("AIRDROP_APP_URL", DEFAULT_APP_URL),
        "ttl_hours": 24,
        "download_dir": "downloads",
        "download_stagger_seconds": DOWNLOAD_STAGGER_SECONDS,
        "qr_size": DEFAULT_QR_SIZE,
        "timeout": NETWORK_TIMEOUT_SECONDS,
        "sweep_interval_seconds": DEFAULT_SWEEP_INTERVAL_SECONDS,
    }

    def __init__(self, config_path: Path):
        """
        Initialize configuration manager.

        Args:
            config_path: Path to config JSON file (typically ~/.airdrop/config.json)
        """
        self.config_path = config_path
        self.data = self._load()

    def _load(self) -> dict:
        """
        Load configuration from file, creating defaults if necessary.

        Returns:
            Configuration dictionary
        """
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
        except PermissionError:
            import tempfile
            self.config_path = Path(tempfile.gettempdir()) / '.airdrop' / 'config.json'
            self.config_path.parent.mkdir(parents=True, exist_ok=True)

        if self.config_path.exists():
            try:
                with open(self.config_path, 'r') as f:
                    data = json.load(f)
                if not isinstance(data, dict):
                    raise ValueError("config root must be an object")
                config = self.DEFAULT_CONFIG.copy()
                config.update(data)
                return config
            except (json.JSONDecodeError, ValueError, IOError) as e:
                backup_path = self.config_path.with_suffix('.json.bak')
                logger.warning(f"Config file unreadable ({e}), backing up to {backup_path}")
                try:
                    shutil.copy(self.config_path, backup_path)
                except IOError as copy_error:
                    logger.warning(f"Failed to back up config: {copy_error}")
                config = self.DEFAULT_CONFIG.copy()
                self._write(config)
                return config
        else:
            config = self.DEFAULT_CONFIG.copy()
            self._write(config)
            return config

    def _write(self, data: dict) -> None:
        try:
            with open(self.config_path, 'w') as f:
                json.dump(data, f, indent=2)
        except IOError as e:
            logger.warning(f"Failed to save config to {self.config_path}: {e}")

    def save(self) -> None:
        """Save current configuration to file."""
        self._write(self.data)

    def get_store_path(self) -> Path:
        """
        Get the bundle/cache database path.

        Returns:
            Expanded path to the SQLite store
        """
        return Path(self.data.get('store_path', DEFAULT_STORE_PATH)).expanduser()

    def get_app_url(self) -> str:
        """
        Get the application URL that locators are built on.

        Returns:
            Application URL (e.g., "http://localhost:8080/")
        """
        return self.data.get('app_url', DEFAULT_APP_URL)

    def get_ttl_ms(self) -> int:
        """
        Get bundle time-to-live.

        Returns:
            TTL in milliseconds
        """
        return int(float(self.data.get('ttl_hours', 24)) * 60 * 60 * 1000)

    def get_download_dir(self) -> Path:
        return Path(self.data.get('download_dir', 'downloads')).expanduser()

    def get_download_stagger(self) -> float:
        return float(self.data.get('download_stagger_seconds', DOWNLOAD_STAGGER_SECONDS))

    def get_qr_size(self) -> int:
        return int(self.data.get('qr_size', DEFAULT_QR_SIZE))

    def get_timeout(self) -> float:
        """
        Get network timeout in seconds.

        Returns:
            Timeout value in seconds
        """
        return float(self.data.get('timeout', NETWORK_TIMEOUT_SECONDS))

    def get_sweep_interval(self) -> float:
        return float(self.data.get('sweep_interval_seconds', DEFAULT_SWEEP_INTERVAL_SECONDS))
