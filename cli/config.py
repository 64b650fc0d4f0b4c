"""Configuration management for the ChunkRelay CLI."""

import json
import os
import shutil
from pathlib import Path


class Config:
    """Manages CLI configuration stored in JSON file."""

    DEFAULT_CONFIG = {
        "relay_host": os.environ.get("CHUNKRELAY_HOST", "localhost"),
        "relay_port": int(os.environ.get("CHUNKRELAY_PORT", "11451")),
        "timeout": 60,
    }

    def __init__(self, config_path: Path):
        """
        Initialize configuration manager.

        Args:
            config_path: Path to config JSON file (typically ~/.chunkrelay/config.json)
        """
        self.config_path = config_path
        self.data = self._load()

    def _load(self) -> dict:
        """
        Load configuration from file, creating defaults if necessary.

        A file that cannot be parsed is copied to ``config.json.bak`` and
        replaced by the defaults.

        Returns:
            Configuration dictionary
        """
        self.config_path.parent.mkdir(parents=True, exist_ok=True)

        if not self.config_path.exists():
            config = self.DEFAULT_CONFIG.copy()
            self._write(config)
            return config

        try:
            with open(self.config_path, 'r') as f:
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError):
            shutil.copy(self.config_path, self.config_path.with_suffix('.json.bak'))
            config = self.DEFAULT_CONFIG.copy()
            self._write(config)
            return config

        config = self.DEFAULT_CONFIG.copy()
        config.update(data)
        return config

    def _write(self, data: dict) -> None:
        with open(self.config_path, 'w') as f:
            json.dump(data, f, indent=2)

    def get_base_url(self) -> str:
        """
        Get relay base URL.

        Returns:
            Base URL string (e.g., "http://localhost:11451")
        """
        host = self.data.get('relay_host', 'localhost')
        port = self.data.get('relay_port', 11451)
        return f"http://{host}:{port}"

    def get_timeout(self) -> float:
        return self.data.get('timeout', 60)
