"""
Configuration management for folderize.
"""

import logging
from pathlib import Path
from typing import Dict, Optional

import yaml

from .constants import DEFAULT_INTERVAL_MINUTES, PROGRAM


class Config:
    """Manages configuration file for storing user preferences."""

    def __init__(self, config_path: Optional[Path] = None):
        # Default config location: ~/.<PROGRAM>/config.yml
        if config_path:
            self.config_path = Path(config_path)
        else:
            self.config_path = Path.home() / f".{PROGRAM}" / "config.yml"
        self.program_root = self.config_path.parent
        self.data = self._load_config()

    def _load_config(self) -> Dict:
        """Load configuration from YAML file."""
        if not self.config_path.exists():
            return {}

        try:
            with open(self.config_path, 'r') as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger = logging.getLogger(PROGRAM)
            logger.warning(f"Could not load config: {e}")
            return {}

        if not isinstance(data, dict):
            logging.getLogger(PROGRAM).warning(f"Ignoring malformed config: {self.config_path}")
            return {}
        return data

    def save_config(self) -> None:
        """Save current configuration to file."""
        try:
            self.program_root.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, 'w') as f:
                yaml.safe_dump(self.data, f, default_flow_style=False)
        except OSError as e:
            logger = logging.getLogger(PROGRAM)
            logger.error(f"Could not save config: {e}")

    def get_last_source(self) -> Optional[str]:
        """Get the last used source directory."""
        return self.data.get('last_source')

    def get_last_dest(self) -> Optional[str]:
        """Get the last used destination directory."""
        return self.data.get('last_dest')

    def get_interval_minutes(self) -> int:
        """Get the continuous-mode interval (default: 60 minutes)."""
        try:
            return max(1, int(self.data.get('interval_minutes', DEFAULT_INTERVAL_MINUTES)))
        except (TypeError, ValueError):
            return DEFAULT_INTERVAL_MINUTES

    def get_log_dir(self) -> Path:
        """Get the log directory (default: log/ beside the config file)."""
        log_dir = self.data.get('log_dir')
        return Path(log_dir).expanduser() if log_dir else self.program_root / "log"

    def get_workers(self) -> int:
        """Get the number of metadata extraction threads (default: 1)."""
        try:
            return max(1, int(self.data.get('workers', 1)))
        except (TypeError, ValueError):
            return 1

    def update_paths(self, source: str, dest: str) -> None:
        """Update and save the last used paths."""
        self.data['last_source'] = source
        self.data['last_dest'] = dest
        self.save_config()

    def update_interval(self, minutes: int) -> None:
        self.data['interval_minutes'] = minutes
        self.save_config()

    def update_log_dir(self, log_dir: str) -> None:
        self.data['log_dir'] = log_dir
        self.save_config()

    def update_workers(self, workers: int) -> None:
        self.data['workers'] = workers
        self.save_config()
