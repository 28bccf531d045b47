"""
Configuration service for application settings and backup defaults.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from ..utils.error_handler import ConfigurationError


IMPORT_STRATEGIES = ("replace", "merge", "skip")

DEFAULT_BACKUP_SETTINGS = {
    "default_import_strategy": "merge",
    "verify_checksum": True,
    "include_checksum": True,
    "include_preferences": True,
}


class ConfigService:
    """
    Service for managing application configuration stored in ``config.json``
    in the data directory.
    """

    def __init__(self, data_path: str = "data"):
        """
        Initialize configuration service.

        Args:
            data_path: Path to persistent data directory
        """
        self.data_path = Path(data_path)
        self.config_file = self.data_path / "config.json"

        # Ensure data directory exists
        self.data_path.mkdir(parents=True, exist_ok=True)

        self._app_config: Optional[Dict[str, Any]] = None

    def get_app_config(self) -> Dict[str, Any]:
        """
        Get application configuration settings.

        Returns:
            Dictionary containing application configuration
        """
        if self._app_config is None:
            self._load_app_config()
        return self._app_config.copy()

    def update_app_config(self, config_updates: Dict[str, Any]) -> None:
        """
        Update application configuration settings.

        Args:
            config_updates: Dictionary of configuration updates

        Raises:
            ConfigurationError: If a backup setting has an invalid value
        """
        if self._app_config is None:
            self._load_app_config()

        self._validate_backup_settings(config_updates)
        self._app_config.update(config_updates)
        self._app_config["updated_at"] = datetime.now().isoformat()
        self._save_app_config()

    def get_backup_defaults(self) -> Dict[str, Any]:
        """
        Backup settings with built-in defaults filled in for missing keys.

        Raises:
            ConfigurationError: If a stored backup setting is invalid
        """
        config = self.get_app_config()
        settings = {key: config.get(key, default) for key, default in DEFAULT_BACKUP_SETTINGS.items()}
        self._validate_backup_settings(settings)
        return settings

    def initialize_default_config(self) -> None:
        """
        Initialize default configuration if none exists, and add any backup
        settings missing from an existing one.
        """
        if not self.config_file.exists():
            self._app_config = {
                "app_name": "EchoCards",
                "version": "1.0.0",
                **DEFAULT_BACKUP_SETTINGS,
                "created_at": datetime.now().isoformat(),
                "updated_at": datetime.now().isoformat(),
            }
            self._save_app_config()
            return

        cfg = self.get_app_config()
        missing = {k: v for k, v in DEFAULT_BACKUP_SETTINGS.items() if k not in cfg}
        if missing:
            cfg.update(missing)
            self._app_config = cfg
            self._save_app_config()

    def _validate_backup_settings(self, settings: Dict[str, Any]) -> None:
        strategy = settings.get("default_import_strategy")
        if strategy is not None and strategy not in IMPORT_STRATEGIES:
            raise ConfigurationError(
                f"Invalid default_import_strategy: {strategy}",
                error_code="INVALID_CONFIG",
                recovery_suggestion=f"Use one of: {', '.join(IMPORT_STRATEGIES)}",
            )

        for key in ("verify_checksum", "include_checksum", "include_preferences"):
            if key in settings and not isinstance(settings[key], bool):
                raise ConfigurationError(
                    f"Invalid {key}: expected true or false, got {settings[key]!r}",
                    error_code="INVALID_CONFIG",
                )

    def _load_app_config(self) -> None:
        """Load application configuration from file."""
        if self.config_file.exists():
            try:
                with open(self.config_file, "r", encoding="utf-8") as f:
                    self._app_config = json.load(f)
            except (json.JSONDecodeError, IOError) as e:
                raise ConfigurationError(f"Failed to load app configuration: {e}", error_code="CONFIG_LOAD_FAILED")
            if not isinstance(self._app_config, dict):
                self._app_config = None
                raise ConfigurationError("App configuration must be a JSON object", error_code="CONFIG_LOAD_FAILED")
        else:
            self._app_config = {}

    def _save_app_config(self) -> None:
        """Save application configuration to file."""
        try:
            with open(self.config_file, "w", encoding="utf-8") as f:
                json.dump(self._app_config, f, indent=2, default=str)
        except IOError as e:
            raise ConfigurationError(f"Failed to save app configuration: {e}", error_code="CONFIG_SAVE_FAILED")
