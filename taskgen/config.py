"""
Configuration management for taskgen.

Every setting is resolved from, highest to lowest priority:
1. Explicit argument (command-line flag)
2. Environment variable (a .env file in the working directory is loaded first)
3. INI config file, [DEFAULT] section
4. Built-in default
"""

import configparser
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

from taskgen.errors import ConfigError
from taskgen.store import DB_FORMATS

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "/etc/taskgen/taskgen.conf"
ENV_CONFIG_FILE = "TASKGEN_CONFIG"

# setting -> (environment variable, default)
SETTINGS = {
    "db_file": ("TASKGEN_DB_FILE", "/var/lib/taskgen-db.json"),
    "systemd_unit_dir": ("TASKGEN_UNIT_DIR", "/etc/systemd/system"),
    "db_format": ("TASKGEN_DB_FORMAT", "auto"),
    "systemctl": ("TASKGEN_SYSTEMCTL", "systemctl"),
}


class TaskgenConfig:
    """
    Resolved taskgen settings.

    Config file path priority:
    1. Explicit config_path argument
    2. TASKGEN_CONFIG environment variable
    3. Default: /etc/taskgen/taskgen.conf (silently skipped if absent)

    Example config file:
        [DEFAULT]
        db_file = /var/lib/taskgen-db.json
        systemd_unit_dir = /etc/systemd/system
    """

    def __init__(
        self,
        config_path: Optional[str] = None,
        load_env: bool = True,
        **overrides: Optional[str],
    ):
        """
        Initialize configuration.

        Args:
            config_path: INI file to read. If None, uses env var or default.
            load_env: Load a .env file from the working directory first
            **overrides: Explicit values for db_file, systemd_unit_dir,
                db_format or systemctl; None means "not given"

        Raises:
            ConfigError: If an explicitly named config file is missing or
                any config file cannot be parsed
        """
        unknown = set(overrides) - set(SETTINGS)
        if unknown:
            raise ConfigError(f"Unknown setting(s): {', '.join(sorted(unknown))}")

        if load_env:
            load_dotenv(Path.cwd() / ".env")

        explicit = bool(config_path or os.environ.get(ENV_CONFIG_FILE))
        self.config_path = Path(
            config_path or os.environ.get(ENV_CONFIG_FILE) or DEFAULT_CONFIG_FILE
        ).expanduser()
        self.sources: Dict[str, str] = {}

        file_values = self._load_file(required=explicit)

        for key, (env_var, default) in SETTINGS.items():
            if overrides.get(key):
                value, source = overrides[key], "argument"
            elif os.environ.get(env_var):
                value, source = os.environ[env_var], env_var
            elif file_values.get(key):
                value, source = file_values[key], str(self.config_path)
            else:
                value, source = default, "default"
            setattr(self, key, value)
            self.sources[key] = source
            logger.debug(f"{key} = {value} (from {source})")

    def _load_file(self, required: bool) -> Dict[str, str]:
        """Read the [DEFAULT] section of the config file."""
        if not self.config_path.exists():
            if required:
                raise ConfigError(f"Config file not found: {self.config_path}")
            logger.debug(f"No config found at {self.config_path}, using defaults")
            return {}

        parser = configparser.ConfigParser(interpolation=None)
        try:
            with open(self.config_path, 'r') as f:
                parser.read_file(f)
        except (OSError, configparser.Error) as e:
            raise ConfigError(f"Failed to load config from {self.config_path}: {e}") from e

        logger.info(f"Loaded configuration from {self.config_path}")
        return dict(parser.defaults())

    @property
    def db_path(self) -> Path:
        return Path(self.db_file).expanduser()

    @property
    def unit_dir(self) -> Path:
        return Path(self.systemd_unit_dir).expanduser()

    def validate(self) -> List[str]:
        """
        Validate configuration.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []
        if self.db_format not in DB_FORMATS:
            errors.append(
                f"db_format must be one of {', '.join(DB_FORMATS)}, got '{self.db_format}'"
            )
        if not self.db_file.strip():
            errors.append("db_file cannot be empty")
        if not self.systemd_unit_dir.strip():
            errors.append("systemd_unit_dir cannot be empty")
        if not self.systemctl.strip():
            errors.append("systemctl cannot be empty")
        return errors

    def as_dict(self) -> Dict[str, Any]:
        return {key: getattr(self, key) for key in SETTINGS}

    def __repr__(self):
        return f"TaskgenConfig(db_file={self.db_file}, unit_dir={self.systemd_unit_dir})"
