"""
Configuration management for Access Log Parser

Loads config.yaml once and serves parser, logging and multiprocessing
settings to the command line and the DataFrame export.
"""

from pathlib import Path
from typing import Optional, Dict, Any, List
import yaml
import os

from .exceptions import ConfigurationError, FileNotFoundError as CustomFileNotFoundError
from .logging_config import get_logger

logger = get_logger(__name__)

CONFIG_FILE_NAME = 'config.yaml'
CONFIG_ENV_VAR = 'ACCESS_LOG_PARSER_CONFIG'


class ConfigManager:
    """
    Centralized configuration management with caching.

    Only one instance exists per process, so every module sees the same
    loaded configuration.
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self._config: Optional[Dict[str, Any]] = None
        self._config_path: Optional[Path] = None
        self._initialized = True

    def find_config(
        self,
        input_file: Optional[str] = None,
        custom_paths: Optional[List[Path]] = None
    ) -> Optional[Path]:
        """
        Search for config.yaml in the standard locations.

        Search order:
        1. $ACCESS_LOG_PARSER_CONFIG
        2. Same directory as the log file being parsed
        3. Parent directory of the log file
        4. Current working directory
        5. Project directory
        6. Custom paths (if provided)

        Args:
            input_file: Log file path to use as reference
            custom_paths: Additional paths to search

        Returns:
            Path to config.yaml if found, None otherwise
        """
        search_paths = []

        env_path = os.environ.get(CONFIG_ENV_VAR)
        if env_path:
            search_paths.append(Path(env_path))

        if input_file:
            input_path = Path(input_file)
            if input_path.exists():
                search_paths.append(input_path.parent / CONFIG_FILE_NAME)
                search_paths.append(input_path.parent.parent / CONFIG_FILE_NAME)

        search_paths.append(Path.cwd() / CONFIG_FILE_NAME)
        search_paths.append(Path(__file__).parent.parent / CONFIG_FILE_NAME)

        if custom_paths:
            search_paths.extend(custom_paths)

        for path in search_paths:
            if path.exists():
                logger.debug(f"Found config file: {path}")
                return path

        logger.debug("No config.yaml found in standard locations")
        return None

    def load_config(
        self,
        config_path: Optional[Path] = None,
        force_reload: bool = False
    ) -> Dict[str, Any]:
        """
        Load and cache configuration from file.

        Args:
            config_path: Path to config file. If None, searches standard locations.
            force_reload: Force reload even if already cached

        Returns:
            Configuration dictionary (empty when no config file exists)

        Raises:
            FileNotFoundError: If an explicit config file does not exist
            ConfigurationError: If the config file is not a YAML mapping
        """
        if not force_reload and self._config is not None:
            if config_path is None or Path(config_path) == self._config_path:
                logger.debug("Using cached configuration")
                return self._config

        if config_path is None:
            config_path = self.find_config()
            if config_path is None:
                logger.debug("No config.yaml found, using defaults")
                self._config = {}
                return self._config

        config_path = Path(config_path)
        if not config_path.exists():
            raise CustomFileNotFoundError(
                str(config_path),
                f"Configuration file not found: {config_path}"
            )

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML format: {e}", str(config_path))
        except OSError as e:
            raise ConfigurationError(f"Failed to load configuration: {e}", str(config_path))

        if config is None:
            config = {}
        if not isinstance(config, dict):
            raise ConfigurationError("Top level must be a mapping", str(config_path))

        self._config = config
        self._config_path = config_path

        logger.info(f"Loaded configuration from: {config_path}")
        return config

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by key.

        Args:
            key: Configuration key (supports dot notation, e.g. 'parser.strict')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        if self._config is None:
            self.load_config()

        value = self._config
        for k in key.split('.'):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def get_section(self, name: str, defaults: Dict[str, Any]) -> Dict[str, Any]:
        """
        Get a top-level section merged over its defaults.

        Raises:
            ConfigurationError: If the section exists but is not a mapping
        """
        section = self.get(name, {})
        if section is None:
            section = {}
        if not isinstance(section, dict):
            raise ConfigurationError(
                f"Section '{name}' must be a mapping",
                str(self._config_path) if self._config_path else None
            )
        merged = dict(defaults)
        merged.update({k: v for k, v in section.items() if k in defaults})
        return merged

    def clear_cache(self):
        """Clear cached configuration"""
        self._config = None
        self._config_path = None
        logger.debug("Configuration cache cleared")


# Global instance
_config_manager = ConfigManager()


def get_config_manager() -> ConfigManager:
    """Get the global ConfigManager instance"""
    return _config_manager

