"""
Utility classes for Access Log Parser

- ParamParser: "key=value;key2=value2" option strings used by the command line
- ParserConfig / LoggingConfig / MultiprocessingConfig: config.yaml sections merged over defaults
"""

from typing import Dict, List, Optional, Any, Tuple
from multiprocessing import cpu_count
from .logging_config import get_logger
from .exceptions import ValidationError
from .config import ConfigManager

logger = get_logger(__name__)


class ParamParser:
    """
    Utility class for parsing parameter strings.

    Handles parameter strings in the format: "strict=true;fields=status,uri;limit=10"
    """

    @staticmethod
    def parse(params: str) -> Dict[str, str]:
        """
        Parse parameter string into dictionary.

        Args:
            params: Parameter string (e.g., "key1=value1;key2=value2")

        Returns:
            Dictionary of parameters

        Raises:
            ValidationError: If a non-empty entry has no '='
        """
        if not params or not params.strip():
            return {}

        param_dict = {}
        for param in params.split(';'):
            param = param.strip()
            if not param:
                continue
            if '=' not in param:
                raise ValidationError(param, "Expected key=value")
            key, value = param.split('=', 1)
            param_dict[key.strip()] = value.strip()

        return param_dict

    @staticmethod
    def get(
        params: str,
        key: str,
        default: Optional[str] = None,
        required: bool = False
    ) -> Optional[str]:
        """
        Get a specific parameter value.

        Raises:
            ValidationError: If required=True and key not found
        """
        value = ParamParser.parse(params).get(key, default)

        if required and value is None:
            raise ValidationError(key, f"Required parameter '{key}' not provided")

        return value

    @staticmethod
    def get_bool(params: str, key: str, default: bool = False) -> bool:
        """Get boolean parameter value."""
        value = ParamParser.get(params, key)
        if value is None:
            return default
        return value.lower() in ('true', '1', 'yes', 'on')

    @staticmethod
    def get_int(params: str, key: str, default: Optional[int] = None) -> Optional[int]:
        """Get integer parameter value."""
        value = ParamParser.get(params, key)
        if value is None:
            return default
        try:
            return int(value)
        except ValueError:
            raise ValidationError(key, f"Invalid integer value: {value}")

    @staticmethod
    def get_list(
        params: str,
        key: str,
        separator: str = ',',
        default: Optional[List[str]] = None
    ) -> List[str]:
        """Get list parameter value."""
        value = ParamParser.get(params, key)
        if value is None:
            return default or []
        return [item.strip() for item in value.split(separator) if item.strip()]


class ParserConfig:
    """Parser defaults from the 'parser' section of config.yaml."""

    DEFAULTS = {
        'format': 'apache_combined',
        'strict': False,
        'separator': ' ',
    }

    @staticmethod
    def get_config() -> Dict[str, Any]:
        return ConfigManager().get_section('parser', ParserConfig.DEFAULTS)


class LoggingConfig:
    """Logging settings from the 'logging' section of config.yaml."""

    DEFAULTS = {
        'level': 'INFO',
        'file_output': False,
        'log_file': None,  # None = logs/access_log_parser_<date>.log
    }

    @staticmethod
    def get_config() -> Dict[str, Any]:
        return ConfigManager().get_section('logging', LoggingConfig.DEFAULTS)


class MultiprocessingConfig:
    """
    Multiprocessing settings for the DataFrame export.

    Reads the 'multiprocessing' section of config.yaml.
    """

    DEFAULTS = {
        'enabled': True,
        'num_workers': None,  # None = auto-detect
        'chunk_size': 10000,
        'min_lines_for_parallel': 10000,
    }

    @staticmethod
    def get_config() -> Dict[str, Any]:
        """
        Get multiprocessing configuration from config.yaml.

        Returns:
            Dictionary with keys enabled, num_workers, chunk_size and
            min_lines_for_parallel
        """
        return ConfigManager().get_section('multiprocessing', MultiprocessingConfig.DEFAULTS)

    @staticmethod
    def get_optimal_workers(
        total_items: int,
        min_items_per_worker: int = 100,
        max_workers: Optional[int] = None
    ) -> int:
        """Number of worker processes for total_items, at least 1."""
        if max_workers is None:
            max_workers = cpu_count()

        return max(1, min(max_workers, total_items // max(1, min_items_per_worker)))

    @staticmethod
    def should_use_multiprocessing(
        total_items: int,
        config: Optional[Dict[str, Any]] = None
    ) -> bool:
        if config is None:
            config = MultiprocessingConfig.get_config()

        if not config['enabled']:
            return False

        return total_items >= config['min_lines_for_parallel']

    @staticmethod
    def get_processing_params(
        total_items: int,
        override_enabled: Optional[bool] = None,
        override_num_workers: Optional[int] = None,
        override_chunk_size: Optional[int] = None
    ) -> Tuple[bool, Optional[int], int]:
        """
        Get complete processing parameters with overrides.

        Args:
            total_items: Total number of lines to parse
            override_enabled: Override multiprocessing enabled setting
            override_num_workers: Override number of workers
            override_chunk_size: Override chunk size

        Returns:
            Tuple of (use_multiprocessing, num_workers, chunk_size)
        """
        config = MultiprocessingConfig.get_config()

        if override_enabled is not None:
            config['enabled'] = override_enabled
        num_workers = override_num_workers if override_num_workers is not None else config['num_workers']
        chunk_size = override_chunk_size if override_chunk_size is not None else config['chunk_size']

        use_mp = MultiprocessingConfig.should_use_multiprocessing(total_items, config)

        if use_mp and num_workers is None:
            num_workers = MultiprocessingConfig.get_optimal_workers(
                total_items,
                min_items_per_worker=chunk_size
            )

        logger.debug(
            f"Processing params for {total_items} lines: "
            f"multiprocessing={use_mp}, workers={num_workers}, chunk_size={chunk_size}"
        )
        return use_mp, num_workers, chunk_size
