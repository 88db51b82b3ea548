"""
Configuration for moviemath.

Settings are layered: built-in defaults, then environment variables, then
explicit overrides (from a config file or the command line). Values are
read with dot paths such as ``config.get('kmeans.k')``.
"""

import json
import logging
import os
import threading
from copy import deepcopy
from typing import Any, Callable, Dict, List, Optional, Tuple

import yaml

logger = logging.getLogger(__name__)

DEFAULT_FEATURES = [
    'Budget (million $)',
    'Domestic Gross (million $)',
    'Foreign Gross (million $)',
    'Profitability',
    'Rotten Tomatoes %'
]

DEFAULTS = {
    'server': {
        'port': 8080,
        'host': 'localhost'
    },
    'pca': {
        'max-iters': 100,
        'tolerance': 1e-10,   # squared change between iterations
        'std-epsilon': 1e-5,  # smaller spreads are clamped to 1
        'zero-norm': 1e-10    # smaller products are reseeded
    },
    'kmeans': {
        'k': 3,
        'k-min': 2,
        'k-max': 8,
        'max-iters': 100,
        'tolerance': 0.001,   # centroid movement
        'seed': None
    },
    'data': {
        'features': list(DEFAULT_FEATURES)
    },
    'logging': {
        'level': 'warn'
    }
}


def to_int(value: Any) -> Optional[int]:
    """
    Convert a value to an integer.

    Args:
        value: Value to convert

    Returns:
        Integer value, or None if conversion failed
    """
    try:
        return int(value)
    except (ValueError, TypeError):
        return None


def to_list(value: Any, separator: str = ',') -> Optional[List[str]]:
    """Split a separated string into stripped, non-empty items."""
    if not isinstance(value, str):
        return None
    items = [item.strip() for item in value.split(separator) if item.strip()]
    return items or None


def to_level(value: Any) -> Optional[str]:
    """Normalize a log level name."""
    if not isinstance(value, str) or not value.strip():
        return None
    return value.strip().lower()


# Environment variable -> (config path, converter)
ENV_VARS: Dict[str, Tuple[str, Callable[[Any], Any]]] = {
    'PORT': ('server.port', to_int),
    'HOST': ('server.host', str),
    'PCA_MAX_ITERS': ('pca.max-iters', to_int),
    'KMEANS_K': ('kmeans.k', to_int),
    'KMEANS_MAX_ITERS': ('kmeans.max-iters', to_int),
    'KMEANS_SEED': ('kmeans.seed', to_int),
    'PCA_FEATURES': ('data.features', to_list),
    'LOG_LEVEL': ('logging.level', to_level),
}


def deep_merge(base: Dict[str, Any], updates: Dict[str, Any]) -> Dict[str, Any]:
    """
    Merge nested dictionaries; values in updates win.

    Args:
        base: Dictionary to update in place
        updates: Values to merge in

    Returns:
        The updated base dictionary
    """
    for key, value in updates.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            deep_merge(base[key], value)
        else:
            base[key] = value
    return base


def load_config_file(filepath: str) -> Dict[str, Any]:
    """
    Load configuration overrides from a JSON or YAML file.

    Args:
        filepath: Path to configuration file

    Returns:
        Configuration dictionary
    """
    if filepath.endswith('.json'):
        with open(filepath, 'r') as f:
            return json.load(f)
    elif filepath.endswith('.yaml') or filepath.endswith('.yml'):
        with open(filepath, 'r') as f:
            return yaml.safe_load(f) or {}
    else:
        raise ValueError(f"Unsupported configuration file format: {filepath}")


class Config:
    """
    Layered moviemath settings.
    """

    def __init__(self, overrides: Optional[Dict[str, Any]] = None):
        """
        Initialize configuration.

        Args:
            overrides: Optional nested overrides, applied last
        """
        self._lock = threading.RLock()
        self._config: Dict[str, Any] = {}
        self.load(overrides)

    def load(self, overrides: Optional[Dict[str, Any]] = None) -> None:
        """
        Rebuild the configuration from defaults, environment and overrides.

        Args:
            overrides: Optional nested overrides
        """
        config = deepcopy(DEFAULTS)

        for name, (path, convert) in ENV_VARS.items():
            if name not in os.environ:
                continue
            value = convert(os.environ[name])
            if value is None:
                logger.warning(f"Ignoring invalid value for {name}: {os.environ[name]!r}")
                continue
            self._set_path(config, path, value)

        if overrides:
            deep_merge(config, deepcopy(overrides))

        # A positive default k stays inside the allowed range; 0 disables clustering
        kmeans = config['kmeans']
        if kmeans['k'] is not None and kmeans['k'] > 0:
            kmeans['k'] = max(kmeans['k-min'], min(kmeans['k-max'], kmeans['k']))

        with self._lock:
            self._config = config

        logger.info("Configuration loaded")

    @staticmethod
    def _set_path(config: Dict[str, Any], path: str, value: Any) -> None:
        *parents, leaf = path.split('.')
        for key in parents:
            config = config.setdefault(key, {})
        config[leaf] = value

    def get(self, path: str, default: Any = None) -> Any:
        """
        Get a configuration value.

        Args:
            path: Dot-separated configuration path
            default: Value returned when the path is missing

        Returns:
            Configuration value, or default if not found
        """
        value = self._config
        for key in path.split('.'):
            if not isinstance(value, dict) or key not in value:
                return default
            value = value[key]
        return value


class ConfigManager:
    """
    Process-wide shared configuration.
    """

    _instance = None
    _lock = threading.RLock()

    @classmethod
    def get_config(cls, overrides: Optional[Dict[str, Any]] = None) -> Config:
        """
        Get the shared configuration, reloading it when overrides are given.

        Args:
            overrides: Optional configuration overrides

        Returns:
            Config instance
        """
        with cls._lock:
            if cls._instance is None:
                cls._instance = Config(overrides)
            elif overrides:
                cls._instance.load(overrides)
            return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Drop the shared configuration instance."""
        with cls._lock:
            cls._instance = None
