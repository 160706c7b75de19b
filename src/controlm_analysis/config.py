"""
Configuration loader for the Control-M Migration Analyzer.

Loads settings from config.yaml with sensible defaults. The analysis engine
never reads this module directly; callers build an AnalysisSettings from it
and pass that in.
"""

import copy
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

# Default configuration values
DEFAULTS = {
    'analysis': {
        'max_workers': 4,
        'low_dependency_threshold': 2,
        'max_jobs': 500000,
        'max_edges': 5000000,
    },
    'output': {
        'output_dir': './output',
    },
    'logging': {
        'level': 'INFO',
    },
}


class Config:
    """Configuration manager for the migration analyzer."""

    _instance: Optional['Config'] = None
    _config: Dict[str, Any] = {}

    def __new__(cls):
        """Singleton pattern to ensure single config instance."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._load_config()
        return cls._instance

    def _load_config(self):
        """Load configuration from config.yaml or use defaults."""
        self._config = copy.deepcopy(DEFAULTS)

        config_paths = [
            Path('config.yaml'),
            Path('config.yml'),
            Path(__file__).parent.parent.parent / 'config.yaml',
            Path(__file__).parent.parent.parent / 'config.yml',
            Path.home() / '.controlm-analysis' / 'config.yaml',
        ]

        config_file = None
        for path in config_paths:
            if path.exists():
                config_file = path
                break

        if config_file:
            self.load_file(config_file)
        else:
            logger.debug("No config.yaml found, using defaults")

    def load_file(self, config_file: Path):
        """Merge a YAML file over the defaults; unreadable files are ignored."""
        try:
            with open(config_file, 'r') as f:
                file_config = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Failed to load config from {config_file}: {e}")
            return

        if not isinstance(file_config, dict):
            logger.warning(f"Ignoring config {config_file}: top level must be a mapping")
            return

        self._config = self._deep_merge(DEFAULTS, file_config)
        logger.info(f"Loaded configuration from {config_file}")

    def _deep_merge(self, base: Dict, override: Dict) -> Dict:
        """Deep merge two dictionaries."""
        result = copy.deepcopy(base)
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value
        return result

    def get(self, *keys, default=None) -> Any:
        """
        Get a configuration value by key path.

        Usage:
            config.get('analysis', 'max_workers')
            config.get('output', 'output_dir', default='./output')
        """
        value = self._config
        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default
        return value

    @property
    def analysis(self) -> Dict[str, Any]:
        """Get analysis engine configuration."""
        return self._config.get('analysis', DEFAULTS['analysis'])

    @property
    def output(self) -> Dict[str, Any]:
        """Get output configuration."""
        return self._config.get('output', DEFAULTS['output'])

    @property
    def log_level(self) -> str:
        return str(self.get('logging', 'level', default='INFO')).upper()

    def reload(self):
        """Reload configuration from file."""
        self._load_config()


@dataclass(frozen=True)
class AnalysisSettings:
    """Explicit engine settings, detached from the global config."""
    max_workers: int = 4
    low_dependency_threshold: int = 2
    max_jobs: Optional[int] = 500000
    max_edges: Optional[int] = 5000000

    @classmethod
    def from_config(cls, cfg: Optional[Config] = None, **overrides) -> 'AnalysisSettings':
        cfg = cfg or get_config()
        values = {
            'max_workers': int(cfg.get('analysis', 'max_workers', default=4)),
            'low_dependency_threshold': int(cfg.get('analysis', 'low_dependency_threshold', default=2)),
            'max_jobs': cfg.get('analysis', 'max_jobs', default=500000),
            'max_edges': cfg.get('analysis', 'max_edges', default=5000000),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


# Global config instance
config = Config()


def get_config() -> Config:
    """Get the global configuration instance."""
    return config
