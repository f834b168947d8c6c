"""
Configuration Service

Loads business rules from YAML files.
Allows changing rules without code changes.

Usage:
    config = ConfigService()

    # Get the progression rate for a level
    rate = config.get("plan_rules.progression_rates.beginner")

    # Point at a different rules directory (tests, deployments)
    config = ConfigService(config_dir="/etc/runplan")
    config.reload()
"""

import logging
from functools import reduce
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from runplan.core.config import settings
from runplan.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path(__file__).parent.parent.parent / "config"


class ConfigService:
    """
    Load and cache configuration from YAML files.

    Defaults come from constants.py; each YAML file is merged on top of
    them under a namespace named after the file.
    """

    CONFIG_FILES = [
        "plan_rules.yaml",
        "adaptation_rules.yaml",
    ]

    def __init__(self, config_dir: Optional[Union[str, Path]] = None):
        self.config_dir = Path(config_dir or settings.RULES_CONFIG_DIR or DEFAULT_CONFIG_DIR)
        self._config: Optional[Dict[str, Any]] = None

    def get(self, key: str = None, default: Any = None) -> Any:
        """
        Get configuration value.

        Args:
            key: Dot-separated key (e.g., "plan_rules.progression_rates.beginner")
            default: Default value if key not found

        Returns:
            Configuration value or entire config if no key provided
        """
        if self._config is None:
            self._load()

        if key is None:
            return self._config

        try:
            keys = key.split(".")
            return reduce(lambda d, k: d[k], keys, self._config)
        except (KeyError, TypeError):
            return default

    def reload(self):
        """Reload configuration from files."""
        self._config = None
        self._load()
        logger.info("Configuration reloaded")

    def _load(self):
        """Load defaults, then every configuration file present."""
        self._config = self._load_defaults()

        for filename in self.CONFIG_FILES:
            filepath = self.config_dir / filename
            if not filepath.exists():
                logger.debug(f"Config file not found: {filepath}")
                continue

            try:
                with open(filepath, "r", encoding="utf-8") as f:
                    data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                logger.error(f"Error loading {filename}: {e}")
                raise ConfigurationError(str(e), source=str(filepath)) from e

            if not data:
                continue
            if not isinstance(data, dict):
                raise ConfigurationError("top-level value must be a mapping", source=str(filepath))

            # Namespace is the filename without extension
            namespace = filename.rsplit(".", 1)[0]
            self._config[namespace] = _deep_merge(self._config.get(namespace, {}), data)
            logger.debug(f"Loaded config: {filename}")

    @staticmethod
    def _load_defaults() -> Dict[str, Any]:
        """Default configuration from constants."""
        from .constants import (
            DEFAULT_AVAILABLE_DAYS,
            MAX_WEEKLY_PROGRESSION,
            PROGRESSION_RATES,
            RECOVERY_WEEK_INTERVAL,
            RECOVERY_WEEK_VOLUME_FACTOR,
        )

        return {
            "plan_rules": {
                "progression_rates": {k.value: v for k, v in PROGRESSION_RATES.items()},
                "max_weekly_progression": MAX_WEEKLY_PROGRESSION,
                "recovery_week": {
                    "interval": RECOVERY_WEEK_INTERVAL,
                    "volume_factor": RECOVERY_WEEK_VOLUME_FACTOR,
                },
                "default_available_days": list(DEFAULT_AVAILABLE_DAYS),
            },
            "adaptation_rules": {},
        }

    def set(self, key: str, value: Any):
        """
        Set a configuration value (in memory only).
        Useful for testing.
        """
        if self._config is None:
            self._load()

        keys = key.split(".")
        d = self._config
        for k in keys[:-1]:
            if k not in d:
                d[k] = {}
            d = d[k]
        d[keys[-1]] = value

    # ============ Typed getters ============

    def get_progression_rate(self, level: str) -> float:
        """Weekly progression rate for an experience level, capped."""
        rate = self.get(f"plan_rules.progression_rates.{level}", 0.05)
        cap = self.get("plan_rules.max_weekly_progression", 0.20)
        return min(float(rate), float(cap))

    def get_recovery_week_rules(self) -> Dict[str, float]:
        return self.get("plan_rules.recovery_week", {"interval": 4, "volume_factor": 0.7})

    def get_default_available_days(self) -> List[int]:
        return list(self.get("plan_rules.default_available_days", [0, 2, 4, 6]))

    def get_substitution(self, reason: str, workout_type: str) -> Optional[str]:
        """Replacement type for a workout type under a substitution reason."""
        return self.get(f"adaptation_rules.substitutions.{reason}.{workout_type}")

    def get_recovery_protocol(self, condition: str, severity: str) -> List[Dict[str, Any]]:
        return self.get(f"adaptation_rules.recovery_protocols.{condition}.{severity}", [])

    def get_methodology_patterns(self, methodology: str) -> List[Dict[str, Any]]:
        return self.get(f"adaptation_rules.methodology_patterns.{methodology}", [])


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged
