"""
Configuration management for the hdlint engine.

This module provides configuration loading with sensible defaults for rule
selection, severities and the exit-status threshold.
"""

import copy
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import yaml

from .errors import ConfigError
from .types import Severity

logger = logging.getLogger(__name__)

CONFIG_FILE_NAMES = [".hdlint.yml", ".hdlint.yaml", "hdlint.yml", "hdlint.yaml"]

DEFAULTS: Dict[str, Any] = {
    "enabled_rules": ["*"],
    "disabled_rules": [],
    "severity_threshold": "error",
    "fail_on_fatal": True,
    "jobs": 0,
    "rule_severities": {},
    "rule_configs": {
        "PROTOTYPE_RETURN_DATA_TYPE": {
            "exempt_constructors": False,
        },
    },
}


@dataclass
class EngineConfig:
    """Configuration for the hdlint engine."""

    # Rule selection (fnmatch patterns over rule ids)
    enabled_rules: List[str] = field(default_factory=lambda: ["*"])
    disabled_rules: List[str] = field(default_factory=list)

    # Lowest severity that makes the run fail
    severity_threshold: Severity = Severity.ERROR
    fail_on_fatal: bool = True

    # Worker count; 0 means one per available CPU
    jobs: int = 0

    # Rule severity overrides (rule_id -> severity)
    rule_severities: Dict[str, Severity] = field(default_factory=dict)

    # Rule-specific constructor options (rule_id -> options)
    rule_configs: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    def __post_init__(self):
        self.severity_threshold = Severity.parse(self.severity_threshold)
        self.rule_severities = {
            rule_id: Severity.parse(severity) for rule_id, severity in (self.rule_severities or {}).items()
        }
        if not isinstance(self.jobs, int) or self.jobs < 0:
            raise ConfigError(f"'jobs' must be a non-negative integer, got {self.jobs!r}")
        for key in ("enabled_rules", "disabled_rules"):
            value = getattr(self, key)
            if isinstance(value, str):
                setattr(self, key, [value])
            elif not isinstance(value, list):
                raise ConfigError(f"'{key}' must be a list of patterns, got {value!r}")


def _merge(defaults: Dict[str, Any], file_config: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(defaults)
    for key, value in file_config.items():
        if key not in defaults:
            logger.warning("Ignoring unknown config key '%s'", key)
            continue
        if key == "rule_severities" and isinstance(value, dict):
            merged[key].update(value)
        elif key == "rule_configs" and isinstance(value, dict):
            for rule_id, rule_config in value.items():
                merged[key].setdefault(rule_id, {}).update(rule_config or {})
        else:
            merged[key] = value
    return merged


def load_config(config_path: Optional[str] = None) -> EngineConfig:
    """
    Load configuration from file or use defaults.

    Args:
        config_path: Path to config file (YAML). If None, uses defaults.

    Returns:
        EngineConfig instance

    Raises:
        ConfigError: when the file parses but holds invalid values
    """
    merged = copy.deepcopy(DEFAULTS)

    if config_path and os.path.exists(config_path):
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                file_config = yaml.safe_load(f) or {}
            if not isinstance(file_config, dict):
                raise ValueError("top level must be a mapping")
            merged = _merge(DEFAULTS, file_config)
        except (OSError, yaml.YAMLError, ValueError) as e:
            logger.warning("Failed to load config from %s: %s; using default configuration", config_path, e)

    try:
        return EngineConfig(**merged)
    except TypeError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


def get_default_config() -> EngineConfig:
    """Get default configuration without loading from file."""
    return load_config(None)


def save_config(config: EngineConfig, config_path: str) -> None:
    """
    Save configuration to file.

    Args:
        config: EngineConfig to save
        config_path: Path where to save the config
    """
    config_dict = {
        "enabled_rules": list(config.enabled_rules),
        "disabled_rules": list(config.disabled_rules),
        "severity_threshold": config.severity_threshold.value,
        "fail_on_fatal": config.fail_on_fatal,
        "jobs": config.jobs,
        "rule_severities": {rule_id: sev.value for rule_id, sev in config.rule_severities.items()},
        "rule_configs": config.rule_configs,
    }

    directory = os.path.dirname(config_path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    with open(config_path, "w", encoding="utf-8") as f:
        yaml.safe_dump(config_dict, f, default_flow_style=False, indent=2)


def find_config_file(start_path: str = ".") -> Optional[str]:
    """
    Find configuration file by walking up the directory tree.

    Looks for ``.hdlint.yml``, ``.hdlint.yaml``, ``hdlint.yml`` and
    ``hdlint.yaml``, in that order, in each directory.

    Args:
        start_path: File or directory to start searching from

    Returns:
        Path to config file or None if not found
    """
    current_path = os.path.abspath(start_path)
    if os.path.isfile(current_path):
        current_path = os.path.dirname(current_path)

    while True:
        for config_name in CONFIG_FILE_NAMES:
            config_path = os.path.join(current_path, config_name)
            if os.path.exists(config_path):
                return config_path

        parent_path = os.path.dirname(current_path)
        if parent_path == current_path:
            break
        current_path = parent_path

    return None
