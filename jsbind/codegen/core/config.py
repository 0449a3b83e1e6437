"""
Configuration management for code generation.

Handles loading and merging configuration from JSON files,
providing defaults and validation for generator settings.
"""

import json
import re
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ...logging_config import get_logger
from .errors import GeneratorError

logger = get_logger(__name__)

_DOTTED_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)*$")


class ConfigError(GeneratorError):
    """Exception raised for configuration-related errors."""

    pass


@dataclass
class GeneratorConfig:
    """Settings for the binding generator."""

    # Output settings
    output_file: Optional[str] = None

    # Package providing the ``ojs`` bridge to generated modules
    runtime_module: str = "jsbind.runtime"

    # Code style settings
    add_comments: bool = True
    type_hints: bool = True

    # Signature type name -> Python module defining its conversion functions
    extern_types: Dict[str, str] = field(default_factory=dict)

    # Unknown keys from configuration files end up here
    custom: Dict[str, Any] = field(default_factory=dict)


DEFAULTS: Dict[str, Any] = {
    "runtime_module": "jsbind.runtime",
    "add_comments": True,
    "type_hints": True,
    "extern_types": {},
}


class ConfigManager:
    """Manages configuration loading and merging."""

    def __init__(self):
        self._defaults: Dict[str, Any] = dict(DEFAULTS)

    def get_config(
        self,
        custom_config: Optional[Dict[str, Any]] = None,
        config_file: Optional[Union[str, Path]] = None,
    ) -> GeneratorConfig:
        """
        Get complete configuration.

        Args:
            custom_config: Custom configuration overrides
            config_file: Path to JSON configuration file

        Returns:
            Defaults, then file settings, then overrides
        """
        base_config = {key: _copy(value) for key, value in self._defaults.items()}

        if config_file:
            base_config.update(self._load_config_file(config_file))

        if custom_config:
            base_config.update(custom_config)

        return self._dict_to_config(base_config)

    def _load_config_file(self, config_path: Union[str, Path]) -> Dict[str, Any]:
        """Load configuration from JSON file."""
        path = Path(config_path)

        if not path.exists():
            raise ConfigError(f"Configuration file not found: {path}")

        if not path.suffix.lower() == ".json":
            raise ConfigError(f"Configuration file must be JSON: {path}")

        try:
            with open(path, "r", encoding="utf-8") as f:
                config = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in configuration file {path}: {e}") from e
        except OSError as e:
            raise ConfigError(f"Failed to load configuration file {path}: {e}") from e

        if not isinstance(config, dict):
            raise ConfigError(f"Configuration file must contain a JSON object: {path}")

        logger.debug("Loaded configuration from %s", path)
        return config

    def _dict_to_config(self, config_dict: Dict[str, Any]) -> GeneratorConfig:
        """Convert dictionary to GeneratorConfig instance."""
        known_fields = {f.name for f in fields(GeneratorConfig)}

        config_args = {}
        custom_args = {}

        for key, value in config_dict.items():
            if key in known_fields:
                config_args[key] = value
            else:
                custom_args[key] = value

        if custom_args:
            existing_custom = dict(config_args.get("custom", {}))
            existing_custom.update(custom_args)
            config_args["custom"] = existing_custom

        if not isinstance(config_args.get("extern_types", {}), dict):
            raise ConfigError("extern_types must be a JSON object")

        return GeneratorConfig(**config_args)

    def save_config(self, config: GeneratorConfig, output_path: Union[str, Path]):
        """Save configuration to JSON file."""
        path = Path(output_path)

        config_dict = asdict(config)
        config_dict.update(config_dict.pop("custom"))

        try:
            with open(path, "w", encoding="utf-8") as f:
                json.dump(config_dict, f, indent=2, ensure_ascii=False)
        except OSError as e:
            raise ConfigError(f"Failed to save configuration to {path}: {e}") from e

    def validate_config(self, config: GeneratorConfig) -> List[str]:
        """
        Validate configuration.

        Returns:
            List of validation warnings
        """
        warnings = []

        if not _DOTTED_NAME.match(config.runtime_module or ""):
            warnings.append(f"Invalid runtime_module: {config.runtime_module!r}")

        for type_name, module in config.extern_types.items():
            if not _DOTTED_NAME.match(type_name):
                warnings.append(f"Invalid extern type name: {type_name!r}")
            if not isinstance(module, str) or not _DOTTED_NAME.match(module):
                warnings.append(f"Invalid module for extern type {type_name}: {module!r}")

        for key in config.custom:
            warnings.append(f"Unknown configuration key: {key}")

        return warnings


def _copy(value: Any) -> Any:
    return dict(value) if isinstance(value, dict) else value


# Global configuration manager instance
_config_manager = None


def get_config_manager() -> ConfigManager:
    """Get the global configuration manager instance."""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager


def load_config(
    custom_config: Optional[Dict[str, Any]] = None,
    config_file: Optional[Union[str, Path]] = None,
) -> GeneratorConfig:
    """
    Convenience function to load configuration.

    Args:
        custom_config: Custom configuration overrides
        config_file: Path to JSON configuration file

    Returns:
        Merged configuration
    """
    manager = get_config_manager()
    return manager.get_config(custom_config, config_file)


def validate_config(config: GeneratorConfig) -> List[str]:
    return get_config_manager().validate_config(config)

