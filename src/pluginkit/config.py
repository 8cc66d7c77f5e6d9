"""Target configuration loader with schema validation."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from pydantic import ValidationError

from .exceptions import ConfigError
from .models import TargetConfig
from .source import TemplateSource

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "configs/target.config.json"
YAML_SUFFIXES = (".yaml", ".yml")

_TARGET_MAP = {
    "type": "object",
    "additionalProperties": {"type": ["object", "null", "string"]},
}

CONFIG_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "PluginKit Target Configuration",
    "type": "object",
    "properties": {
        "version": {"type": ["string", "number"]},
        "targets": {"type": "object"},
        "agents": {"type": "object", "additionalProperties": _TARGET_MAP},
        "hooks": {
            "type": "object",
            "additionalProperties": {"type": ["object", "null"]},
        },
        "skills": {"type": "object"},
        "commands": {"type": "object"},
        "protocols": {"type": "object"},
    },
}


def validate_config_data(data: Any) -> None:
    """Validate a decoded configuration document against the schema.

    Raises:
        ConfigError: If the document does not match the schema
    """
    try:
        jsonschema.validate(data, CONFIG_SCHEMA)
    except jsonschema.ValidationError as e:
        location = "/".join(str(p) for p in e.absolute_path) or "<root>"
        msg = f"Configuration schema validation failed at {location}: {e.message}"
        raise ConfigError(msg, details={"path": list(e.absolute_path)}) from e


def config_from_data(data: Any, validate: bool = True) -> TargetConfig:
    """Build a TargetConfig from decoded JSON/YAML data.

    Args:
        data: Decoded document
        validate: Whether to run JSON-schema validation first

    Raises:
        ConfigError: If validation fails
    """
    if validate:
        validate_config_data(data)
    try:
        return TargetConfig.model_validate(data)
    except ValidationError as e:
        msg = f"Configuration validation failed: {e}"
        raise ConfigError(msg) from e


def parse_target_config(text: str, validate: bool = True, fmt: str = "json") -> TargetConfig:
    """Parse configuration text.

    Args:
        text: Document text
        validate: Whether to run JSON-schema validation
        fmt: ``json`` or ``yaml``

    Returns:
        Validated configuration

    Raises:
        ConfigError: If the text cannot be parsed or is invalid
    """
    if fmt == "yaml":
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            msg = f"Failed to parse configuration YAML: {e}"
            raise ConfigError(msg) from e
    else:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            msg = f"Failed to parse configuration JSON: {e}"
            raise ConfigError(msg, details={"line": e.lineno, "column": e.colno}) from e
    if data is None:
        data = {}
    return config_from_data(data, validate=validate)


def _format_for(path: str | Path) -> str:
    return "yaml" if str(path).lower().endswith(YAML_SUFFIXES) else "json"


def load_target_config(path: Path, validate: bool = True) -> TargetConfig:
    """Load configuration from a file on disk.

    Args:
        path: JSON or YAML (by suffix) configuration file
        validate: Whether to run JSON-schema validation

    Raises:
        ConfigError: If the file is missing, unreadable or invalid
    """
    if not path.exists():
        msg = f"Configuration file not found: {path}"
        raise ConfigError(msg, details={"path": str(path)})
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        msg = f"Failed to read configuration file: {e}"
        raise ConfigError(msg, details={"path": str(path)}) from e

    config = parse_target_config(text, validate=validate, fmt=_format_for(path))
    logger.debug("Loaded configuration %s with %d agents", path, len(config.agents))
    return config


def load_config_from_source(
    source: TemplateSource,
    path: str = DEFAULT_CONFIG_PATH,
    validate: bool = True,
) -> TargetConfig:
    """Load configuration stored inside the template tree.

    Raises:
        ConfigError: If the file is missing or invalid
    """
    text = source.read_optional_text(path)
    if text is None:
        msg = f"Configuration file not found in templates: {path}"
        raise ConfigError(msg, details={"path": path})
    return parse_target_config(text, validate=validate, fmt=_format_for(path))
