"""ndarena configuration.

Process-wide defaults used when a caller does not pass an explicit value:

- configure() - Update global settings
- get_config() - Get the current settings
- reset_config() - Restore defaults
- load_config() - Load settings from a YAML file
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Optional, Union

import yaml

from .exceptions import InvalidArgumentError
from .types.context import Context
from .types.datatype import DataType
from .types.enums import CompressionType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ArenaConfig:
    """Global ndarena configuration.

    Attributes:
        default_context: Device for new base managers: "auto", "cpu",
            "gpu" or an explicit device such as "gpu(1)".
        default_dtype: Data type used when a caller does not pass one.
        checkpoint_compression: Payload compression for saved parameter
            files, "lz4" or "none".
        log_level: Level the CLI configures logging with.
    """
    default_context: str = "auto"
    default_dtype: str = "float32"
    checkpoint_compression: str = "lz4"
    log_level: str = "WARNING"

    def __post_init__(self):
        DataType.of(self.default_dtype)
        if self.checkpoint_compression.upper() not in CompressionType.__members__:
            raise InvalidArgumentError(
                f"Unknown checkpoint compression: {self.checkpoint_compression}",
                actual=self.checkpoint_compression
            )
        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise InvalidArgumentError(f"Unknown log level: {self.log_level}", actual=self.log_level)


_config = ArenaConfig()
_config_lock = threading.Lock()


def get_config() -> ArenaConfig:
    return _config


def configure(**kwargs: Any) -> ArenaConfig:
    """Update global settings; unknown keys raise InvalidArgumentError."""
    global _config
    known = {f.name for f in fields(ArenaConfig)}
    unknown = set(kwargs) - known
    if unknown:
        raise InvalidArgumentError(f"Unknown config keys: {sorted(unknown)}", actual=sorted(unknown))
    with _config_lock:
        _config = replace(_config, **kwargs)
    logger.debug("Configuration updated: %s", _config)
    return _config


def reset_config() -> ArenaConfig:
    global _config
    with _config_lock:
        _config = ArenaConfig()
    return _config


def load_config(path: Union[str, Path]) -> ArenaConfig:
    """Load settings from a YAML mapping and apply them globally.

    Example config.yaml:
    ```
    default_context: cpu
    default_dtype: float64
    checkpoint_compression: none
    log_level: DEBUG
    ```
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, 'r') as f:
        raw_config = yaml.safe_load(f)

    if raw_config is None:
        return get_config()
    if not isinstance(raw_config, dict):
        raise InvalidArgumentError(f"Config file {path} must contain a mapping")
    return configure(**raw_config)


def resolve_default_context(config: Optional[ArenaConfig] = None) -> Context:
    device = (config or get_config()).default_context.strip().lower()
    if device == "auto":
        return Context.default_context()
    return Context.from_string(device)


def resolve_default_dtype(config: Optional[ArenaConfig] = None) -> DataType:
    return DataType.of((config or get_config()).default_dtype)


def resolve_compression(config: Optional[ArenaConfig] = None) -> CompressionType:
    return CompressionType[(config or get_config()).checkpoint_compression.upper()]
