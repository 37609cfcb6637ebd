# ContentSync Configuration Module
# Handles YAML-based configuration loading, validation, and defaults

from contentsync.config.defaults import DEFAULT_CONFIG, generate_default_config
from contentsync.config.loader import (
    ensure_config_exists,
    get_config_path,
    load_config,
    save_config,
    validate_config_file,
)
from contentsync.config.schema import (
    ContentConfig,
    ImageTransform,
    JsonSourceConfig,
    OutputConfig,
    ResizeFit,
    ResizeSpec,
    RestQuery,
    RestSourceConfig,
    SourceConfig,
    TransformName,
)

__all__ = [
    # Schema
    "ContentConfig",
    "ImageTransform",
    "ResizeSpec",
    "ResizeFit",
    "JsonSourceConfig",
    "RestSourceConfig",
    "RestQuery",
    "SourceConfig",
    "OutputConfig",
    "TransformName",
    # Loader
    "load_config",
    "save_config",
    "get_config_path",
    "ensure_config_exists",
    "validate_config_file",
    # Defaults
    "DEFAULT_CONFIG",
    "generate_default_config",
]
