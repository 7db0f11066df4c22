"""Input/output helpers for configuration files and persisted models."""

from .config import clear_config_cache, load_yaml_config
from .file_locator import (
    MODEL_FILE_SUFFIX,
    ensure_directory,
    get_config_path,
    get_model_path,
    get_project_root,
)

__all__ = [
    "MODEL_FILE_SUFFIX",
    "clear_config_cache",
    "ensure_directory",
    "get_config_path",
    "get_model_path",
    "get_project_root",
    "load_yaml_config",
]
