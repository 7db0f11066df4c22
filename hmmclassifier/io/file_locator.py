"""Path utilities for locating bundled configuration and model files."""

from __future__ import annotations

from pathlib import Path

_PROJECT_ROOT = Path(__file__).resolve().parents[2]

MODEL_FILE_SUFFIX = ".hmm.txt"


def get_project_root() -> Path:
    """Return the repository root directory."""

    return _PROJECT_ROOT


def get_config_path(name: str) -> Path:
    """Return the path to a configuration file under ``config/``."""

    return get_project_root() / "config" / name


def get_model_path(name: str, directory: Path | None = None) -> Path:
    """Return the model file path for ``name`` under ``directory`` or ``models/``."""

    base = Path(directory) if directory is not None else get_project_root() / "models"
    if name.endswith(MODEL_FILE_SUFFIX):
        return base / name
    return base / f"{name}{MODEL_FILE_SUFFIX}"


def ensure_directory(path: Path) -> Path:
    """Ensure ``path`` exists as a directory and return it."""

    path.mkdir(parents=True, exist_ok=True)
    return path


__all__ = [
    "MODEL_FILE_SUFFIX",
    "ensure_directory",
    "get_config_path",
    "get_model_path",
    "get_project_root",
]
