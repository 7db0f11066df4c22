"""Classifier configuration: HMM variant, topology and training settings."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Type, TypeVar

from hmmclassifier.errors import ConfigurationError
from hmmclassifier.io.config import load_yaml_config
from hmmclassifier.io.file_locator import get_config_path

_EnumT = TypeVar("_EnumT", bound=Enum)

NULL_CLASS_LABEL = 0


class HMMType(str, Enum):
    """Which sub-model family the classifier trains."""

    DISCRETE = "discrete"
    CONTINUOUS = "continuous"


class ModelType(str, Enum):
    """Hidden state topology shared by every sub-model."""

    ERGODIC = "ergodic"
    LEFT_RIGHT = "left_right"


@dataclass(frozen=True)
class ClassifierConfig:
    """Settings for :class:`~hmmclassifier.classifier.HMMClassifier`.

    ``num_states``/``num_symbols``/``max_training_epochs``/
    ``min_log_likelihood_change``/``num_random_training_iterations`` apply to
    the discrete models; ``downsample_factor``/``committee_size``/``sigma``/
    ``auto_estimate_sigma`` to the continuous exemplar ensemble.
    """

    hmm_type: HMMType = HMMType.DISCRETE
    model_type: ModelType = ModelType.LEFT_RIGHT
    delta: int = 1
    num_states: int = 10
    num_symbols: int = 20
    max_training_epochs: int = 1000
    min_log_likelihood_change: float = 1.0e-5
    num_random_training_iterations: int = 5
    downsample_factor: int = 5
    committee_size: int = 5
    sigma: float = 0.1
    auto_estimate_sigma: bool = True
    use_scaling: bool = False
    use_null_rejection: bool = False
    random_state: int = 42

    def __post_init__(self) -> None:
        if not isinstance(self.hmm_type, HMMType):
            raise ConfigurationError(f"Unknown HMM type: {self.hmm_type!r}")
        if not isinstance(self.model_type, ModelType):
            raise ConfigurationError(f"Unknown model type: {self.model_type!r}")
        for name in (
            "delta",
            "num_states",
            "num_symbols",
            "max_training_epochs",
            "num_random_training_iterations",
            "downsample_factor",
            "committee_size",
        ):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ConfigurationError(f"{name} must be a positive integer, got {value!r}")
        for name in ("min_log_likelihood_change", "sigma"):
            if not float(getattr(self, name)) > 0:
                raise ConfigurationError(f"{name} must be greater than zero")

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload["hmm_type"] = self.hmm_type.value
        payload["model_type"] = self.model_type.value
        return payload


def coerce_enum(enum_type: Type[_EnumT], value: Any) -> _EnumT:
    if isinstance(value, enum_type):
        return value
    text = str(value).strip()
    for member in enum_type:
        if text.lower() in (member.value, member.name.lower()):
            return member
    raise ConfigurationError(f"Unknown {enum_type.__name__} value: {value!r}")


def config_from_mapping(payload: Mapping[str, Any]) -> ClassifierConfig:
    """Build a :class:`ClassifierConfig` from a plain mapping.

    Missing keys fall back to the dataclass defaults; unknown keys raise so a
    typo in a YAML file does not silently train with defaults.
    """

    defaults = ClassifierConfig()
    known = set(defaults.to_dict())
    unknown = set(payload).difference(known)
    if unknown:
        raise ConfigurationError(f"Unknown classifier settings: {sorted(unknown)}")

    merged = dict(defaults.to_dict(), **payload)
    return ClassifierConfig(
        hmm_type=coerce_enum(HMMType, merged["hmm_type"]),
        model_type=coerce_enum(ModelType, merged["model_type"]),
        delta=int(merged["delta"]),
        num_states=int(merged["num_states"]),
        num_symbols=int(merged["num_symbols"]),
        max_training_epochs=int(merged["max_training_epochs"]),
        min_log_likelihood_change=float(merged["min_log_likelihood_change"]),
        num_random_training_iterations=int(merged["num_random_training_iterations"]),
        downsample_factor=int(merged["downsample_factor"]),
        committee_size=int(merged["committee_size"]),
        sigma=float(merged["sigma"]),
        auto_estimate_sigma=bool(merged["auto_estimate_sigma"]),
        use_scaling=bool(merged["use_scaling"]),
        use_null_rejection=bool(merged["use_null_rejection"]),
        random_state=int(merged["random_state"]),
    )


def load_classifier_config(path: Optional[Path] = None) -> ClassifierConfig:
    """Load classifier settings from YAML (``config/classifier.yaml`` by default).

    The settings may sit at the top level or under a ``classifier`` key.
    """

    payload = load_yaml_config(Path(path) if path else get_config_path("classifier.yaml"))
    section = payload.get("classifier", payload)
    if not isinstance(section, Mapping):
        raise ConfigurationError("classifier settings must be a mapping")
    return config_from_mapping(section)


__all__ = [
    "ClassifierConfig",
    "HMMType",
    "ModelType",
    "NULL_CLASS_LABEL",
    "coerce_enum",
    "config_from_mapping",
    "load_classifier_config",
]
