"""Pydantic schemas describing the blocks of a persisted model file."""

from __future__ import annotations

from typing import Annotated, List, Optional, Tuple

import numpy as np
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, model_validator

from hmmclassifier.settings import HMMType, ModelType, coerce_enum


def _check_stochastic(name: str, rows: List[List[float]]) -> None:
    matrix = np.asarray(rows, dtype=float)
    if np.any(matrix < 0) or not np.allclose(matrix.sum(axis=-1), 1.0, atol=1e-6):
        raise ValueError(f"{name} rows must be probability distributions")


def _check_shape(name: str, rows: List[List[float]], shape: Tuple[int, int]) -> None:
    if len(rows) != shape[0] or any(len(row) != shape[1] for row in rows):
        raise ValueError(f"{name} must have shape {shape}")


HMMTypeField = Annotated[HMMType, BeforeValidator(lambda value: coerce_enum(HMMType, value))]
ModelTypeField = Annotated[ModelType, BeforeValidator(lambda value: coerce_enum(ModelType, value))]


class _Block(BaseModel):
    model_config = ConfigDict(frozen=True)


class ModelFileHeader(_Block):
    """Settings and bookkeeping written before the per-model blocks."""

    hmm_type: HMMTypeField
    model_type: ModelTypeField
    delta: int = Field(gt=0)
    num_states: int = Field(gt=0)
    num_symbols: int = Field(gt=0)
    downsample_factor: int = Field(gt=0)
    committee_size: int = Field(gt=0)
    max_training_epochs: int = Field(gt=0)
    min_log_likelihood_change: float = Field(gt=0)
    num_random_training_iterations: int = Field(gt=0)
    random_state: int = Field(default=42, ge=0)
    sigma: float = Field(gt=0)
    auto_estimate_sigma: bool
    use_scaling: bool
    use_null_rejection: bool
    trained: bool
    num_input_dimensions: int = Field(ge=0)
    num_classes: int = Field(ge=0)
    class_labels: List[int] = Field(default_factory=list)
    null_rejection_thresholds: Optional[List[float]] = None
    ranges: Optional[List[Tuple[float, float]]] = None

    @model_validator(mode="after")
    def _check_classes(self) -> "ModelFileHeader":
        if len(self.class_labels) != self.num_classes:
            raise ValueError("ClassLabels must list NumClasses labels")
        if len(set(self.class_labels)) != len(self.class_labels):
            raise ValueError("ClassLabels must be unique")
        if self.null_rejection_thresholds is not None and (
            len(self.null_rejection_thresholds) != self.num_classes
        ):
            raise ValueError("NullRejectionThresholds must have one value per class")
        if self.ranges is not None and len(self.ranges) != self.num_input_dimensions:
            raise ValueError("Ranges must have one min/max pair per input dimension")
        return self


class DiscreteModelBlock(_Block):
    """One per-class discrete model: settings plus A, B and Pi."""

    model_id: int = Field(gt=0)
    num_states: int = Field(gt=0)
    num_symbols: int = Field(gt=0)
    model_type: ModelTypeField
    delta: int = Field(gt=0)
    max_num_epochs: int = Field(gt=0)
    min_change: float = Field(gt=0)
    transmat: List[List[float]]
    emissionprob: List[List[float]]
    startprob: List[float]

    @model_validator(mode="after")
    def _check_matrices(self) -> "DiscreteModelBlock":
        _check_shape("A", self.transmat, (self.num_states, self.num_states))
        _check_shape("B", self.emissionprob, (self.num_states, self.num_symbols))
        _check_shape("Pi", [self.startprob], (1, self.num_states))
        _check_stochastic("A", self.transmat)
        _check_stochastic("B", self.emissionprob)
        _check_stochastic("Pi", [self.startprob])
        return self


class ExemplarModelBlock(_Block):
    """One continuous exemplar model: label, topology and Gaussian parameters."""

    exemplar_id: int = Field(gt=0)
    class_label: int = Field(gt=0)
    num_states: int = Field(gt=0)
    num_dimensions: int = Field(gt=0)
    model_type: ModelTypeField
    delta: int = Field(gt=0)
    transmat: List[List[float]]
    means: List[List[float]]
    variances: List[List[float]]
    startprob: List[float]

    @model_validator(mode="after")
    def _check_matrices(self) -> "ExemplarModelBlock":
        _check_shape("A", self.transmat, (self.num_states, self.num_states))
        _check_shape("Means", self.means, (self.num_states, self.num_dimensions))
        _check_shape("Covars", self.variances, (self.num_states, self.num_dimensions))
        _check_shape("Pi", [self.startprob], (1, self.num_states))
        _check_stochastic("A", self.transmat)
        _check_stochastic("Pi", [self.startprob])
        if np.any(np.asarray(self.variances) <= 0):
            raise ValueError("Covars must be strictly positive")
        return self


__all__ = ["DiscreteModelBlock", "ExemplarModelBlock", "ModelFileHeader"]
