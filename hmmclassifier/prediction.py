"""Per-call prediction result."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Sequence

import numpy as np

from hmmclassifier.settings import NULL_CLASS_LABEL


@dataclass(frozen=True, eq=False)
class Prediction:
    """Outcome of one :meth:`HMMClassifier.predict` call.

    ``class_distances`` holds raw per-class log-likelihoods (discrete) or
    accumulated committee votes (continuous); ``class_likelihoods`` is the
    normalized distribution over classes. Both follow the classifier's class
    index order.
    """

    predicted_class_label: int
    best_class_index: int
    max_likelihood: float
    class_likelihoods: np.ndarray
    class_distances: np.ndarray
    class_labels: Sequence[int]

    @property
    def is_null(self) -> bool:
        return self.predicted_class_label == NULL_CLASS_LABEL

    def likelihood_by_label(self) -> Dict[int, float]:
        return {
            int(label): float(likelihood)
            for label, likelihood in zip(self.class_labels, self.class_likelihoods)
        }


__all__ = ["Prediction"]
