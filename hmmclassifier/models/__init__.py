"""Hidden Markov Model sub-models used by the classifier."""

from .continuous_hmm import ContinuousHMM, ContinuousTrainingConfig
from .discrete_hmm import DiscreteHMM, DiscreteTrainingConfig
from .topology import build_emissionprob, build_startprob, build_transmat, transition_mask

__all__ = [
    "ContinuousHMM",
    "ContinuousTrainingConfig",
    "DiscreteHMM",
    "DiscreteTrainingConfig",
    "build_emissionprob",
    "build_startprob",
    "build_transmat",
    "transition_mask",
]
