from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List

import numpy as np


class OptimizationStatus(Enum):
    """Outcome of a parameter optimization run."""

    CONVERGED = "converged"
    NOT_CONVERGED = "not_converged"


@dataclass
class SimulationResult:
    """
    Output of a single QAOA circuit evaluation.
    """

    expected_cost: float
    probabilities: np.ndarray  # length 2^N, bit i of the index is variable i

    def most_probable(self, k: int = 1) -> List[int]:
        """Indices of the k most probable basis states, most probable first."""
        order = np.argsort(-self.probabilities, kind="stable")
        return [int(i) for i in order[:k]]


@dataclass
class OptimizationResult:
    """
    Container for the result of a QAOA parameter optimization.
    """

    final_cost: float  # expected cost at the final parameters
    gammas: np.ndarray
    betas: np.ndarray
    probabilities: np.ndarray
    status: OptimizationStatus
    iterations: int
    history: List[float] = field(default_factory=list)  # start value, then one per iteration

    @property
    def converged(self) -> bool:
        return self.status is OptimizationStatus.CONVERGED

    @property
    def params(self) -> np.ndarray:
        """Final parameters in [gammas..., betas...] layout."""
        return np.concatenate([self.gammas, self.betas])
