from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from .errors import DimensionMismatchError, InvalidArgumentError


@dataclass(frozen=True, eq=False)
class Schedule:
    """
    Per-layer (gamma, beta) angles of an annealing-inspired schedule.

    Attributes
    ----------
    gammas : np.ndarray
        Cost-operator angles, length p.
    betas : np.ndarray
        Mixer-operator angles, length p.
    tau : float
        Total annealing time the schedule was derived from.
    """

    gammas: np.ndarray
    betas: np.ndarray
    tau: float

    def __post_init__(self) -> None:
        gammas = np.array(self.gammas, dtype=float).reshape(-1)
        betas = np.array(self.betas, dtype=float).reshape(-1)
        if gammas.size != betas.size:
            raise DimensionMismatchError(
                f"gammas and betas must have equal length, "
                f"got {gammas.size} and {betas.size}"
            )
        gammas.setflags(write=False)
        betas.setflags(write=False)
        object.__setattr__(self, "gammas", gammas)
        object.__setattr__(self, "betas", betas)
        object.__setattr__(self, "tau", float(self.tau))

    @property
    def p(self) -> int:
        return int(self.gammas.size)

    def as_params(self) -> np.ndarray:
        """Angles in the QAOA [gammas..., betas...] layout."""
        return np.concatenate([self.gammas, self.betas])

    @classmethod
    def from_params(cls, params: Sequence[float], tau: float = 0.0) -> "Schedule":
        params = np.asarray(params, dtype=float).reshape(-1)
        if params.size % 2 != 0:
            raise DimensionMismatchError(
                f"Expected a parameter vector of even length 2p, got {params.size}"
            )
        p = params.size // 2
        return cls(gammas=params[:p], betas=params[p:], tau=tau)


class ScheduleBuilder:
    """
    Linear-ramp annealing schedule discretized into p layers:

        gamma_k = tau (k - 1/2) / p            k = 1..p
        beta_k  = tau (1 - k / p)              k = 1..p-1
        beta_p  = tau / (4 p)

    The last mixer angle is set explicitly instead of the ramp value 0, so
    the final layer still carries a small transverse rotation.
    """

    def build(self, p: int, tau: float) -> Schedule:
        if p < 1:
            raise InvalidArgumentError(f"p must be at least 1, got {p}")
        if not tau > 0.0:
            raise InvalidArgumentError(f"tau must be positive, got {tau}")

        k = np.arange(1, p + 1, dtype=float)
        gammas = tau * (k - 0.5) / p
        betas = tau * (1.0 - k / p)
        betas[-1] = tau / (4 * p)

        return Schedule(gammas=gammas, betas=betas, tau=tau)
