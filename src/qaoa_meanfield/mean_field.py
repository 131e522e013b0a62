"""
Mean-field (product-state) counterpart of the QAOA annealing circuit.

Each qubit is replaced by a classical Bloch vector n_i = (<X>, <Y>, <Z>).
One layer k of the schedule acts on the spins the way the two QAOA operators
act on a product state:

1. exp(-i gamma_k H_C): every spin precesses about z by 2 gamma_k m_i, where
   m_i = h_i + sum_j J_ij n_j^z is the field produced by the other spins.
2. exp(-i beta_k sum X): every spin precesses about x by 2 beta_k.

The last spin is pinned to n^z = +1. This removes the global spin-flip
symmetry of h = 0 models such as MaxCut, and the pinned spin acts on the
others as an extra field J[i, N-1].
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np
from scipy.spatial.transform import Rotation

from .cost_model import CostModel
from .errors import (
    DimensionMismatchError,
    InvalidArgumentError,
    NumericalInstabilityError,
)
from .schedule import Schedule


logger = logging.getLogger(__name__)

_Z_AXIS = np.array([0.0, 0.0, 1.0])
_X_AXIS = np.array([1.0, 0.0, 0.0])

# slack allowed on |n_i| <= 1 for accumulated rounding
NORM_TOLERANCE = 1e-6


@dataclass
class MeanFieldTrajectory:
    """
    Spin history of a mean-field evolution.

    ``spins[k, i]`` is the Bloch vector of free spin i after k layers;
    slice 0 is the initial condition. Shape (p + 1, N - 1, 3).
    """

    spins: np.ndarray

    @property
    def num_slices(self) -> int:
        return int(self.spins.shape[0])

    @property
    def num_spins(self) -> int:
        return int(self.spins.shape[1])

    @property
    def final(self) -> np.ndarray:
        return self.spins[-1]

    def spin_series(self, i: int) -> np.ndarray:
        """Time series of spin i, shape (p + 1, 3)."""
        return self.spins[:, i, :]

    def solution(self) -> np.ndarray:
        """
        Bit assignment read off the final slice.

        A spin with n^z >= 0 is read as +1 (bit 0); the pinned last spin is
        always bit 0. Returns N bits.
        """
        z = self.final[:, 2]
        bits = (z < 0.0).astype(int)
        return np.append(bits, 0)

    def energies(self, h: np.ndarray, J: np.ndarray) -> np.ndarray:
        """
        Mean-field energy sum_i h_i n_i^z + sum_{i<j} J_ij n_i^z n_j^z of every
        slice, with the pinned spin at n^z = +1.
        """
        h = np.asarray(h, dtype=float)
        J = np.asarray(J, dtype=float)
        z = np.concatenate(
            [self.spins[:, :, 2], np.ones((self.num_slices, 1))], axis=1
        )
        return z @ h + 0.5 * np.einsum("ki,ij,kj->k", z, J, z)


class MeanFieldEvolver:
    """
    Propagate N - 1 classical spins through a (gamma, beta) schedule.
    """

    def evolve(
        self,
        initial_spins: np.ndarray,
        h: np.ndarray,
        J: np.ndarray,
        schedule: Schedule,
        out: Optional[np.ndarray] = None,
    ) -> MeanFieldTrajectory:
        """
        Parameters
        ----------
        initial_spins : array of shape (N - 1, 3)
            Bloch vectors of the free spins, each with norm <= 1.
        h : array of shape (N,)
        J : array of shape (N, N)
            Couplings; the diagonal is ignored.
        schedule : Schedule
        out : optional array of shape (p + 1, N - 1, 3)
            Buffer to record the trajectory into.

        Returns
        -------
        MeanFieldTrajectory
            Every intermediate slice, not only the final one.
        """
        h = np.asarray(h, dtype=float).reshape(-1)
        J = np.asarray(J, dtype=float)
        n = h.size
        if n < 1:
            raise DimensionMismatchError("h must have at least one entry")
        if J.shape != (n, n):
            raise DimensionMismatchError(
                f"Expected J of shape ({n}, {n}), got {J.shape}"
            )

        free = n - 1
        spins = np.array(initial_spins, dtype=float)
        if spins.size == 0:
            spins = spins.reshape(0, 3)
        if spins.shape != (free, 3):
            raise DimensionMismatchError(
                f"Expected initial spins of shape ({free}, 3), got {spins.shape}"
            )
        if not np.all(np.isfinite(spins)):
            raise InvalidArgumentError("Initial spins must be finite")
        if np.any(np.linalg.norm(spins, axis=1) > 1.0 + NORM_TOLERANCE):
            raise InvalidArgumentError("Initial spins must have norm <= 1")

        p = schedule.p
        if out is None:
            out = np.empty((p + 1, free, 3))
        elif out.shape != (p + 1, free, 3):
            raise DimensionMismatchError(
                f"Expected output buffer of shape {(p + 1, free, 3)}, got {out.shape}"
            )

        # pinned last spin (n^z = +1) enters as a static field
        h_eff = h[:free] + J[:free, free]
        J_free = J[:free, :free] - np.diag(np.diag(J[:free, :free]))

        out[0] = spins
        logger.debug("Mean-field evolution: %d free spins, p=%d", free, p)

        for k, (gamma, beta) in enumerate(zip(schedule.gammas, schedule.betas)):
            if free:
                angles = 2.0 * gamma * (h_eff + J_free @ spins[:, 2])
                if not np.all(np.isfinite(angles)):
                    raise NumericalInstabilityError(
                        f"Precession angles became non-finite at layer {k + 1}"
                    )
                cost_rotation = Rotation.from_rotvec(np.outer(angles, _Z_AXIS))
                mixer_rotation = Rotation.from_rotvec(2.0 * beta * _X_AXIS)
                spins = mixer_rotation.apply(cost_rotation.apply(spins))

            if not np.all(np.isfinite(spins)):
                raise NumericalInstabilityError(
                    f"Spin vectors became non-finite at layer {k + 1}"
                )
            out[k + 1] = spins

        return MeanFieldTrajectory(spins=out)

    def evolve_model(
        self,
        model: CostModel,
        schedule: Schedule,
        initial_spins: Optional[np.ndarray] = None,
    ) -> MeanFieldTrajectory:
        """
        Evolve a CostModel's spins, by default starting every free spin
        along +x (the mean-field image of |+>).
        """
        if initial_spins is None:
            initial_spins = np.tile(_X_AXIS, (model.num_variables - 1, 1))
        return self.evolve(initial_spins, model.h, model.J, schedule)
