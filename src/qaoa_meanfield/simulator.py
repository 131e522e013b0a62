from __future__ import annotations

import logging
from typing import Optional, Sequence, Tuple

import numpy as np

from .config import SimulatorSettings
from .cost_model import CostModel
from .errors import (
    DimensionMismatchError,
    InvalidArgumentError,
    NumericalInstabilityError,
    ResourceExhaustedError,
)
from .result import SimulationResult


logger = logging.getLogger(__name__)


class QAOASimulator:
    """
    Dense statevector simulator for depth-p QAOA circuits.

    The circuit is

        |psi> = prod_{l=1..p} exp(-i beta_l sum_q X_q) exp(-i gamma_l H_C) |+>^N

    where H_C is the (diagonal) cost Hamiltonian of a CostModel. Basis
    states are indexed so that bit i of the index is variable i, which is
    the same ordering Qiskit uses.

    The simulator holds no per-run state, so one instance can be shared by
    concurrent optimizations.
    """

    def __init__(self, max_qubits: Optional[int] = None) -> None:
        """
        Parameters
        ----------
        max_qubits : Optional[int]
            Largest N accepted. Defaults to ``SimulatorSettings().max_qubits``.
        """
        if max_qubits is None:
            max_qubits = SimulatorSettings().max_qubits
        if max_qubits < 1:
            raise InvalidArgumentError("max_qubits must be positive")

        self.max_qubits = int(max_qubits)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def run(
        self,
        model: CostModel,
        gammas: Sequence[float],
        betas: Sequence[float],
    ) -> SimulationResult:
        """
        Simulate the circuit and return the expected cost together with the
        full output distribution over the 2^N basis states.

        Empty ``gammas``/``betas`` (p = 0) give the uniform distribution.
        """
        gammas, betas = self._check_angles(gammas, betas)
        costs = self.cost_diagonal(model)

        state = self.evolve_diagonal(costs, model.num_variables, gammas, betas)
        probs = np.abs(state) ** 2
        exp_val = float(probs @ costs)

        logger.debug(
            "QAOA run: N=%d p=%d <C>=%.6f",
            model.num_variables,
            gammas.size,
            exp_val,
        )
        return SimulationResult(expected_cost=exp_val, probabilities=probs)

    def statevector(
        self,
        model: CostModel,
        gammas: Sequence[float],
        betas: Sequence[float],
    ) -> np.ndarray:
        """Final complex amplitudes of the circuit."""
        gammas, betas = self._check_angles(gammas, betas)
        costs = self.cost_diagonal(model)
        return self.evolve_diagonal(costs, model.num_variables, gammas, betas)

    def expectation(self, model: CostModel, params: Sequence[float]) -> float:
        """Expected cost for a parameter vector [gammas..., betas...]."""
        gammas, betas = self._split_params(params)
        return self.run(model, gammas, betas).expected_cost

    def gradient(self, model: CostModel, params: Sequence[float]) -> np.ndarray:
        """
        Exact gradient of the expected cost with respect to all 2p parameters,
        in the same [gammas..., betas...] layout.
        """
        gammas, betas = self._split_params(params)
        costs = self.cost_diagonal(model)
        _, grad = self.value_and_gradient_diagonal(
            costs, model.num_variables, gammas, betas
        )
        return grad

    # ------------------------------------------------------------------
    # Cost-diagonal level, shared by the optimizer and the landscape scan
    # ------------------------------------------------------------------
    def cost_diagonal(self, model: CostModel) -> np.ndarray:
        """Cost of every basis state, after checking the qubit ceiling."""
        n = model.num_variables
        if n > self.max_qubits:
            raise ResourceExhaustedError(
                f"{n} qubits need 2^{n} amplitudes; the limit is "
                f"{self.max_qubits} qubits"
            )
        try:
            return model.energies()
        except MemoryError as exc:
            raise ResourceExhaustedError(
                f"Not enough memory for a {n}-qubit cost diagonal"
            ) from exc

    def evolve_diagonal(
        self,
        costs: np.ndarray,
        num_qubits: int,
        gammas: np.ndarray,
        betas: np.ndarray,
    ) -> np.ndarray:
        """
        Apply the p-layer circuit to |+>^n:

        - cost layer: diagonal phase exp(-i gamma c(x))
        - mixer layer: exp(-i beta X) on every qubit
        """
        dim = 2**num_qubits
        try:
            state = np.full(dim, 1.0 / np.sqrt(dim), dtype=complex)
        except MemoryError as exc:
            raise ResourceExhaustedError(
                f"Not enough memory for a {num_qubits}-qubit statevector"
            ) from exc

        for layer, (gamma, beta) in enumerate(zip(gammas, betas)):
            state *= np.exp(-1j * gamma * costs)
            _apply_mixer(state, num_qubits, beta)
            _renormalize(state, layer)

        return state

    def value_and_gradient_diagonal(
        self,
        costs: np.ndarray,
        num_qubits: int,
        gammas: np.ndarray,
        betas: np.ndarray,
    ) -> Tuple[float, np.ndarray]:
        """
        Expected cost and its gradient by reverse-mode (adjoint) sweep.

        For a layer operator V(theta) = exp(-i theta G) the derivative is
        2 Im <lambda| G |phi>, with phi the state right after V and lambda the
        cost-weighted final state propagated back to the same point.
        """
        p = gammas.size
        phi = self.evolve_diagonal(costs, num_qubits, gammas, betas)
        lam = costs * phi
        value = float(np.real(np.vdot(phi, lam)))

        grad_gamma = np.zeros(p)
        grad_beta = np.zeros(p)
        for layer in reversed(range(p)):
            grad_beta[layer] = 2.0 * np.imag(np.vdot(lam, _apply_x_sum(phi, num_qubits)))
            _apply_mixer(phi, num_qubits, -betas[layer])
            _apply_mixer(lam, num_qubits, -betas[layer])

            grad_gamma[layer] = 2.0 * np.imag(np.vdot(lam, costs * phi))
            phase = np.exp(1j * gammas[layer] * costs)
            phi *= phase
            lam *= phase

        grad = np.concatenate([grad_gamma, grad_beta])
        if not np.all(np.isfinite(grad)):
            raise NumericalInstabilityError("Non-finite QAOA gradient")
        return value, grad

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _split_params(self, theta: Sequence[float]) -> Tuple[np.ndarray, np.ndarray]:
        theta = np.asarray(theta, dtype=float).reshape(-1)
        if theta.size % 2 != 0:
            raise DimensionMismatchError(
                f"Expected a parameter vector of even length 2p, got {theta.size}"
            )
        p = theta.size // 2
        return theta[:p], theta[p:]

    @staticmethod
    def _check_angles(
        gammas: Sequence[float], betas: Sequence[float]
    ) -> Tuple[np.ndarray, np.ndarray]:
        gammas = np.asarray(gammas, dtype=float).reshape(-1)
        betas = np.asarray(betas, dtype=float).reshape(-1)
        if gammas.size != betas.size:
            raise DimensionMismatchError(
                f"gammas and betas must both have length p, "
                f"got {gammas.size} and {betas.size}"
            )
        if not (np.all(np.isfinite(gammas)) and np.all(np.isfinite(betas))):
            raise InvalidArgumentError("QAOA angles must be finite")
        return gammas, betas


def _apply_mixer(state: np.ndarray, num_qubits: int, beta: float) -> None:
    """
    In-place exp(-i beta X_q) on every qubit q.

    Reshaping to (high, 2, 2^q) puts bit q on the middle axis, so each
    update touches exactly the pair of amplitudes that differ in bit q.
    """
    c = np.cos(beta)
    s = -1j * np.sin(beta)
    for q in range(num_qubits):
        view = state.reshape(-1, 2, 2**q)
        a0 = view[:, 0, :].copy()
        a1 = view[:, 1, :]
        view[:, 0, :] = c * a0 + s * a1
        view[:, 1, :] = s * a0 + c * a1


def _apply_x_sum(state: np.ndarray, num_qubits: int) -> np.ndarray:
    """(sum_q X_q) |state>, returned as a new array."""
    out = np.zeros_like(state)
    for q in range(num_qubits):
        view = state.reshape(-1, 2, 2**q)
        out_view = out.reshape(-1, 2, 2**q)
        out_view[:, 0, :] += view[:, 1, :]
        out_view[:, 1, :] += view[:, 0, :]
    return out


def _renormalize(state: np.ndarray, layer: int) -> None:
    norm = np.linalg.norm(state)
    if not np.isfinite(norm) or norm == 0.0:
        raise NumericalInstabilityError(
            f"Statevector became non-finite or vanished at layer {layer + 1}"
        )
    state /= norm
