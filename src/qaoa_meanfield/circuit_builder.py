from __future__ import annotations

from typing import Sequence

from qiskit import QuantumCircuit

from .cost_model import CostModel
from .errors import DimensionMismatchError


class QAOACircuitBuilder:
    """
    Build the Qiskit circuit equivalent to QAOASimulator's evolution.

    Useful for running the tuned angles on other backends or for checking
    the dense simulator against ``qiskit.quantum_info.Statevector``. Qiskit
    orders qubits little-endian, which matches the simulator's convention
    that bit i of a basis index is variable i.
    """

    def __init__(self, p=1):
        self.p = p

    def build(
        self,
        model: CostModel,
        gammas: Sequence[float],
        betas: Sequence[float],
    ) -> QuantumCircuit:
        """
        Create the depth-p circuit for the given angles.

        Returns
        -------
        qc : QuantumCircuit
        """
        if len(gammas) != self.p or len(betas) != self.p:
            raise DimensionMismatchError(
                f"Expected {self.p} gammas and betas, "
                f"got {len(gammas)} and {len(betas)}"
            )

        n = model.num_variables
        qc = QuantumCircuit(n)

        # Start in |+>^n
        for q in range(n):
            qc.h(q)

        for layer in range(self.p):
            gamma = float(gammas[layer])
            beta = float(betas[layer])

            # Cost unitary e^{-i gamma H_C}
            for i in range(n):
                if model.h[i] != 0.0:
                    qc.rz(2.0 * gamma * model.h[i], i)

            for i in range(n):
                for j in range(i + 1, n):
                    if model.J[i, j] != 0.0:
                        qc.rzz(2.0 * gamma * model.J[i, j], i, j)

            # Mixer e^{-i beta sum X}
            for q in range(n):
                qc.rx(2.0 * beta, q)

        return qc
