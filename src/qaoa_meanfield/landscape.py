from __future__ import annotations

from typing import Optional, Tuple

import numpy as np

from .cost_model import CostModel
from .simulator import QAOASimulator


def energy_landscape_p1(
    model: CostModel,
    gamma_range: Tuple[float, float] = (0.0, np.pi),
    beta_range: Tuple[float, float] = (0.0, np.pi),
    num_points: int = 40,
    simulator: Optional[QAOASimulator] = None,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Expected cost E(gamma, beta) of the p=1 circuit on a regular grid.

    Handy for picking starting angles before a local optimization.

    Returns
    -------
    G : np.ndarray
        2D array of gamma values (meshgrid).
    B : np.ndarray
        2D array of beta values (meshgrid).
    E : np.ndarray
        2D array of expected costs at each (gamma, beta).
    """
    simulator = simulator or QAOASimulator()

    gammas = np.linspace(gamma_range[0], gamma_range[1], num_points)
    betas = np.linspace(beta_range[0], beta_range[1], num_points)

    G, B = np.meshgrid(gammas, betas, indexing="ij")
    E = np.zeros_like(G, dtype=float)

    # the cost diagonal does not depend on the angles
    costs = simulator.cost_diagonal(model)
    n = model.num_variables
    for i in range(num_points):
        for j in range(num_points):
            state = simulator.evolve_diagonal(
                costs, n, np.array([G[i, j]]), np.array([B[i, j]])
            )
            E[i, j] = float((np.abs(state) ** 2) @ costs)

    return G, B, E
