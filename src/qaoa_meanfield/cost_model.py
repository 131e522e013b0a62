from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Tuple

import networkx as nx
import numpy as np

from .errors import DimensionMismatchError, InvalidArgumentError, InvalidEdgeError


@dataclass(frozen=True, eq=False)
class CostModel:
    """
    Ising-type cost Hamiltonian over N binary variables:

        C(x) = sum_i h_i z_i + sum_{i<j} J_ij z_i z_j

    with z_i = 1 - 2 x_i, i.e. x_i = 0 maps to spin +1.

    Attributes
    ----------
    num_variables : int
        Number of binary variables N (N >= 1).
    h : np.ndarray
        Linear coefficients, shape (N,).
    J : np.ndarray
        Symmetric coupling matrix with zero diagonal, shape (N, N).

    Both arrays are copied and made read-only, so a model can be shared
    freely between simulators, evolvers and threads.
    """

    num_variables: int
    h: np.ndarray
    J: np.ndarray

    def __post_init__(self) -> None:
        n = int(self.num_variables)
        if n < 1:
            raise InvalidArgumentError(f"num_variables must be >= 1, got {n}")

        h = np.array(self.h, dtype=float).reshape(-1)
        J = np.array(self.J, dtype=float)

        if h.shape != (n,):
            raise DimensionMismatchError(
                f"Expected h of length {n}, got shape {h.shape}"
            )
        if J.shape != (n, n):
            raise DimensionMismatchError(
                f"Expected J of shape ({n}, {n}), got {J.shape}"
            )
        if not (np.all(np.isfinite(h)) and np.all(np.isfinite(J))):
            raise InvalidArgumentError("h and J must be finite")
        if np.any(np.diag(J) != 0.0):
            raise InvalidArgumentError("J must have a zero diagonal")
        if not np.array_equal(J, J.T):
            raise InvalidArgumentError("J must be symmetric")

        h.setflags(write=False)
        J.setflags(write=False)

        # frozen dataclass: bypass __setattr__ for the normalized values
        object.__setattr__(self, "num_variables", n)
        object.__setattr__(self, "h", h)
        object.__setattr__(self, "J", J)

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------
    @classmethod
    def from_maxcut_edges(
        cls,
        num_variables: int,
        edges: Iterable[Tuple[int, int]],
        weights: Optional[Sequence[float]] = None,
    ) -> "CostModel":
        """
        Build the MaxCut cost model of a graph.

        h = 0 and J_ij = J_ji = -w_ij / 2 for every edge, so that

            C(x) = cut(x) - W / 2

        where W is the total edge weight. Maximizing C maximizes the cut.

        Parameters
        ----------
        num_variables : int
            Number of vertices N.
        edges : iterable of (i, j)
            Undirected edges. Repeated edges accumulate their weights.
        weights : optional sequence of float
            One weight per edge; defaults to 1 for every edge.
        """
        n = int(num_variables)
        if n < 1:
            raise InvalidArgumentError(f"num_variables must be >= 1, got {n}")

        edges = list(edges)
        if weights is None:
            weights = [1.0] * len(edges)
        elif len(weights) != len(edges):
            raise DimensionMismatchError(
                f"Got {len(weights)} weights for {len(edges)} edges"
            )

        J = np.zeros((n, n), dtype=float)
        for (i, j), w in zip(edges, weights):
            i, j = int(i), int(j)
            if not (0 <= i < n and 0 <= j < n):
                raise InvalidEdgeError(
                    f"Edge ({i}, {j}) has an endpoint outside [0, {n})"
                )
            if i == j:
                raise InvalidEdgeError(f"Self loop on vertex {i} is not allowed")
            J[i, j] -= 0.5 * w
            J[j, i] -= 0.5 * w

        return cls(num_variables=n, h=np.zeros(n), J=J)

    @classmethod
    def from_networkx(cls, graph: nx.Graph) -> "CostModel":
        """
        MaxCut cost model of a networkx graph.

        Nodes are relabelled 0..N-1 in sorted order; the ``weight`` edge
        attribute is used when present (default 1).
        """
        nodes = sorted(graph.nodes())
        index = {node: k for k, node in enumerate(nodes)}

        edges = []
        weights = []
        for u, v, data in graph.edges(data=True):
            edges.append((index[u], index[v]))
            weights.append(float(data.get("weight", 1.0)))

        return cls.from_maxcut_edges(len(nodes), edges, weights)

    @classmethod
    def from_qubo(
        cls, Q: np.ndarray, constant: float = 0.0
    ) -> Tuple["CostModel", float]:
        """
        Convert a QUBO  x^T Q x + constant  (x_i in {0, 1}) to Ising form.

        Returns
        -------
        model : CostModel
        offset : float
            Additive constant such that
            ``x^T Q x + constant == model.evaluate(x) + offset``.
        """
        Q = np.asarray(Q, dtype=float)
        if Q.ndim != 2 or Q.shape[0] != Q.shape[1]:
            raise DimensionMismatchError("Q must be a square 2D matrix")

        # x_i^2 = x_i, so only the symmetric part matters
        S = 0.5 * (Q + Q.T)
        diag = np.diag(S).copy()
        off = S - np.diag(diag)

        # x_i = (1 - z_i)/2 and x_i x_j = (1 - z_i - z_j + z_i z_j)/4
        h = -0.5 * diag - 0.5 * off.sum(axis=1)
        J = 0.5 * off
        offset = float(constant) + 0.5 * diag.sum() + 0.25 * off.sum()

        return cls(num_variables=Q.shape[0], h=h, J=J), offset

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------
    def evaluate(self, bitstring: Sequence[int] | str) -> float:
        """
        Evaluate C(x) for one assignment.

        Parameters
        ----------
        bitstring : Sequence[int] | str
            Either a string of '0'/'1' characters or a sequence of 0/1
            integers. Position i is variable i.
        """
        x = self._bitstring_to_array(bitstring)

        if len(x) != self.num_variables:
            raise DimensionMismatchError(
                f"Expected bitstring of length {self.num_variables}, got {len(x)}"
            )

        z = 1.0 - 2.0 * x
        return float(self.h @ z + 0.5 * z @ self.J @ z)

    def energies(self) -> np.ndarray:
        """
        Costs of all 2^N basis states.

        Entry ``k`` is ``evaluate(index_to_bits(k, N))``: bit i of the index
        is variable i.
        """
        n = self.num_variables
        indices = np.arange(2**n, dtype=np.int64)

        def spin(i: int) -> np.ndarray:
            return 1.0 - 2.0 * ((indices >> i) & 1)

        costs = np.zeros(2**n, dtype=float)
        for i in range(n):
            z_i = spin(i)
            if self.h[i] != 0.0:
                costs += self.h[i] * z_i
            for j in np.nonzero(self.J[i, i + 1 :])[0] + i + 1:
                costs += self.J[i, j] * z_i * spin(int(j))

        return costs

    def best_assignment(self, maximize: bool = False) -> Tuple[np.ndarray, float]:
        """
        Exhaustive search over all 2^N assignments.

        Returns the optimal bit array and its cost.
        """
        costs = self.energies()
        idx = int(np.argmax(costs) if maximize else np.argmin(costs))
        return index_to_bits(idx, self.num_variables), float(costs[idx])

    @property
    def maxcut_offset(self) -> float:
        """Half the total edge weight of a MaxCut-built model."""
        return float(-self.J[np.triu_indices(self.num_variables, k=1)].sum())

    def cut_value(self, bitstring: Sequence[int] | str) -> float:
        """
        Cut weight of an assignment, for models built from MaxCut edges.
        """
        if np.any(self.h != 0.0):
            raise InvalidArgumentError(
                "cut_value is only defined for MaxCut models (h == 0)"
            )
        return self.evaluate(bitstring) + self.maxcut_offset

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _bitstring_to_array(bitstring: Sequence[int] | str) -> np.ndarray:
        """
        Convert a bitstring (str or sequence) into a NumPy array of integers.
        """
        if isinstance(bitstring, str):
            if any(b not in "01" for b in bitstring):
                raise InvalidArgumentError(
                    f"Bitstring {bitstring!r} must contain only '0' and '1'"
                )
            return np.array([int(b) for b in bitstring], dtype=int)
        else:
            raw = np.asarray(bitstring)
            if raw.ndim != 1:
                raise DimensionMismatchError(
                    f"Bitstring must be one-dimensional, got shape {raw.shape}"
                )
            # check before casting so 0.7 is not truncated to 0
            if not np.all(np.isin(raw, (0, 1))):
                raise InvalidArgumentError("Bitstring entries must be 0 or 1")
            return raw.astype(int)


def index_to_bits(index: int, num_variables: int) -> np.ndarray:
    """Bits of a basis-state index, bit i -> variable i."""
    return (int(index) >> np.arange(num_variables)) & 1


def bits_to_index(bits: Sequence[int]) -> int:
    """Inverse of :func:`index_to_bits`."""
    return int(sum(int(b) << i for i, b in enumerate(bits)))
