from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Dict, List, Literal, Optional, Sequence, Tuple

import numpy as np
from scipy.optimize import minimize

from .cost_model import CostModel
from .errors import DimensionMismatchError, InvalidArgumentError
from .result import OptimizationResult, OptimizationStatus
from .simulator import QAOASimulator


logger = logging.getLogger(__name__)

OptimizerMethod = Literal["gradient", "derivative_free"]

# Minimizer output: (best params, best value, status, iterations, history)
StrategyOutcome = Tuple[np.ndarray, float, OptimizationStatus, int, List[float]]


@dataclass
class OptimizerOptions:
    """
    Numeric settings for ParameterOptimizer.

    Attributes
    ----------
    method : {"gradient", "derivative_free"}
        Gradient descent on the exact QAOA gradient, or a scipy simplex
        search that only evaluates the expected cost.
    learning_rate : float
        Step size of the gradient method.
    max_iterations : int
        Iteration cap; hitting it yields status NOT_CONVERGED.
    tolerance : float
        Stop once successive objective values differ by less than this.
    maximize : bool
        Maximize the expected cost instead of minimizing it (MaxCut models
        built by ``CostModel.from_maxcut_edges`` are maximized).
    scipy_method : str
        scipy.optimize method for ``derivative_free`` ("Nelder-Mead" or "COBYLA").
    seed : Optional[int]
        Seed for random initial parameters in [0, pi).
    """

    method: OptimizerMethod = "gradient"
    learning_rate: float = 0.05
    max_iterations: int = 500
    tolerance: float = 1e-8
    maximize: bool = False
    scipy_method: str = "Nelder-Mead"
    seed: Optional[int] = None

    def __post_init__(self) -> None:
        if self.method not in ("gradient", "derivative_free"):
            raise InvalidArgumentError(f"Unsupported method: {self.method}")
        if self.scipy_method not in ("Nelder-Mead", "COBYLA"):
            raise InvalidArgumentError(
                f"Unsupported scipy_method: {self.scipy_method}"
            )
        if not self.learning_rate > 0.0:
            raise InvalidArgumentError("learning_rate must be positive")
        if self.max_iterations < 1:
            raise InvalidArgumentError("max_iterations must be at least 1")
        if not self.tolerance > 0.0:
            raise InvalidArgumentError("tolerance must be positive")


# ----------------------------------------------------------------------
# Objective
# ----------------------------------------------------------------------
class Objective(ABC):
    """
    Black-box function handed to an optimization strategy. Always minimized.
    """

    @abstractmethod
    def evaluate(self, params: np.ndarray) -> float:
        ...

    def gradient(self, params: np.ndarray) -> np.ndarray:
        raise NotImplementedError(f"{type(self).__name__} has no gradient")

    def value_and_gradient(self, params: np.ndarray) -> Tuple[float, np.ndarray]:
        return self.evaluate(params), self.gradient(params)


class QAOAObjective(Objective):
    """
    Expected QAOA cost of a model as a function of [gammas..., betas...].

    The cost diagonal is computed once here and reused by every evaluation.
    """

    def __init__(
        self,
        simulator: QAOASimulator,
        model: CostModel,
        p: int,
        maximize: bool = False,
    ) -> None:
        self.simulator = simulator
        self.model = model
        self.p = p
        self.sign = -1.0 if maximize else 1.0
        self._costs = simulator.cost_diagonal(model)

    def evaluate(self, params: np.ndarray) -> float:
        gammas, betas = self._split(params)
        state = self.simulator.evolve_diagonal(
            self._costs, self.model.num_variables, gammas, betas
        )
        return self.sign * float((np.abs(state) ** 2) @ self._costs)

    def gradient(self, params: np.ndarray) -> np.ndarray:
        return self.value_and_gradient(params)[1]

    def value_and_gradient(self, params: np.ndarray) -> Tuple[float, np.ndarray]:
        gammas, betas = self._split(params)
        value, grad = self.simulator.value_and_gradient_diagonal(
            self._costs, self.model.num_variables, gammas, betas
        )
        return self.sign * value, self.sign * grad

    def _split(self, params: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        params = np.asarray(params, dtype=float)
        return params[: self.p], params[self.p :]


# ----------------------------------------------------------------------
# Strategies
# ----------------------------------------------------------------------
class OptimizationStrategy(ABC):
    """A local minimizer that can be swapped behind ParameterOptimizer."""

    @abstractmethod
    def minimize(
        self,
        objective: Objective,
        x0: np.ndarray,
        options: OptimizerOptions,
    ) -> StrategyOutcome:
        ...


class GradientDescent(OptimizationStrategy):
    """Fixed step-size gradient descent."""

    def minimize(
        self,
        objective: Objective,
        x0: np.ndarray,
        options: OptimizerOptions,
    ) -> StrategyOutcome:
        x = np.array(x0, dtype=float)
        try:
            value, grad = objective.value_and_gradient(x)
        except NotImplementedError as exc:
            raise InvalidArgumentError(
                "The gradient method needs an objective with a gradient"
            ) from exc

        history = [value]
        best_x, best_value = x.copy(), value
        status = OptimizationStatus.NOT_CONVERGED
        iterations = 0

        for iterations in range(1, options.max_iterations + 1):
            x = x - options.learning_rate * grad
            new_value, grad = objective.value_and_gradient(x)
            history.append(new_value)

            if new_value < best_value:
                best_x, best_value = x.copy(), new_value

            if abs(new_value - value) < options.tolerance:
                status = OptimizationStatus.CONVERGED
                break
            value = new_value

        return best_x, best_value, status, iterations, history


class DerivativeFree(OptimizationStrategy):
    """
    scipy.optimize local search using objective values only.

    The history holds the starting value and then the best value after each
    scipy iteration, so it lines up with GradientDescent's history.
    """

    def minimize(
        self,
        objective: Objective,
        x0: np.ndarray,
        options: OptimizerOptions,
    ) -> StrategyOutcome:
        seen: Dict[bytes, float] = {}

        def fun(theta: np.ndarray) -> float:
            value = objective.evaluate(theta)
            seen[np.asarray(theta, dtype=float).tobytes()] = value
            return value

        def record(xk: np.ndarray) -> None:
            value = seen.get(np.asarray(xk, dtype=float).tobytes())
            if value is None:
                value = objective.evaluate(xk)
            history.append(value)

        x0 = np.asarray(x0, dtype=float)
        history: List[float] = [fun(x0)]

        if options.scipy_method == "Nelder-Mead":
            scipy_options = {
                "maxiter": options.max_iterations,
                "xatol": options.tolerance,
                "fatol": options.tolerance,
                "disp": False,
            }
            opt_result = minimize(
                fun, x0, method="Nelder-Mead", callback=record, options=scipy_options
            )
        else:
            opt_result = minimize(
                fun,
                x0,
                method="COBYLA",
                tol=options.tolerance,
                callback=record,
                options={"maxiter": options.max_iterations, "disp": False},
            )

        status = (
            OptimizationStatus.CONVERGED
            if opt_result.success
            else OptimizationStatus.NOT_CONVERGED
        )
        iterations = int(getattr(opt_result, "nit", opt_result.nfev))
        return (
            np.asarray(opt_result.x, dtype=float),
            float(opt_result.fun),
            status,
            iterations,
            history,
        )


_STRATEGIES = {
    "gradient": GradientDescent,
    "derivative_free": DerivativeFree,
}


# ----------------------------------------------------------------------
# Optimizer
# ----------------------------------------------------------------------
class ParameterOptimizer:
    """
    Tune the 2p QAOA angles of a CostModel.

    Each call is independent: the optimizer keeps no state between runs, so
    several runs may share one instance from different threads.
    """

    def __init__(
        self,
        simulator: Optional[QAOASimulator] = None,
        strategy: Optional[OptimizationStrategy] = None,
    ) -> None:
        """
        Parameters
        ----------
        simulator : Optional[QAOASimulator]
            Simulator used for every evaluation. A default one is built if
            omitted.
        strategy : Optional[OptimizationStrategy]
            Overrides ``options.method`` with a custom minimizer.
        """
        self.simulator = simulator or QAOASimulator()
        self.strategy = strategy

    def optimize(
        self,
        model: CostModel,
        p: int,
        initial_params: Optional[Sequence[float]] = None,
        options: Optional[OptimizerOptions] = None,
    ) -> OptimizationResult:
        """
        Optimize the expected cost of a depth-p circuit.

        Returns an OptimizationResult with the final expected cost, the
        final (gammas, betas), the output distribution at those angles and
        a CONVERGED / NOT_CONVERGED status. Hitting the iteration cap is not
        an error; the best point found is returned.
        """
        options = options or OptimizerOptions()
        if p < 1:
            raise InvalidArgumentError("p (number of QAOA layers) must be positive")

        if initial_params is None:
            rng = np.random.default_rng(options.seed)
            x0 = rng.uniform(0.0, np.pi, size=2 * p)
        else:
            x0 = np.asarray(initial_params, dtype=float).reshape(-1)
            if x0.size != 2 * p:
                raise DimensionMismatchError(
                    f"Expected parameter vector of size {2 * p}, got {x0.size}"
                )

        objective = QAOAObjective(self.simulator, model, p, options.maximize)
        strategy = self.strategy or _STRATEGIES[options.method]()

        logger.info(
            "Optimizing QAOA angles: N=%d p=%d strategy=%s",
            model.num_variables,
            p,
            type(strategy).__name__,
        )
        x, _, status, iterations, history = strategy.minimize(objective, x0, options)

        gammas, betas = x[:p].copy(), x[p:].copy()
        final = self.simulator.run(model, gammas, betas)

        if status is OptimizationStatus.NOT_CONVERGED:
            logger.warning(
                "QAOA optimization hit max_iterations=%d without converging; "
                "returning best point found (<C>=%.6f)",
                options.max_iterations,
                final.expected_cost,
            )
        else:
            logger.info(
                "QAOA optimization converged after %d iterations (<C>=%.6f)",
                iterations,
                final.expected_cost,
            )

        return OptimizationResult(
            final_cost=final.expected_cost,
            gammas=gammas,
            betas=betas,
            probabilities=final.probabilities,
            status=status,
            iterations=iterations,
            history=[objective.sign * v for v in history],
        )

    def optimize_multistart(
        self,
        model: CostModel,
        p: int,
        starts: int = 4,
        options: Optional[OptimizerOptions] = None,
        max_workers: Optional[int] = None,
    ) -> OptimizationResult:
        """
        Run independent optimizations from random initial angles on a
        thread pool and return the best one.
        """
        options = options or OptimizerOptions()
        if starts < 1:
            raise InvalidArgumentError("starts must be at least 1")
        if p < 1:
            raise InvalidArgumentError("p (number of QAOA layers) must be positive")

        rng = np.random.default_rng(options.seed)
        initial = [rng.uniform(0.0, np.pi, size=2 * p) for _ in range(starts)]

        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = [
                executor.submit(self.optimize, model, p, x0, options)
                for x0 in initial
            ]
            results = [f.result() for f in futures]

        pick = max if options.maximize else min
        best = pick(results, key=lambda r: r.final_cost)
        logger.info(
            "Best of %d starts: <C>=%.6f", starts, best.final_cost
        )
        return best
