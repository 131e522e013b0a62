from .cost_model import CostModel
from .simulator import QAOASimulator
from .optimizer import OptimizerOptions, ParameterOptimizer
from .schedule import Schedule, ScheduleBuilder
from .mean_field import MeanFieldEvolver, MeanFieldTrajectory
from .circuit_builder import QAOACircuitBuilder
from .result import OptimizationResult, OptimizationStatus, SimulationResult
from .errors import (
    DimensionMismatchError,
    InvalidArgumentError,
    InvalidEdgeError,
    NumericalInstabilityError,
    QAOAError,
    ResourceExhaustedError,
)

__all__ = [
    "CostModel",
    "QAOASimulator",
    "OptimizerOptions",
    "ParameterOptimizer",
    "Schedule",
    "ScheduleBuilder",
    "MeanFieldEvolver",
    "MeanFieldTrajectory",
    "QAOACircuitBuilder",
    "OptimizationResult",
    "OptimizationStatus",
    "SimulationResult",
    "DimensionMismatchError",
    "InvalidArgumentError",
    "InvalidEdgeError",
    "NumericalInstabilityError",
    "QAOAError",
    "ResourceExhaustedError",
]
