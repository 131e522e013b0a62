"""
Environment-driven defaults for qaoa_meanfield.

Values are read from ``QAOA_MEANFIELD_*`` environment variables or a local
``.env`` file. Per-call numeric options (learning rate, tolerance, ...) are
not configured here; they are passed explicitly as ``OptimizerOptions``.

Usage:
    >>> from qaoa_meanfield.config import SimulatorSettings
    >>> SimulatorSettings().max_qubits
    24
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SimulatorSettings(BaseSettings):
    """
    Limits for dense state-vector simulation.

    Environment Variables:
        QAOA_MEANFIELD_MAX_QUBITS: largest N accepted by QAOASimulator
            (default: 24, i.e. 2^24 complex amplitudes = 256 MiB)
    """

    # Ceiling on N; the state vector holds 2^N complex128 amplitudes
    max_qubits: int = Field(
        default=24,
        ge=1,
        le=30,
        description="Maximum number of qubits for dense statevector simulation",
    )

    model_config = SettingsConfigDict(
        env_prefix="QAOA_MEANFIELD_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )
