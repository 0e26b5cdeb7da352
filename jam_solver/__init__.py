"""JAM solver - Bebop order adapter."""

from jam_solver.adapter import OrderAdapter, SettlementPlan
from jam_solver.config import DEFAULT_ADAPTER_CONFIG, AdapterConfig
from jam_solver.errors import AdapterError, InvariantViolation, SigningFailure, UnsupportedToken

__version__ = "0.1.0"
__all__ = [
    "OrderAdapter",
    "SettlementPlan",
    "AdapterConfig",
    "DEFAULT_ADAPTER_CONFIG",
    "AdapterError",
    "InvariantViolation",
    "SigningFailure",
    "UnsupportedToken",
    "__version__",
]
