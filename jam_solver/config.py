"""Adapter configuration."""

import os
from dataclasses import dataclass

from jam_solver.constants import EXPIRY_HORIZON, NATIVE_TOKEN, NONCE_SPACE, SOLVER_EXCESS
from jam_solver.models.types import UINT256_MAX, is_valid_address, normalize_address


@dataclass(frozen=True)
class AdapterConfig:
    """Centralized configuration for building Bebop orders.

    Attributes:
        solver_excess: Amount added to each maker amount (default: 1000)
        expiry_horizon: Seconds from build time until the order expires (default: 1000)
        nonce_space: Upper bound (exclusive) for maker nonces (default: 2**64)
        native_token: Sentinel address JAM orders use for the native asset
    """

    solver_excess: int = SOLVER_EXCESS
    expiry_horizon: int = EXPIRY_HORIZON
    nonce_space: int = NONCE_SPACE
    native_token: str = NATIVE_TOKEN

    def __post_init__(self) -> None:
        if self.solver_excess < 0:
            raise ValueError(f"solver_excess cannot be negative: {self.solver_excess}")
        if self.expiry_horizon <= 0:
            raise ValueError(f"expiry_horizon must be positive: {self.expiry_horizon}")
        if self.nonce_space <= 1:
            raise ValueError(f"nonce_space must be greater than 1: {self.nonce_space}")
        if self.nonce_space > UINT256_MAX + 1:
            raise ValueError(f"nonce_space exceeds uint256: {self.nonce_space}")
        if not is_valid_address(self.native_token):
            raise ValueError(f"Invalid native token address: {self.native_token}")
        # frozen dataclass, so bypass __setattr__
        object.__setattr__(self, "native_token", normalize_address(self.native_token))

    @classmethod
    def from_env(cls) -> "AdapterConfig":
        """Build a config from environment variables, falling back to defaults.

        - JAM_SOLVER_EXCESS
        - JAM_EXPIRY_HORIZON
        - JAM_NONCE_SPACE
        """
        return cls(
            solver_excess=int(os.environ.get("JAM_SOLVER_EXCESS", SOLVER_EXCESS)),
            expiry_horizon=int(os.environ.get("JAM_EXPIRY_HORIZON", EXPIRY_HORIZON)),
            nonce_space=int(os.environ.get("JAM_NONCE_SPACE", NONCE_SPACE)),
        )


# Default configuration instance
DEFAULT_ADAPTER_CONFIG = AdapterConfig()
