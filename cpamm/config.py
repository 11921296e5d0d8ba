"""Engine configuration."""

import os
from dataclasses import dataclass

from cpamm.constants import DEFAULT_CUSTODY_ADDRESS, PRICE_SCALE
from cpamm.models.types import normalize_address


@dataclass(frozen=True)
class EngineConfig:
    """Configuration for an AMMEngine.

    The swap fee is deliberately absent: it is fixed at 0.3% for every pool.

    Attributes:
        custody_address: Ledger identity that holds pooled assets. Deposits are
            pulled into it and withdrawals/swap outputs are paid from it.
        price_scale: Fixed-point scale for get_price (default: 1e18)
    """

    custody_address: str = DEFAULT_CUSTODY_ADDRESS
    price_scale: int = PRICE_SCALE

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """Build a config from environment variables.

        - CPAMM_CUSTODY_ADDRESS: custody identity (default: DEFAULT_CUSTODY_ADDRESS)
        """
        custody = os.environ.get("CPAMM_CUSTODY_ADDRESS", DEFAULT_CUSTODY_ADDRESS)
        return cls(custody_address=normalize_address(custody, validate=True))


# Default configuration instance
DEFAULT_ENGINE_CONFIG = EngineConfig()
