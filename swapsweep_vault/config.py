"""
Configuration settings for the SwapSweep vault

Loads environment variables and provides default vault configuration.
"""
import logging
import os

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Settings:
    """Vault settings"""

    # Time-lock between update_manager_params and activation (seconds)
    TIMELOCK_DELAY: int = int(os.getenv("SWAPSWEEP_TIMELOCK_DELAY", 300))

    # Default manager parameters
    REBALANCE_BPS: int = int(os.getenv("SWAPSWEEP_REBALANCE_BPS", 200))
    MANAGER_FEE_BPS: int = int(os.getenv("SWAPSWEEP_MANAGER_FEE_BPS", 0))
    SLIPPAGE_BPS: int = int(os.getenv("SWAPSWEEP_SLIPPAGE_BPS", 500))
    SLIPPAGE_INTERVAL: int = int(os.getenv("SWAPSWEEP_SLIPPAGE_INTERVAL", 300))
    FEE_RECIPIENT: str = os.getenv("SWAPSWEEP_FEE_RECIPIENT", "")

    # Recenter range width: half-width = multiplier * sigma_daily * sqrt(horizon)
    SIGMA_MULTIPLIER: float = float(os.getenv("SWAPSWEEP_SIGMA_MULTIPLIER", 2.0))
    HORIZON_DAYS: float = float(os.getenv("SWAPSWEEP_HORIZON_DAYS", 1.0))

    # Logging
    LOG_LEVEL: str = os.getenv("SWAPSWEEP_LOG_LEVEL", "INFO")

    def default_params(self) -> dict:
        """Constructor-time manager parameters"""
        return {
            "rebalance_bps": self.REBALANCE_BPS,
            "fee_recipient": self.FEE_RECIPIENT or None,
            "manager_fee_bps": self.MANAGER_FEE_BPS,
            "slippage_bps": self.SLIPPAGE_BPS,
            "slippage_interval": self.SLIPPAGE_INTERVAL,
        }


# Create global settings instance
settings = Settings()


def configure_logging(level: str = None) -> None:
    """Configure root logging for scripts embedding the vault"""
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format="%(asctime)s [%(name)s] %(levelname)s %(message)s",
    )
