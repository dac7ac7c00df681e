"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from decimal import Decimal
from pydantic_settings import BaseSettings
from typing import Optional


class BankXConfig(BaseSettings):
    """BankX ledger core configuration"""

    # Storage configuration
    database_url: str = "memory://"  # or sqlite:///bankx.db

    # Logging configuration
    log_level: str = "INFO"
    log_format: str = "json"  # json or text
    log_file: Optional[str] = None  # If None, logs to stderr

    # Business rules configuration (Decimal strings, never floats)
    onboarding_bonus: str = "500.00"
    transaction_fee_rate: str = "0.0005"
    interest_rate: str = "0.005"
    allow_zero_amount: bool = False

    # Concurrency configuration
    lock_timeout_seconds: float = 5.0

    class Config:
        env_prefix = "BANKX_"
        env_file = ".env"
        case_sensitive = False

    @property
    def onboarding_bonus_decimal(self) -> Decimal:
        return Decimal(self.onboarding_bonus)

    @property
    def fee_rate_decimal(self) -> Decimal:
        return Decimal(self.transaction_fee_rate)

    @property
    def interest_rate_decimal(self) -> Decimal:
        return Decimal(self.interest_rate)


# Global configuration instance
config = BankXConfig()


def get_config() -> BankXConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> BankXConfig:
    """Reload configuration from environment"""
    global config
    config = BankXConfig()
    return config
