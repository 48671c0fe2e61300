"""
Configuration for the payments engine.

Values come from the environment with the PAYMENTS_ prefix, e.g.
PAYMENTS_LOG_LEVEL=INFO.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class PaymentsSettings(BaseSettings):
    """Payments engine configuration"""

    model_config = SettingsConfigDict(env_prefix="PAYMENTS_")

    # Logging configuration
    log_level: str = "WARNING"
    log_format: str = "%(levelname)s: %(message)s"

    # Print the processed/rejected/malformed summary to stderr after a run
    report_stats: bool = True


def get_settings() -> PaymentsSettings:
    return PaymentsSettings()
