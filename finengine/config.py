"""Engine configuration management using Pydantic Settings."""

import logging
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from finengine.models.amortization import SIMULATION_HORIZON_MONTHS, AmortizationConfig
from finengine.models.compound_growth import GrowthConfig
from finengine.models.liquidity import (
    DEFAULT_SAFE_LIMIT_PERCENTAGE,
    DUE_WINDOW_DAYS,
    TIGHT_FLOOR,
    TIGHT_RATIO,
    UTILIZATION_ALERT_RATIO,
    LiquidityConfig,
)
from finengine.models.numeric_safety import OVERFLOW_CEILING


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Application Environment
    app_env: str = Field(default="development", alias="APP_ENV")

    # Logging Configuration
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Display currency, passed through to results untouched
    currency: str = Field(default="INR", alias="CURRENCY")

    # Liquidity thresholds
    due_window_days: int = Field(default=DUE_WINDOW_DAYS, alias="DUE_WINDOW_DAYS")
    default_safe_limit_percentage: float = Field(
        default=DEFAULT_SAFE_LIMIT_PERCENTAGE, alias="DEFAULT_SAFE_LIMIT_PERCENTAGE"
    )
    tight_ratio: float = Field(default=TIGHT_RATIO, alias="TIGHT_RATIO")
    tight_floor: float = Field(default=TIGHT_FLOOR, alias="TIGHT_FLOOR")
    utilization_alert_ratio: float = Field(
        default=UTILIZATION_ALERT_RATIO, alias="UTILIZATION_ALERT_RATIO"
    )

    # Simulation bounds
    simulation_horizon_months: int = Field(
        default=SIMULATION_HORIZON_MONTHS, alias="SIMULATION_HORIZON_MONTHS"
    )
    overflow_ceiling: float = Field(default=OVERFLOW_CEILING, alias="OVERFLOW_CEILING")

    @field_validator("app_env")
    @classmethod
    def validate_app_env(cls, v):
        """Validate application environment."""
        allowed_envs = {"development", "testing", "production"}
        if v not in allowed_envs:
            raise ValueError(f"APP_ENV must be one of {allowed_envs}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        allowed_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed_levels:
            raise ValueError(f"LOG_LEVEL must be one of {allowed_levels}")
        return v.upper()

    @field_validator("currency")
    @classmethod
    def validate_currency(cls, v):
        """Validate currency code."""
        if len(v) != 3 or not v.isalpha():
            raise ValueError("CURRENCY must be a 3-letter code")
        return v.upper()

    @field_validator("due_window_days")
    @classmethod
    def validate_due_window(cls, v):
        """Validate due window length."""
        if v < 0:
            raise ValueError("DUE_WINDOW_DAYS cannot be negative")
        return v

    @field_validator("simulation_horizon_months")
    @classmethod
    def validate_horizon(cls, v):
        """Validate simulation horizon."""
        if not 1 <= v <= 1200:
            raise ValueError("SIMULATION_HORIZON_MONTHS must be between 1 and 1200")
        return v

    @field_validator("default_safe_limit_percentage")
    @classmethod
    def validate_safe_limit(cls, v):
        """Validate default card safety percentage."""
        if not 0 <= v <= 100:
            raise ValueError("DEFAULT_SAFE_LIMIT_PERCENTAGE must be between 0 and 100")
        return v

    @field_validator("tight_ratio")
    @classmethod
    def validate_tight_ratio(cls, v):
        """Validate TIGHT status ratio."""
        if not 0 <= v <= 1:
            raise ValueError("TIGHT_RATIO must be between 0 and 1")
        return v

    @field_validator("tight_floor", "utilization_alert_ratio")
    @classmethod
    def validate_non_negative(cls, v):
        """Validate non-negative thresholds."""
        if v < 0:
            raise ValueError("Thresholds cannot be negative")
        return v

    @field_validator("overflow_ceiling")
    @classmethod
    def validate_overflow_ceiling(cls, v):
        """Validate overflow ceiling."""
        if v <= 0:
            raise ValueError("OVERFLOW_CEILING must be positive")
        return v

    def amortization_config(self) -> AmortizationConfig:
        """Build the amortization simulator configuration."""
        return AmortizationConfig(horizon_months=self.simulation_horizon_months)

    def growth_config(self) -> GrowthConfig:
        """Build the compound growth simulator configuration."""
        return GrowthConfig(overflow_ceiling=self.overflow_ceiling)

    def liquidity_config(self) -> LiquidityConfig:
        """Build the liquidity decision engine configuration."""
        return LiquidityConfig(
            due_window_days=self.due_window_days,
            default_safe_limit_percentage=self.default_safe_limit_percentage,
            tight_ratio=self.tight_ratio,
            tight_floor=self.tight_floor,
            utilization_alert_ratio=self.utilization_alert_ratio,
        )


def get_settings(env_file: Optional[str] = None) -> Settings:
    """Get settings instance."""
    if env_file is not None:
        return Settings(_env_file=env_file)
    return Settings()


# Global settings instance - created lazily on first use
_settings: Optional[Settings] = None


def get_global_settings() -> Settings:
    """Get or create global settings instance."""
    global _settings
    if _settings is None:
        _settings = get_settings()
    return _settings


def reset_global_settings() -> None:
    """Reset global settings instance (useful for testing)."""
    global _settings
    _settings = None


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Apply the configured log level to the ``finengine`` logger hierarchy."""
    settings = settings or get_global_settings()
    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("finengine").setLevel(settings.log_level)
