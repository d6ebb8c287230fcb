"""Tests for engine configuration management."""

import logging
import os
import tempfile
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from finengine.config import (
    Settings,
    configure_logging,
    get_global_settings,
    get_settings,
    reset_global_settings,
)


class TestSettings:
    """Test cases for Settings class."""

    def test_defaults(self):
        """Test default thresholds."""
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=None)

            assert settings.app_env == "development"
            assert settings.log_level == "INFO"
            assert settings.currency == "INR"
            assert settings.due_window_days == 7
            assert settings.default_safe_limit_percentage == 30.0
            assert settings.tight_ratio == 0.10
            assert settings.tight_floor == 2000.0
            assert settings.utilization_alert_ratio == 0.70
            assert settings.simulation_horizon_months == 360
            assert settings.overflow_ceiling == 1e18

    def test_settings_loads_from_env_file(self):
        """Test that settings can load from a .env file."""
        with tempfile.NamedTemporaryFile(mode="w", suffix=".env", delete=False) as f:
            f.write("APP_ENV=testing\n")
            f.write("LOG_LEVEL=DEBUG\n")
            f.write("CURRENCY=usd\n")
            f.write("DUE_WINDOW_DAYS=14\n")
            f.write("TIGHT_FLOOR=500\n")
            temp_env_file = f.name

        try:
            with patch.dict(os.environ, {}, clear=True):
                settings = get_settings(temp_env_file)

                assert settings.app_env == "testing"
                assert settings.log_level == "DEBUG"
                assert settings.currency == "USD"
                assert settings.due_window_days == 14
                assert settings.tight_floor == 500
        finally:
            os.unlink(temp_env_file)

    def test_environment_overrides(self):
        """Test that environment variables are read."""
        with patch.dict(
            os.environ,
            {"SIMULATION_HORIZON_MONTHS": "120", "OVERFLOW_CEILING": "1e12"},
            clear=True,
        ):
            settings = Settings(_env_file=None)

            assert settings.simulation_horizon_months == 120
            assert settings.overflow_ceiling == 1e12

    def test_app_env_validation(self):
        """Test APP_ENV validation."""
        with patch.dict(os.environ, {"APP_ENV": "invalid-env"}, clear=True):
            with pytest.raises(ValidationError) as exc_info:
                Settings(_env_file=None)

            assert "APP_ENV must be one of" in str(exc_info.value)

    def test_log_level_validation(self):
        """Test LOG_LEVEL validation."""
        with patch.dict(os.environ, {"LOG_LEVEL": "LOUD"}, clear=True):
            with pytest.raises(ValidationError) as exc_info:
                Settings(_env_file=None)

            assert "LOG_LEVEL must be one of" in str(exc_info.value)

    def test_log_level_case_insensitive(self):
        """Test LOG_LEVEL is normalized to upper case."""
        with patch.dict(os.environ, {"LOG_LEVEL": "warning"}, clear=True):
            assert Settings(_env_file=None).log_level == "WARNING"

    def test_currency_validation(self):
        """Test CURRENCY validation."""
        with patch.dict(os.environ, {"CURRENCY": "RUPEES"}, clear=True):
            with pytest.raises(ValidationError) as exc_info:
                Settings(_env_file=None)

            assert "CURRENCY must be a 3-letter code" in str(exc_info.value)

    @pytest.mark.parametrize(
        "name, value, message",
        [
            ("DUE_WINDOW_DAYS", "-1", "DUE_WINDOW_DAYS cannot be negative"),
            ("SIMULATION_HORIZON_MONTHS", "0", "SIMULATION_HORIZON_MONTHS must be"),
            ("SIMULATION_HORIZON_MONTHS", "5000", "SIMULATION_HORIZON_MONTHS must be"),
            ("DEFAULT_SAFE_LIMIT_PERCENTAGE", "150", "DEFAULT_SAFE_LIMIT_PERCENTAGE"),
            ("TIGHT_RATIO", "1.5", "TIGHT_RATIO must be between 0 and 1"),
            ("TIGHT_FLOOR", "-10", "Thresholds cannot be negative"),
            ("UTILIZATION_ALERT_RATIO", "-0.1", "Thresholds cannot be negative"),
            ("OVERFLOW_CEILING", "0", "OVERFLOW_CEILING must be positive"),
        ],
    )
    def test_threshold_validation(self, name, value, message):
        """Test numeric threshold validation."""
        with patch.dict(os.environ, {name: value}, clear=True):
            with pytest.raises(ValidationError) as exc_info:
                Settings(_env_file=None)

            assert message in str(exc_info.value)

    def test_calculator_configs(self):
        """Test that settings feed the calculator configurations."""
        with patch.dict(
            os.environ,
            {
                "DUE_WINDOW_DAYS": "10",
                "TIGHT_RATIO": "0.2",
                "SIMULATION_HORIZON_MONTHS": "60",
                "OVERFLOW_CEILING": "1e9",
            },
            clear=True,
        ):
            settings = Settings(_env_file=None)

            assert settings.liquidity_config().due_window_days == 10
            assert settings.liquidity_config().tight_ratio == 0.2
            assert settings.amortization_config().horizon_months == 60
            assert settings.growth_config().overflow_ceiling == 1e9


class TestGlobalSettings:
    """Test cases for the lazily created global settings."""

    def test_global_settings_are_cached(self):
        """Test that the same instance is returned until reset."""
        with patch.dict(os.environ, {}, clear=True):
            first = get_global_settings()
            assert get_global_settings() is first

            reset_global_settings()
            assert get_global_settings() is not first

    def test_configure_logging(self):
        """Test that the log level is applied to the package logger."""
        with patch.dict(os.environ, {"LOG_LEVEL": "DEBUG"}, clear=True):
            configure_logging(Settings(_env_file=None))

            assert logging.getLogger("finengine").level == logging.DEBUG
            assert logging.getLogger("finengine.models.liquidity").isEnabledFor(
                logging.DEBUG
            )
