"""
Tests for configuration and the error taxonomy.
"""

import pytest

from stdmarket.config import MarketConfig, Settings, get_settings
from stdmarket.errors import (
    InvalidConfigError,
    MarketError,
    SlippageExceededError,
    UnauthorizedError,
)


class TestMarketConfig:
    """Tests for MarketConfig."""

    def test_build(self):
        """Test valid parameters build a config."""
        config = MarketConfig.build(creator="creator", fee=20_000)
        assert config.creator == "creator"
        assert config.fee == 20_000

    def test_frozen(self):
        """Test a built config cannot be modified."""
        config = MarketConfig.build(creator="creator", fee=0)
        with pytest.raises(Exception):
            config.fee = 5

    @pytest.mark.parametrize("creator,fee", [
        ("", 0),
        ("creator", -1),
        ("creator", 1_000_000),
        ("creator", "100"),
        ("creator", 1.0),
        (None, 0),
    ])
    def test_invalid(self, creator, fee):
        """Test invalid parameters surface as InvalidConfigError with detail."""
        with pytest.raises(InvalidConfigError) as exc_info:
            MarketConfig.build(creator=creator, fee=fee)
        assert exc_info.value.detail


class TestSettings:
    """Tests for environment-driven settings."""

    def test_defaults(self, monkeypatch):
        """Test defaults when no environment is set."""
        monkeypatch.delenv("STDMARKET_DEFAULT_FEE", raising=False)
        settings = Settings(_env_file=None)
        assert settings.log_level == "INFO"
        assert settings.default_fee == 20_000
        assert settings.simulation_seed is None

    def test_env_override(self, monkeypatch):
        """Test STDMARKET_ variables override defaults and are cached."""
        monkeypatch.setenv("STDMARKET_DEFAULT_FEE", "5000")
        monkeypatch.setenv("STDMARKET_SIMULATION_SEED", "7")
        monkeypatch.setenv("STDMARKET_LOG_LEVEL", "DEBUG")
        get_settings.cache_clear()
        try:
            settings = get_settings()
            assert settings.default_fee == 5000
            assert settings.simulation_seed == 7
            assert settings.log_level == "DEBUG"
            assert get_settings() is settings
        finally:
            get_settings.cache_clear()

    def test_invalid_env(self, monkeypatch):
        """Test an out-of-range environment fee is rejected."""
        monkeypatch.setenv("STDMARKET_DEFAULT_FEE", "1000000")
        with pytest.raises(Exception):
            Settings(_env_file=None)


class TestErrors:
    """Tests for the error taxonomy."""

    def test_hierarchy(self):
        """Test every error derives from MarketError."""
        assert issubclass(SlippageExceededError, MarketError)
        assert issubclass(UnauthorizedError, MarketError)

    def test_to_dict(self):
        """Test errors serialize for structured logging."""
        exc = SlippageExceededError("too expensive", detail="gross=50 fee=1")
        assert exc.to_dict() == {
            "error_code": "SLIPPAGE_EXCEEDED",
            "message": "too expensive",
            "detail": "gross=50 fee=1",
        }

    def test_detail_optional(self):
        """Test detail defaults to None."""
        assert UnauthorizedError("nope").to_dict()["detail"] is None
