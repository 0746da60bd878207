"""
Configuration

- MarketConfig: validated construction primitives of one market.
- Settings: process-wide defaults read from the environment
  (prefix STDMARKET_) or a .env file, used by the simulation runner.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from stdmarket.core.fees import FEE_RANGE
from stdmarket.errors import InvalidConfigError


class MarketConfig(BaseModel):
    """Primitive market parameters, immutable after construction."""

    model_config = ConfigDict(frozen=True, strict=True)

    creator: str = Field(..., min_length=1)
    fee: int = Field(0, ge=0, lt=FEE_RANGE)

    @classmethod
    def build(cls, creator: str, fee: int) -> "MarketConfig":
        """
        Validate parameters, mapping failures onto the market error taxonomy.

        Raises:
            InvalidConfigError: If any parameter is out of range
        """
        try:
            return cls(creator=creator, fee=fee)
        except ValidationError as exc:
            raise InvalidConfigError(
                "Invalid market configuration",
                detail=str(exc),
            ) from exc


class Settings(BaseSettings):
    """Process-wide defaults."""

    model_config = SettingsConfigDict(
        env_prefix="STDMARKET_",
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Logging ──────────────────────────────────────────────────────
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_json: bool = False

    # ── Market defaults ──────────────────────────────────────────────
    default_fee: int = Field(20_000, ge=0, lt=FEE_RANGE)
    default_funding: int = Field(10_000, ge=0)

    # ── Simulation ───────────────────────────────────────────────────
    simulation_trades: int = Field(200, ge=0)
    simulation_seed: Optional[int] = None


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance."""
    return Settings()
