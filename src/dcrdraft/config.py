"""
Configuration management using pydantic-settings.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from dcrdraft.address import NetworkType
from dcrdraft.constants import (
    CHANGE_OUTPUT_SIZE,
    DEFAULT_FEE_RATE,
    DUST_RELAY_SIZE,
    SIG_SCRIPT_OVERHEAD,
)


class FeePolicy(BaseModel):
    """Fee policy for a build. Fixed for the whole run."""

    fee_rate_per_kb: int = Field(
        default=DEFAULT_FEE_RATE, ge=0, description="Fee rate in atoms per kilobyte"
    )
    per_input_sig_overhead: int = Field(
        default=SIG_SCRIPT_OVERHEAD,
        ge=0,
        description="Bytes added per input for the not yet present signature script",
    )
    change_output_size: int = Field(
        default=CHANGE_OUTPUT_SIZE, ge=0, description="Serialized size of a change output"
    )
    dust_relay_size: int = Field(
        default=DUST_RELAY_SIZE, ge=0, description="Output size the dust limit is priced at"
    )

    model_config = {"frozen": True}

    def fee_for_size(self, size: int) -> int:
        """Fee in atoms for a transaction of the given size, truncated."""
        return size * self.fee_rate_per_kb // 1000

    @property
    def dust_limit(self) -> int:
        return self.fee_for_size(self.dust_relay_size)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="DCRDRAFT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    network: NetworkType = NetworkType.MAINNET

    wallet_rpc_url: str = "https://127.0.0.1:9110"
    rpc_user: str = ""
    rpc_password: str = ""
    rpc_cert: Path | None = None
    rpc_timeout: float = Field(default=30.0, gt=0)

    fee_rate_per_kb: int = Field(default=DEFAULT_FEE_RATE, ge=0)

    log_level: str = "INFO"

    def fee_policy(self) -> FeePolicy:
        return FeePolicy(fee_rate_per_kb=self.fee_rate_per_kb)


def get_settings() -> Settings:
    return Settings()
