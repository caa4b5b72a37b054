"""Runtime settings for holder distributions.

Every tunable of the distribution engine lives here with its canonical
default. Values can be overridden from the environment (or a ``.env`` file
picked up by python-dotenv) without touching engine code.
"""

from __future__ import annotations

import os
from typing import Any

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .mechanisms.svm.constants import (
    DEFAULT_CONFIRMATION_TIMEOUT_SECONDS,
    DEFAULT_POLL_INTERVAL_SECONDS,
    SOLANA_MAINNET_CAIP2,
)
from .mechanisms.svm.distribution.constants import (
    DEFAULT_DISTRIBUTION_PERCENTAGE,
    DUST_THRESHOLD_LAMPORTS,
    FAILURE_DELAY_SECONDS,
    FEE_RESERVE_PER_BATCH_LAMPORTS,
    LARGE_FANOUT_THRESHOLD,
    MANUAL_FEE_RESERVE_LAMPORTS,
    MAX_BATCH_SIZE,
    SUCCESS_DELAY_SECONDS,
)
from .mechanisms.svm.distribution.submitter import RetryPolicy
from .mechanisms.svm.utils import get_rpc_url, normalize_network

# env var -> settings field
ENV_VARS: dict[str, str] = {
    "SOLANA_NETWORK": "network",
    "SOLANA_RPC_URL": "rpc_url",
    "HOLDERDROP_MAX_BATCH_SIZE": "max_batch_size",
    "HOLDERDROP_DUST_THRESHOLD": "dust_threshold_lamports",
    "HOLDERDROP_FEE_RESERVE_PER_BATCH": "fee_reserve_per_batch_lamports",
    "HOLDERDROP_MANUAL_FEE_RESERVE": "manual_fee_reserve_lamports",
    "HOLDERDROP_DISTRIBUTION_PERCENTAGE": "default_distribution_percentage",
    "HOLDERDROP_LARGE_FANOUT_THRESHOLD": "large_fanout_threshold",
    "HOLDERDROP_CONFIRMATION_TIMEOUT": "confirmation_timeout_seconds",
    "HOLDERDROP_POLL_INTERVAL": "poll_interval_seconds",
    "HOLDERDROP_SUCCESS_DELAY": "success_delay_seconds",
    "HOLDERDROP_FAILURE_DELAY": "failure_delay_seconds",
    "HOLDERDROP_RETRY_MAX_ATTEMPTS": "retry_max_attempts",
    "HOLDERDROP_RETRY_BASE_SECONDS": "retry_base_seconds",
    "HOLDERDROP_RETRY_FACTOR": "retry_factor",
    "HOLDERDROP_RETRY_MAX_SECONDS": "retry_max_seconds",
    "HOLDERDROP_LOG_LEVEL": "log_level",
}


class Settings(BaseModel):
    """Validated runtime settings."""

    model_config = ConfigDict(frozen=True)

    network: str = SOLANA_MAINNET_CAIP2
    rpc_url: str | None = None

    max_batch_size: int = Field(default=MAX_BATCH_SIZE, ge=1, le=MAX_BATCH_SIZE)
    dust_threshold_lamports: int = Field(default=DUST_THRESHOLD_LAMPORTS, ge=0)
    fee_reserve_per_batch_lamports: int = Field(default=FEE_RESERVE_PER_BATCH_LAMPORTS, ge=0)
    manual_fee_reserve_lamports: int = Field(default=MANUAL_FEE_RESERVE_LAMPORTS, ge=0)
    default_distribution_percentage: float = Field(
        default=DEFAULT_DISTRIBUTION_PERCENTAGE, gt=0, le=100
    )
    large_fanout_threshold: int = Field(default=LARGE_FANOUT_THRESHOLD, ge=0)

    confirmation_timeout_seconds: float = Field(
        default=DEFAULT_CONFIRMATION_TIMEOUT_SECONDS, gt=0
    )
    poll_interval_seconds: float = Field(default=DEFAULT_POLL_INTERVAL_SECONDS, gt=0)
    success_delay_seconds: float = Field(default=SUCCESS_DELAY_SECONDS, ge=0)
    failure_delay_seconds: float = Field(default=FAILURE_DELAY_SECONDS, ge=0)

    retry_max_attempts: int = Field(default=3, ge=1)
    retry_base_seconds: float = Field(default=1, ge=0)
    retry_factor: float = Field(default=2, ge=1)
    retry_max_seconds: float = Field(default=8, ge=0)

    log_level: str = "INFO"

    @field_validator("network")
    @classmethod
    def _network_is_solana(cls, value: str) -> str:
        return normalize_network(value)

    @field_validator("log_level")
    @classmethod
    def _known_log_level(cls, value: str) -> str:
        value = value.upper()
        if value not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {value}")
        return value

    @property
    def resolved_rpc_url(self) -> str:
        return get_rpc_url(self.network, self.rpc_url)

    @property
    def distribution_fraction(self) -> float:
        return self.default_distribution_percentage / 100

    @property
    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.retry_max_attempts,
            base_seconds=self.retry_base_seconds,
            factor=self.retry_factor,
            max_seconds=self.retry_max_seconds,
        )

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None, **overrides: Any) -> "Settings":
        """Build settings from environment variables.

        Loads ``.env`` first when reading the real process environment.
        Raises ``pydantic.ValidationError`` on invalid values.
        """
        if environ is None:
            load_dotenv()
            environ = dict(os.environ)

        values: dict[str, Any] = {}
        for env_name, field_name in ENV_VARS.items():
            raw = environ.get(env_name)
            if raw is not None and raw.strip():
                values[field_name] = raw.strip()
        values.update(overrides)
        return cls.model_validate(values)
