"""Settings module with unified configuration precedence: CLI > ENV > CONFIG FILE."""

from __future__ import annotations

import os
import tomllib
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from .constants import (
    CHAIN_REGISTRY_URL,
    COINGECKO_API_URL,
    DEFAULT_PROBE_CONCURRENCY,
    DEFAULT_PROBE_TIMEOUT,
    DEFAULT_QUERY_CONCURRENCY,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_SELECTION_TIMEOUT,
    DEFAULT_STREAM_CAPACITY,
)

load_dotenv()


class OutputFormat(str, Enum):
    TABLE = "table"
    JSON = "json"


class CosmosNetwork(BaseModel):
    """A chain-registry network and the bech32 prefix of its accounts."""

    name: str
    prefix: str

    model_config = ConfigDict(extra="ignore", frozen=True)


class FixedBalance(BaseModel):
    """A manually declared holding, e.g. an exchange or cold-storage balance."""

    network: str
    account: str = ""
    token: str
    amount: Decimal = Field(ge=0)

    model_config = ConfigDict(extra="ignore")


class TomlConfigSource(PydanticBaseSettingsSource):
    """Lowest-precedence source reading a TOML file.

    Keys may sit at the top level or under a ``[cosmoscope]`` table.
    """

    def __init__(self, settings_cls: type[BaseSettings], path: Path | None):
        super().__init__(settings_cls)
        self._path = path

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        return None, "", False

    def _resolve_path(self) -> Path | None:
        if self._path:
            return self._path if self._path.exists() else None
        local_config = Path("cosmoscope.toml")
        user_config = Path.home() / ".config" / "cosmoscope" / "config.toml"
        if local_config.exists():
            return local_config
        if user_config.exists():
            return user_config
        return None

    def __call__(self) -> dict[str, Any]:
        path = self._resolve_path()
        if path is None:
            return {}

        with path.open("rb") as f:
            data = tomllib.load(f)
        body = data.get("cosmoscope", data)
        if not isinstance(body, dict):
            return {}
        return body


class CosmoscopeSettings(BaseSettings):
    """Single source of truth for configuration. Values may come from:
    - CLI (init kwargs)
    - ENV / .env (prefixed with COSMOSCOPE_)
    - Config file (TOML), lowest precedence

    Do not read os.environ or files elsewhere in the codebase.
    """

    # --- what to query ---
    cosmos_networks: list[CosmosNetwork] = Field(default_factory=list)
    cosmos_addresses: list[str] = Field(default_factory=list)
    fixed_balances: list[FixedBalance] = Field(default_factory=list)

    # --- external services ---
    registry_url: str = CHAIN_REGISTRY_URL
    coingecko_url: str = COINGECKO_API_URL
    coingecko_ids: dict[str, str] = Field(default_factory=dict)

    # --- timeouts (seconds) and buffering ---
    probe_timeout: float = Field(default=DEFAULT_PROBE_TIMEOUT, gt=0)
    selection_timeout: float = Field(default=DEFAULT_SELECTION_TIMEOUT, gt=0)
    request_timeout: float = Field(default=DEFAULT_REQUEST_TIMEOUT, gt=0)
    stream_capacity: int = Field(default=DEFAULT_STREAM_CAPACITY, ge=1)
    query_concurrency: int = Field(default=DEFAULT_QUERY_CONCURRENCY, ge=1)
    probe_concurrency: int = Field(default=DEFAULT_PROBE_CONCURRENCY, ge=1)

    # --- output ---
    min_usd_value: float = Field(default=0.0, ge=0)
    output_format: OutputFormat = OutputFormat.TABLE

    # --- logging ---
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="COSMOSCOPE_",
        env_file=".env",
        extra="ignore",  # ignore unknown keys in env/config file
    )

    @field_validator("registry_url", "coingecko_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @model_validator(mode="after")
    def validate_timeouts(self) -> "CosmoscopeSettings":
        """A single probe must be able to finish inside the selection window."""
        if self.probe_timeout > self.selection_timeout:
            raise ValueError(
                f"probe_timeout ({self.probe_timeout}) must not exceed "
                f"selection_timeout ({self.selection_timeout})"
            )
        return self

    @model_validator(mode="after")
    def validate_unique_networks(self) -> "CosmoscopeSettings":
        names = [network.name for network in self.cosmos_networks]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"Duplicate cosmos_networks entries: {', '.join(duplicates)}")
        return self

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Custom config-file source with explicit precedence: CLI > ENV > FILE."""
        env_cfg = os.environ.get("COSMOSCOPE_CONFIG")
        cfg_path = Path(env_cfg) if env_cfg else None

        return (
            init_settings,  # CLI (highest)
            env_settings,  # ENV
            dotenv_settings,
            TomlConfigSource(settings_cls, cfg_path),  # CONFIG (lowest)
        )

    def as_safe_dict(self) -> dict[str, Any]:
        """Return the effective config as a JSON-friendly dict."""
        return self.model_dump(mode="json")

    @property
    def price_ids(self) -> dict[str, str]:
        """Symbol to CoinGecko id map, configured ids overriding the defaults."""
        from .constants import DEFAULT_COINGECKO_IDS

        return {
            **DEFAULT_COINGECKO_IDS,
            **{symbol.upper(): coin_id for symbol, coin_id in self.coingecko_ids.items()},
        }
