"""
Cluster configuration loaded from YAML.

Lookup order: explicit path, the DEPOSIT_VAULT_CONFIG environment variable,
then built-in defaults.
"""

import os
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, confloat, conint, field_validator
from solders.pubkey import Pubkey


CONFIG_ENV_VAR = "DEPOSIT_VAULT_CONFIG"

DEFAULT_PROGRAM_ID = "EbKQVLUFJp38qanC4NwQUqsrWrRV4MUMhFRmTTJKHNMC"
DEFAULT_LAMPORTS_PER_BYTE_YEAR = 3480
DEFAULT_EXEMPTION_THRESHOLD = 2.0
DEFAULT_ACCOUNT_STORAGE_OVERHEAD = 128  # bytes charged on top of data length


class ConfigError(ValueError):
    pass


class RentConfig(BaseModel):
    """Parameters for the minimum balance a slot of a given size needs."""

    lamports_per_byte_year: conint(strict=True, ge=0) = Field(
        DEFAULT_LAMPORTS_PER_BYTE_YEAR, description="Lamports charged per byte per year"
    )
    exemption_threshold: confloat(ge=0) = Field(
        DEFAULT_EXEMPTION_THRESHOLD, description="Years of rent a slot must hold"
    )
    account_storage_overhead: conint(strict=True, ge=0) = Field(
        DEFAULT_ACCOUNT_STORAGE_OVERHEAD, description="Bytes charged on top of data length"
    )

    model_config = ConfigDict(extra="forbid")

    def minimum_balance(self, data_len: int) -> int:
        bytes_charged = self.account_storage_overhead + data_len
        return int(bytes_charged * self.lamports_per_byte_year * self.exemption_threshold)


class ClusterConfig(BaseModel):
    program_id: Pubkey = Field(default_factory=lambda: Pubkey.from_string(DEFAULT_PROGRAM_ID))
    rent: RentConfig = Field(default_factory=RentConfig)

    model_config = ConfigDict(extra="forbid", arbitrary_types_allowed=True)

    @field_validator("program_id", mode="before")
    @classmethod
    def _parse_program_id(cls, value: Any) -> Pubkey:
        if isinstance(value, Pubkey):
            return value
        try:
            return Pubkey.from_string(str(value))
        except ValueError as e:
            raise ValueError(f"not a valid pubkey: {value}") from e

    @field_validator("rent", mode="before")
    @classmethod
    def _empty_rent(cls, value: Any) -> Any:
        # "rent:" with nothing under it means defaults
        return {} if value is None else value


def parse_config(raw: Any) -> ClusterConfig:
    """Build a ClusterConfig from an already-loaded mapping."""
    if raw is None:
        return ClusterConfig()
    try:
        return ClusterConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(f"invalid configuration: {e}") from e


def load_config(path: Optional[Union[str, Path]] = None) -> ClusterConfig:
    """Load cluster configuration."""
    if path is None:
        path = os.environ.get(CONFIG_ENV_VAR)
    if not path:
        return ClusterConfig()

    path = Path(path)
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")

    with open(path) as f:
        try:
            raw = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"{path}: invalid YAML: {e}") from e

    return parse_config(raw)
