"""Configuration for hyperdune."""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path

from pydantic import AliasChoices, BaseModel, Field

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "HYPERDUNE_CONFIG"
API_KEY_ENV_VAR = "DUNE_API_KEY"
DEFAULT_CONFIG_FILE = "hyperdune.toml"


class ExportConfig(BaseModel):
    """Settings for one export run, read from a flat TOML file.

    Example::

        dune_api_key = "..."
        hyperliquid_data_dir = "/home/hl/hl/data/node_trades/hourly"
        dune_user_namespace = "my_team"
        dune_table_name = "hyperliquid_trades"
        look_back_period_days = 7
    """

    dune_api_key: str = ""
    hyperliquid_data_dir: Path
    dune_user_namespace: str = Field(min_length=1)
    dune_table_name: str = Field(min_length=1)
    look_back_period_days: int = Field(
        default=1,
        ge=0,
        validation_alias=AliasChoices("look_back_period_days", "look_back_period"),
    )
    table_description: str = "Hyperliquid node trade data"
    is_private: bool = False

    model_config = {"frozen": True}

    @classmethod
    def from_toml(cls, path: Path | str) -> ExportConfig:
        """Load configuration from a TOML file.

        ``DUNE_API_KEY`` in the environment takes precedence over the file so
        the key can be kept out of version-controlled configs.
        """
        path = Path(path)
        with open(path, "rb") as f:
            data = tomllib.load(f)
        env_key = os.environ.get(API_KEY_ENV_VAR)
        if env_key:
            data["dune_api_key"] = env_key
        return cls.model_validate(data)

    @classmethod
    def find_and_load(cls, explicit_path: str | None = None) -> ExportConfig | None:
        """Find and load config: explicit path > HYPERDUNE_CONFIG env > hyperdune.toml in cwd.

        Returns None if no config file is found.
        """
        if explicit_path:
            logger.info("Loading config from %s", explicit_path)
            return cls.from_toml(explicit_path)
        env_path = os.environ.get(CONFIG_ENV_VAR)
        if env_path:
            logger.info("Loading config from %s=%s", CONFIG_ENV_VAR, env_path)
            return cls.from_toml(env_path)
        default = Path(DEFAULT_CONFIG_FILE)
        if default.exists():
            logger.info("Loading config from %s", default)
            return cls.from_toml(default)
        return None
