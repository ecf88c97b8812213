"""Configuration loader with YAML parsing, env-var interpolation, and Pydantic validation."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field


class TelegramConfig(BaseModel):
    token: str


class CompletionConfig(BaseModel):
    api_key: str
    base_url: Optional[str] = "https://api.deepseek.com"
    model: str = "deepseek-chat"
    max_tokens: int = 2048
    temperature: float = 0.3
    max_retries: int = 0  # the coordinator never retries; keep the SDK from doing it either
    timeout: int = 120


class ChainConfig(BaseModel):
    network: str = "Celo Alfajores Testnet"
    rpc_url: str = "https://alfajores-forno.celo-testnet.org"
    indexer_url: str = "https://celo-alfajores.blockscout.com/api"
    explorer_url: str = "https://celo-alfajores.blockscout.com"
    registry_address: str = "0x000000000000000000000000000000000000ce10"
    bot_address: Optional[str] = None
    timeout: int = 30


class CacheConfig(BaseModel):
    path: str = "./data/localData.json"
    ttl_seconds: int = 300


class StorageConfig(BaseModel):
    db_path: str = "./data/celo_bot.db"


class ConversationConfig(BaseModel):
    max_turns: int = 50


class PersonaConfig(BaseModel):
    description: str = (
        "You are a Celo blockchain analyst. You answer questions about accounts, "
        "balances, transactions and the user's saved friends using live on-chain data."
    )
    capabilities: list[str] = Field(
        default_factory=lambda: [
            "Look up account balances, activity and token holdings",
            "Explain transactions and their receipts",
            "Check the CELO and cUSD balances of saved friends",
        ]
    )
    limitations: list[str] = Field(
        default_factory=lambda: [
            "Read-only: cannot sign or send transactions",
            "Only answers from data returned by the tools",
        ]
    )


class AppConfig(BaseModel):
    log_level: str = "INFO"
    log_file: Optional[str] = None
    data_dir: str = "./data"
    telegram: Optional[TelegramConfig] = None
    completion: CompletionConfig
    chain: ChainConfig = Field(default_factory=ChainConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    conversation: ConversationConfig = Field(default_factory=ConversationConfig)
    persona: PersonaConfig = Field(default_factory=PersonaConfig)


_ENV_VAR_PATTERN = re.compile(r"\$\{(\w+)\}")


def _interpolate_env_vars(text: str, extra: dict[str, str] | None = None) -> str:
    """Replace ${VAR_NAME} patterns with environment variable values."""

    def _replace(match: re.Match) -> str:
        var_name = match.group(1)
        if extra and var_name in extra:
            return extra[var_name]
        value = os.environ.get(var_name)
        if value is None:
            return match.group(0)
        return value

    return _ENV_VAR_PATTERN.sub(_replace, text)


def load_config(config_path: str | Path = "config.yaml", env_path: str | Path = ".env") -> AppConfig:
    """Load and validate configuration from YAML file with env-var interpolation."""
    env_file = Path(env_path)
    if env_file.exists():
        load_dotenv(env_file)

    config_file = Path(config_path)
    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_file}")

    raw_text = config_file.read_text(encoding="utf-8")

    # data_dir may be referenced by other paths in the same file
    raw_data = yaml.safe_load(raw_text) or {}
    data_dir = _interpolate_env_vars(raw_data.get("data_dir", "./data"))

    interpolated = _interpolate_env_vars(raw_text, extra={"data_dir": data_dir})
    data = yaml.safe_load(interpolated) or {}

    return AppConfig(**data)
