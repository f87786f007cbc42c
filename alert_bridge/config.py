"""Runtime configuration for the alert bridge."""
from functools import lru_cache
from typing import Dict, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

USDC_ADDRESS = "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"


class Settings(BaseSettings):
    """Application settings loaded from env and .env files."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Server
    host: str = "0.0.0.0"
    port: int = 5001
    log_level: str = "INFO"
    service_name: str = "TradingView Webhook Handler"
    disconnect_poll_s: float = Field(default=0.5, gt=0)

    # Agent
    agent_mode: Literal["simulated", "openai"] = "simulated"
    openai_api_key: str = ""
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model: str = "gpt-4o"
    agent_timeout_s: float = Field(default=45.0, gt=0)
    agent_temperature: float = 0.2
    structured_output: bool = True

    # Execution
    execution_mode: Literal["paper", "recall", "disabled"] = "paper"
    recall_api_key: str = ""
    recall_base_url: str = "https://api.sandbox.competitions.recall.network/api"
    recall_timeout_s: float = Field(default=15.0, gt=0)
    recall_quote_token: str = USDC_ADDRESS
    recall_token_map: Dict[str, str] = Field(default_factory=dict)
    recall_trade_amount: str = "100"

    # Price data
    market_data_enabled: bool = False
    coingecko_api_key: str = ""
    coingecko_base_url: str = "https://api.coingecko.com/api/v3"
    coingecko_timeout_s: float = Field(default=5.0, gt=0)


@lru_cache
def get_settings() -> Settings:
    return Settings()
