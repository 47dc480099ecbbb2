from decimal import Decimal
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

WETH_ADDRESS = "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2"
DAI_ADDRESS = "0x6b175474e89094c44da98b954eedeac495271d0f"
USDC_ADDRESS = "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48"
USDT_ADDRESS = "0xdac17f958d2ee523a2206206994597c13d831ec7"
TUSD_ADDRESS = "0x0000000000085d4780b73119b644ae5ecd22b376"
WBTC_ADDRESS = "0x2260fac5e5542a773aa44fbcfedf7c193bc2c599"


class Settings(BaseSettings):
    # Environment mode: dev or prod
    ENV: Literal["dev", "prod"] = "dev"

    # Database
    DATABASE_URL: str = "sqlite:///./pairstats.db"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str | None = "logs"  # None disables the rotating file sink
    SLACK_WEBHOOK_URL: str | None = None

    # Registry / pricing configuration
    PROCESSOR_NAME: str = "pairstats"
    REGISTRY_ADDRESS: str = "0x5c69bee701ef814a2b6a3edd4b1652cb9cc5aa6f"
    REFERENCE_ASSET_ADDRESS: str = WETH_ADDRESS
    STABLE_ASSET_ADDRESSES: list[str] = [DAI_ADDRESS, USDC_ADDRESS, USDT_ADDRESS]
    WHITELIST_ADDRESSES: list[str] = [
        WETH_ADDRESS,
        DAI_ADDRESS,
        USDC_ADDRESS,
        USDT_ADDRESS,
        TUSD_ADDRESS,
        WBTC_ADDRESS,
    ]
    FALLBACK_FIAT_RATE: Decimal = Decimal("300")

    # Block range / batching
    START_BLOCK: int = 10000835  # registry deployment
    END_BLOCK: int | None = None
    BATCH_BLOCKS: int = 1000
    EVENTS_PATH: str = "data/events.jsonl"

    # Scheduled indexing inside the API process
    INDEXER_INTERVAL_SECONDS: int = 60
    INDEXER_ENABLED: bool = True

    # Docs Configuration
    DOCS_ENABLED: bool | None = None  # Override docs setting (None = auto based on ENV)

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",  # ignore unrelated keys in local .env
    )

    @field_validator("REGISTRY_ADDRESS", "REFERENCE_ASSET_ADDRESS")
    @classmethod
    def _lower_address(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("STABLE_ASSET_ADDRESSES", "WHITELIST_ADDRESSES")
    @classmethod
    def _lower_addresses(cls, value: list[str]) -> list[str]:
        return [item.strip().lower() for item in value]

    @field_validator("FALLBACK_FIAT_RATE")
    @classmethod
    def _positive_rate(cls, value: Decimal) -> Decimal:
        if value <= 0:
            raise ValueError("FALLBACK_FIAT_RATE must be positive")
        return value

    @field_validator("BATCH_BLOCKS")
    @classmethod
    def _positive_batch(cls, value: int) -> int:
        if value < 1:
            raise ValueError("BATCH_BLOCKS must be at least 1")
        return value

    @model_validator(mode="after")
    def _merge_whitelist(self) -> "Settings":
        # reference and stable assets are always trusted for tracked values
        merged = list(self.WHITELIST_ADDRESSES)
        for address in [self.REFERENCE_ASSET_ADDRESS, *self.STABLE_ASSET_ADDRESSES]:
            if address not in merged:
                merged.append(address)
        self.WHITELIST_ADDRESSES = merged
        return self

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENV == "prod"

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENV == "dev"

    @property
    def debug_enabled(self) -> bool:
        """Debug mode is only enabled in development."""
        return self.is_development

    @property
    def effective_log_level(self) -> str:
        """Return appropriate log level based on environment."""
        if self.is_production:
            # In production, minimum INFO level (ignore DEBUG)
            return self.LOG_LEVEL if self.LOG_LEVEL.upper() != "DEBUG" else "INFO"
        return self.LOG_LEVEL

    @property
    def docs_enabled(self) -> bool:
        """Swagger/ReDoc docs enabled based on environment or override."""
        if self.DOCS_ENABLED is not None:
            return self.DOCS_ENABLED
        return self.is_development


settings = Settings()
