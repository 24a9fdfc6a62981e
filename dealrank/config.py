"""
Configuration and environment handling for dealrank.
"""
import logging
import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

# Load environment variables
load_dotenv()


DEFAULT_MARKET_AVERAGES: dict[str, float] = {
    "electronics": 250.0,
    "clothing": 45.0,
    "books": 15.0,
    "home": 85.0,
    "automotive": 150.0,
    "general": 75.0,
}


class EmbeddingConfig(BaseModel):
    """Azure OpenAI embedding deployment configuration."""
    endpoint: str = Field(default_factory=lambda: os.getenv("AZURE_OPENAI_ENDPOINT", ""))
    api_key: str = Field(default_factory=lambda: os.getenv("AZURE_OPENAI_API_KEY", ""))
    api_version: str = Field(
        default_factory=lambda: os.getenv("AZURE_OPENAI_API_VERSION", "2024-02-01")
    )
    deployment: str = Field(
        default_factory=lambda: os.getenv("AZURE_OPENAI_DEPLOYMENT_NAME", "text-embedding-ada-002")
    )
    batch_size: int = Field(default=16, ge=1, description="Max inputs per embeddings call")
    max_retries: int = Field(default=3, ge=0, description="Retries for a single embed call")
    max_text_length: int = Field(default=6000, ge=1, description="Characters kept per text")
    batch_delay_seconds: float = Field(default=0.1, ge=0, description="Pause between batch calls")

    @property
    def is_configured(self) -> bool:
        """Endpoint and credential are both present."""
        return bool(self.endpoint and self.api_key)


class EbayConfig(BaseModel):
    """eBay Browse API configuration."""
    client_id: str = Field(default_factory=lambda: os.getenv("EBAY_CLIENT_ID", ""))
    client_secret: str = Field(default_factory=lambda: os.getenv("EBAY_CLIENT_SECRET", ""))
    base_url: str = Field(
        default_factory=lambda: os.getenv("EBAY_BASE_URL", "https://api.sandbox.ebay.com")
    )
    marketplace_id: str = Field(default_factory=lambda: os.getenv("EBAY_MARKETPLACE_ID", "EBAY_US"))
    search_limit: int = Field(default=100, ge=1, le=200, description="Listings fetched per search")
    timeout_seconds: float = Field(default=15.0)


class RankingConfig(BaseModel):
    """Fusion weights and ranking behaviour."""
    semantic_weight: float = Field(default=0.35)
    deal_weight: float = Field(default=0.35)
    preference_weight: float = Field(default=0.30)
    max_results: int = Field(default=50, description="Top results returned per search")
    default_category: str = Field(default="general")
    market_averages: dict[str, float] = Field(default_factory=lambda: dict(DEFAULT_MARKET_AVERAGES))
    drop_hard_excluded: bool = Field(
        default=False,
        description="Remove over-budget / below-minimum-seller items from fused rankings"
    )


class Config(BaseModel):
    """Main configuration."""
    embedding: EmbeddingConfig = Field(default_factory=EmbeddingConfig)
    ebay: EbayConfig = Field(default_factory=EbayConfig)
    ranking: RankingConfig = Field(default_factory=RankingConfig)

    # Feature flags
    enable_ai_ranking: bool = Field(
        default_factory=lambda: os.getenv("ENABLE_AI_RANKING", "true").lower() != "false"
    )

    log_level: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))


# Process config for entry points; services receive their section explicitly
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create the process config instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def configure_logging(level: Optional[str] = None) -> None:
    """Set up root logging for command-line use."""
    logging.basicConfig(
        level=(level or get_config().log_level).upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
