"""
Configuration management for NFT Gallery
"""

import os
from typing import List, Optional
from dataclasses import dataclass
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables
env_path = Path(__file__).parent.parent.parent / ".env"
load_dotenv(env_path)


@dataclass(frozen=True)
class Config:
    """Main configuration class"""

    alchemy_api_keys: List[str]

    default_network: str = "mainnet"

    # Request settings
    timeout: int = 30
    max_retries: int = 3
    rate_limit: int = 330  # requests per second
    max_workers: int = 10  # Maximum concurrent branches per fan-out

    # Cache settings
    cache_ttl: int = 900  # 15 minutes
    cache_type: str = "none"  # "none", "memory" or "redis"
    redis_url: Optional[str] = None

    # Simulated on-chain confirmation latency (seconds)
    purchase_delay: float = 2.0
    listing_delay: float = 1.5
    cancel_delay: float = 1.5

    # Seed for synthetic prices/listing flags; None means unseeded
    market_seed: Optional[int] = None

    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables"""

        def get_keys(key_name: str) -> List[str]:
            """Get multiple API keys (comma-separated)"""
            keys_str = os.getenv(key_name, "")
            if not keys_str:
                return []
            return [k.strip() for k in keys_str.split(",") if k.strip()]

        seed = os.getenv("MARKET_SEED")

        return cls(
            alchemy_api_keys=get_keys("ALCHEMY_API_KEY"),
            default_network=os.getenv("DEFAULT_NETWORK", "mainnet"),
            timeout=int(os.getenv("TIMEOUT", "30")),
            max_retries=int(os.getenv("MAX_RETRIES", "3")),
            rate_limit=int(os.getenv("RATE_LIMIT", "330")),
            max_workers=int(os.getenv("MAX_WORKERS", "10")),
            cache_ttl=int(os.getenv("CACHE_TTL", "900")),
            cache_type=os.getenv("CACHE_TYPE", "none"),
            redis_url=os.getenv("REDIS_URL"),
            purchase_delay=float(os.getenv("PURCHASE_DELAY", "2.0")),
            listing_delay=float(os.getenv("LISTING_DELAY", "1.5")),
            cancel_delay=float(os.getenv("CANCEL_DELAY", "1.5")),
            market_seed=int(seed) if seed else None,
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )


# Global config instance
config = Config.from_env()
