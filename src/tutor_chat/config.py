import logging
import os
from dataclasses import dataclass
from functools import lru_cache

import redis
from dotenv import load_dotenv

load_dotenv()

DEFAULT_CORS_ORIGINS = (
    "http://localhost:5173",
    "http://localhost:5174",
    "http://localhost:5175",
)


def _cors_origins() -> tuple[str, ...]:
    extra = os.getenv("CORS_ORIGIN", "").strip()
    return DEFAULT_CORS_ORIGINS + ((extra,) if extra else ())


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment variables."""

    # Upstream LLM (OpenAI-compatible chat completions)
    openai_api_key: str = os.getenv("OPENAI_API_KEY", "")
    openai_model: str = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
    openai_base_url: str = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1").rstrip("/")
    openai_max_tokens: int = int(os.getenv("OPENAI_MAX_TOKENS", "1000"))
    openai_temperature: float = float(os.getenv("OPENAI_TEMPERATURE", "0.7"))
    openai_top_p: float = float(os.getenv("OPENAI_TOP_P", "0.9"))
    openai_frequency_penalty: float = float(os.getenv("OPENAI_FREQUENCY_PENALTY", "0.1"))
    openai_presence_penalty: float = float(os.getenv("OPENAI_PRESENCE_PENALTY", "0.1"))
    openai_timeout: float = float(os.getenv("OPENAI_TIMEOUT", "30"))

    # Streaming relay
    stream_timeout: float = float(os.getenv("STREAM_TIMEOUT", "120"))
    fallback_chunk_delay: float = float(os.getenv("FALLBACK_CHUNK_DELAY", "0.05"))

    # Supabase (auth + PostgREST)
    supabase_url: str = os.getenv("SUPABASE_URL", "").rstrip("/")
    supabase_anon_key: str = os.getenv("SUPABASE_ANON_KEY", "")
    supabase_timeout: float = float(os.getenv("SUPABASE_TIMEOUT", "10"))

    # Response cache
    cache_backend: str = os.getenv("CACHE_BACKEND", "memory").lower()
    cache_ttl_ms: int = int(os.getenv("CACHE_TTL_MS", "3600000"))  # 1 hour
    cache_seed_ttl_ms: int = int(os.getenv("CACHE_SEED_TTL_MS", "86400000"))  # 24 hours
    cache_max_size: int = int(os.getenv("CACHE_MAX_SIZE", "1000"))
    cache_cleanup_interval: float = float(os.getenv("CACHE_CLEANUP_INTERVAL", "300"))
    cache_key_prefix: str = os.getenv("CACHE_KEY_PREFIX", "tutor_chat")

    # Redis (only used when CACHE_BACKEND=redis)
    redis_url: str = os.getenv("REDIS_URL", "redis://localhost:6379")
    redis_password: str | None = os.getenv("REDIS_PASSWORD")

    # API
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("PORT", "3001"))
    api_reload: bool = os.getenv("API_RELOAD", "false").lower() == "true"
    cors_origins: tuple[str, ...] = _cors_origins()

    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()

    def __post_init__(self) -> None:
        """Validate settings after initialization."""
        if self.cache_backend not in ("memory", "redis"):
            raise ValueError(f"CACHE_BACKEND must be 'memory' or 'redis', got {self.cache_backend!r}")

        if self.cache_max_size < 1:
            raise ValueError("CACHE_MAX_SIZE must be at least 1")

        if self.cache_ttl_ms <= 0 or self.cache_seed_ttl_ms <= 0:
            raise ValueError("Cache TTL values must be positive")

        if not 0 <= self.openai_temperature <= 2:
            raise ValueError("OPENAI_TEMPERATURE must be between 0 and 2")

        if not 0 < self.openai_top_p <= 1:
            raise ValueError("OPENAI_TOP_P must be in (0, 1]")

    def missing_required(self) -> list[str]:
        """Return the names of required environment variables that are unset."""
        required = {
            "OPENAI_API_KEY": self.openai_api_key,
            "SUPABASE_URL": self.supabase_url,
            "SUPABASE_ANON_KEY": self.supabase_anon_key,
        }
        return [name for name, value in required.items() if not value]

    def require(self) -> None:
        """Fail fast when external configuration is absent.

        Raises:
            RuntimeError: If any required value is missing
        """
        missing = self.missing_required()
        if missing:
            raise RuntimeError(f"Missing required environment variables: {', '.join(missing)}")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


def configure_logging(level: str | None = None) -> None:
    """Install the process-wide log handler."""
    logging.basicConfig(
        level=(level or settings.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def get_redis_client(config: Settings | None = None) -> redis.Redis:
    """Create a Redis client instance."""
    config = config or settings
    return redis.from_url(
        config.redis_url,
        password=config.redis_password,
        decode_responses=True,
    )
