import os
import re
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from xquery.exceptions import ConfigurationError

load_dotenv()

API_KEY_PATTERN = re.compile(r"^xai-[A-Za-z0-9]{40,}$")


class Settings(BaseModel):
    # Grok API Configuration
    xai_api_key: str = Field(default="", alias="XAI_API_KEY")
    xai_base_url: str = Field(default="https://api.x.ai/v1", alias="XAI_BASE_URL")
    grok_model: str = Field(default="grok-4-1-fast-non-reasoning", alias="GROK_MODEL")
    grok_vision_model: str = Field(
        default="grok-2-vision-1212", alias="GROK_VISION_MODEL"
    )
    grok_timeout: float = Field(default=60.0, alias="GROK_TIMEOUT")
    grok_vision_timeout: float = Field(default=30.0, alias="GROK_VISION_TIMEOUT")
    grok_max_retries: int = Field(default=3, alias="GROK_MAX_RETRIES")
    grok_max_output_tokens: int = Field(default=16384, alias="GROK_MAX_OUTPUT_TOKENS")

    # Circuit Breaker Configuration
    circuit_failure_threshold: int = Field(
        default=5, ge=1, alias="CIRCUIT_FAILURE_THRESHOLD"
    )
    circuit_retry_timeout: float = Field(default=30.0, alias="CIRCUIT_RETRY_TIMEOUT")

    # Cache Configuration (TTLs in seconds)
    cache_dir: str = Field(
        default=str(Path.home() / ".cache" / "mcp-x-query"), alias="CACHE_DIR"
    )
    trending_cache_ttl: float = Field(default=300.0, alias="TRENDING_CACHE_TTL")
    profile_cache_ttl: float = Field(default=600.0, alias="PROFILE_CACHE_TTL")

    # Logging Configuration
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_json: bool = Field(default=False, alias="LOG_JSON")


def load_settings() -> Settings:
    """Read settings from the process environment (after .env has been loaded)."""
    return Settings.model_validate(dict(os.environ))


def validate_api_key(api_key: str) -> str:
    """Fail fast on a missing or malformed XAI_API_KEY."""
    if not api_key:
        raise ConfigurationError("XAI_API_KEY environment variable is required.")
    if not API_KEY_PATTERN.match(api_key):
        raise ConfigurationError(
            "XAI_API_KEY format is invalid. "
            "Expected: xai-<40+ alphanumeric characters>."
        )
    return api_key


global_settings = load_settings()
