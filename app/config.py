from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Indirection layer for cross-origin fetches; the target URL is appended percent-encoded
    proxy_base: str = "https://corsproxy.io/?"

    request_timeout: float = 30.0  # seconds, per fetch
    max_content_size: int = 20 * 1024 * 1024  # 20 MB
    block_private_addresses: bool = True

    # Pause between (page, viewport) captures to stay under provider rate limits
    capture_delay: float = 1.5  # seconds
    # Pause before falling back to the next provider
    provider_backoff: float = 0.5  # seconds
    max_children_per_page: int = 4
    min_image_bytes: int = 100

    desktop_width: int = 1440
    desktop_height: int = 900
    mobile_width: int = 393
    mobile_height: int = 852

    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.5-flash"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
