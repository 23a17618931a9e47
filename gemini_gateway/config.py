"""
Configuration Management Module

Configures gateway parameters via environment variables or .env file.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application Configuration Class

    All configuration items can be overridden by environment variables, with names matching fields (uppercase).
    """

    # Application Config
    APP_NAME: str = "Gemini OpenAI Gateway"
    DEBUG: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 8080

    # Backend Config
    GEMINI_BASE_URL: str = "https://generativelanguage.googleapis.com"
    GEMINI_API_VERSION: str = "v1beta"

    # HTTP Client Config
    # Backend request timeout (seconds)
    HTTP_TIMEOUT: int = 300
    # Remote image download timeout (seconds)
    IMAGE_FETCH_TIMEOUT: int = 30

    # Model Mapping Config
    # Set to true to treat requested model names as Gemini model names
    DISABLE_MODEL_MAPPING: bool = False
    # Backend model used for the gpt-4-vision-preview alias
    GPT_4_VISION_PREVIEW: str | None = None

    # Streaming Config
    # Characters streamed one at a time before switching to whole blocks
    STREAM_CHAR_BUDGET: int = 1000
    # Max chunks buffered between the backend reader and the response writer
    STREAM_QUEUE_SIZE: int = 32

    # CORS Config
    # Comma-separated list of allowed origins, "*" allows all
    ALLOWED_ORIGINS: str = "*"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @property
    def model_mapping_enabled(self) -> bool:
        """Whether OpenAI model names are mapped to Gemini model names"""
        return not self.DISABLE_MODEL_MAPPING


@lru_cache()
def get_settings() -> Settings:
    """
    Get application configuration (Singleton)

    Uses lru_cache to ensure configuration is loaded only once.

    Returns:
        Settings: Application configuration instance
    """
    return Settings()
