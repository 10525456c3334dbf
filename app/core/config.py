"""
Application configuration management
"""
import re
from typing import List, Optional, Annotated
from pydantic import Field, BeforeValidator
from pydantic_settings import BaseSettings, NoDecode
from dotenv import load_dotenv

load_dotenv()


def parse_comma_separated_str(value: any) -> List[str]:
    if isinstance(value, str):
        if not value:
            return []
        return [item.strip() for item in value.split(',') if item.strip()]
    if isinstance(value, list):
        return value
    return []


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # App settings
    app_name: str = "Learning Hub AI"
    app_version: str = "1.0.0"
    debug: bool = Field(False, env="DEBUG")

    # Server settings
    host: str = Field("0.0.0.0", env="HOST")
    port: int = Field(8000, env="PORT")

    # OpenRouter (OpenAI-compatible) chain, tried in the listed order
    openrouter_api_key: Optional[str] = Field(None, env="OPENROUTER_API_KEY")
    openrouter_base_url: str = Field("https://openrouter.ai/api/v1", env="OPENROUTER_BASE_URL")
    openrouter_models: Annotated[List[str], NoDecode, BeforeValidator(parse_comma_separated_str)] = Field(
        default=[
            "deepseek/deepseek-r1-0528:free",
            "qwen/qwen-2.5-72b-instruct:free",
            "google/gemma-3-27b-it:free",
        ],
        env="OPENROUTER_MODELS"
    )

    # Gemini - supports multiple keys for rotation
    gemini_keys: Optional[str] = Field(None, env="GEMINI_KEYS")
    gemini_model: str = Field("gemini-2.0-flash", env="GEMINI_MODEL")
    gemini_priority: int = Field(100, env="GEMINI_PRIORITY")  # after OpenRouter by default

    # Generation
    provider_timeout_seconds: float = Field(60.0, env="PROVIDER_TIMEOUT_SECONDS")
    provider_temperature: float = Field(0.5, env="PROVIDER_TEMPERATURE")
    provider_max_tokens: int = Field(3500, env="PROVIDER_MAX_TOKENS")

    # Persistence
    store_backend: str = Field("memory", env="STORE_BACKEND")  # memory | supabase
    supabase_url: Optional[str] = Field(None, env="SUPABASE_URL")
    supabase_key: Optional[str] = Field(None, env="SUPABASE_KEY")

    # Security
    cors_origins: Annotated[List[str], NoDecode, BeforeValidator(parse_comma_separated_str)] = Field(
        default=["*"],
        env="CORS_ORIGINS"
    )

    # Logging
    log_level: str = Field("INFO", env="LOG_LEVEL")

    @property
    def gemini_key_list(self) -> List[str]:
        """Parse Gemini keys separated by comma, semicolon, or whitespace/newline"""
        if not self.gemini_keys:
            return []
        return [k for k in re.split(r"[,;\s]+", self.gemini_keys.strip()) if k]

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore"
    }


# Global settings instance
settings = Settings()
