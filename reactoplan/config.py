"""
Application settings (Pydantic Settings).
"""
from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="REACTOPLAN_",
        env_file=".env",
        extra="ignore",
    )

    app_name: str = "ReactoPlan Scheduling Service"
    app_version: str = "0.1.0"
    log_level: str = "INFO"
    seed_demo_data: bool = True
    # REACTOPLAN_OPENAI_API_KEY or plain OPENAI_API_KEY
    openai_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("REACTOPLAN_OPENAI_API_KEY", "OPENAI_API_KEY"),
    )
    insights_model: str = "gpt-4o-mini"
    insights_fallback: str = "Unable to generate insights at this time."


@lru_cache
def get_settings() -> Settings:
    return Settings()
