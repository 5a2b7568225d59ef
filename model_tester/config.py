from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_PROMPT = "Write a short story about a robot who discovers music."


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="MODEL_TESTER_", case_sensitive=False, extra="ignore")

    app_env: str = Field(default="development")
    log_level: str = Field(default="INFO")

    api_base_url: str = Field(default="https://generativelanguage.googleapis.com")
    api_version: str = Field(default="v1")
    required_capability: str = Field(default="generateContent")
    default_prompt: str = Field(default=DEFAULT_PROMPT, min_length=1)

    def is_production(self) -> bool:
        return self.app_env.strip().lower() == "production"

    def production_safety_errors(self) -> list[str]:
        if not self.is_production():
            return []

        errors: list[str] = []

        if not self.api_base_url.strip().lower().startswith("https://"):
            errors.append("MODEL_TESTER_API_BASE_URL must use https in production")

        if not self.required_capability.strip():
            errors.append("MODEL_TESTER_REQUIRED_CAPABILITY must not be empty in production")

        return errors


def get_settings() -> Settings:
    return Settings()
