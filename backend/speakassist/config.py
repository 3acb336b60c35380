from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # secrets / infrastructure (set in .env)
    openai_api_key: str = ""
    completion_url: str = ""
    completion_api_key: str = ""
    allowed_origins: list[str] = ["http://localhost:3000"]

    # completion service
    completion_backend: Literal["openai", "http"] = "openai"
    completion_mode: Literal["structured", "simple"] = "structured"
    llm_model: str = "gpt-4o-mini"
    llm_max_tokens: int = Field(200, gt=0)
    llm_temperature: float = Field(0.4, ge=0.0, le=2.0)
    request_timeout_s: float = Field(8.0, gt=0)

    # session tuning (single source of truth, every hosting context reads these)
    change_threshold: int = Field(10, gt=0)
    min_input_chars: int = Field(3, gt=0)
    context_turns: int = Field(3, gt=0)
    display_turns: int = Field(20, gt=0)
    cooldown_seconds: float = Field(5.0, gt=0)
    recognition_restart_delay_s: float = Field(0.25, ge=0)

    @property
    def completion_configured(self) -> bool:
        if self.completion_backend == "http":
            return bool(self.completion_url)
        return bool(self.openai_api_key)

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
