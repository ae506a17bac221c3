from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

class Settings(BaseSettings):
	# Provider endpoints; override only for proxies or local mocks
	gemini_base_url: str = Field(default="https://generativelanguage.googleapis.com/v1beta/models", validation_alias="GEMINI_BASE_URL")
	openai_base_url: str = Field(default="https://api.openai.com/v1/chat/completions", validation_alias="OPENAI_BASE_URL")

	# Optional server-wide provider, used only when no user config resolves
	default_provider: str = Field(default="gemini", validation_alias="AI_PROVIDER")
	default_model: str = Field(default="gemini-2.5-flash", validation_alias="AI_MODEL")
	default_api_key: str | None = Field(default=None, validation_alias="AI_API_KEY")

	# Outbound call policy
	provider_timeout_seconds: float = Field(default=60.0, validation_alias="PROVIDER_TIMEOUT_SECONDS")
	provider_max_retries: int = Field(default=2, validation_alias="PROVIDER_MAX_RETRIES")
	provider_retry_backoff_seconds: float = Field(default=0.8, validation_alias="PROVIDER_RETRY_BACKOFF_SECONDS")

	# Raise instead of passing through provider output that matches no known shape
	strict_schema: bool = Field(default=False, validation_alias="STRICT_SCHEMA")
	# Clamp very long submissions before they reach the prompt
	max_submission_chars: int = Field(default=8000, validation_alias="MAX_SUBMISSION_CHARS")

	# Database
	database_url: str | None = Field(default=None, validation_alias="DATABASE_URL")

	log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

	# pydantic-settings v2 style config
	model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
