from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

class Settings(BaseSettings):
	gemini_api_key: str | None = Field(default=None, validation_alias="GEMINI_API_KEY")
	# Provider can be "vertex" (Vertex AI Express) or "ai_studio" (Generative Language API)
	gemini_provider: str = Field(default="ai_studio", validation_alias="GEMINI_PROVIDER")
	gemini_model: str = Field(default="gemini-2.5-flash", validation_alias="GEMINI_MODEL")
	vertex_region: str = Field(default="us-central1", validation_alias="GEMINI_VERTEX_REGION")
	vertex_project: str | None = Field(default=None, validation_alias="GEMINI_VERTEX_PROJECT")
	gemini_timeout_seconds: float = Field(default=30.0, validation_alias="GEMINI_TIMEOUT_SECONDS")

	# OpenRouter fallback (optional)
	openrouter_api_key: str | None = Field(default=None, validation_alias="OPENROUTER_API_KEY")
	openrouter_model: str = Field(default="x-ai/grok-4-fast:free", validation_alias="OPENROUTER_MODEL")
	openrouter_base_url: str = Field(default="https://openrouter.ai/api/v1/chat/completions", validation_alias="OPENROUTER_BASE_URL")
	openrouter_referer: str = Field(default="https://localhost", validation_alias="OPENROUTER_HTTP_REFERER")
	openrouter_title: str = Field(default="Study Platform", validation_alias="OPENROUTER_TITLE")

	# Tokens are issued by the hosted identity provider; we only verify them
	jwt_secret_key: str = Field(default="change-me", validation_alias="JWT_SECRET_KEY")
	jwt_algorithm: str = Field(default="HS256", validation_alias="JWT_ALGORITHM")
	jwt_audience: str | None = Field(default=None, validation_alias="JWT_AUDIENCE")

	database_url: str | None = Field(default=None, validation_alias="DATABASE_URL")

	log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

	# Quiz
	quiz_passing_ratio: float = Field(default=0.6, validation_alias="QUIZ_PASSING_RATIO")
	quiz_generated_count: int = Field(default=15, validation_alias="QUIZ_GENERATED_COUNT")
	quiz_generation_attempts: int = Field(default=3, validation_alias="QUIZ_GENERATION_ATTEMPTS")

	# Gamification
	xp_per_level: int = Field(default=200, validation_alias="XP_PER_LEVEL")

	# Onboarding sessions live in process memory until finished or purged
	onboarding_session_ttl_minutes: int = Field(default=120, validation_alias="ONBOARDING_SESSION_TTL_MINUTES")
	onboarding_cleanup_interval_seconds: int = Field(default=600, validation_alias="ONBOARDING_CLEANUP_INTERVAL_SECONDS")
	post_onboarding_redirect: str = Field(default="/home", validation_alias="POST_ONBOARDING_REDIRECT")

	model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
