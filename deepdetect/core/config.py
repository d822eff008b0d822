"""
Application configuration loaded from environment variables.

Uses pydantic-settings for type-safe env var parsing with automatic
.env file loading. All secrets are injected via environment — never
hard-coded.

To extend: add new fields here and document them in .env.example.
See https://docs.pydantic.dev/latest/concepts/pydantic_settings/
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # ─── Core ──────────────────────────────────────────────────────
    environment: str = "development"
    debug: bool = False

    # ─── CORS ──────────────────────────────────────────────────────
    # Comma-separated allowed origins for the upload/results front end.
    cors_origins_str: str = "http://localhost:9002,http://localhost:3000"

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_origins_str.split(",") if o.strip()]

    # ─── AI ────────────────────────────────────────────────────────
    # Get from https://aistudio.google.com/
    gemini_api_key: str = ""

    # When True, all AI calls return canned mock responses.
    # Always True in tests; set False in production with a real key.
    ai_mock_mode: bool = True

    # Upper bound for a single Gemini call (text analysis or one image).
    # A hung backend call fails the request instead of hanging it.
    generation_timeout_seconds: float = 120.0

    # ─── Uploads ───────────────────────────────────────────────────
    # Matches the 10 MB limit the upload surface enforces client-side.
    max_upload_mb: int = 10

    # ─── Rate limiting ─────────────────────────────────────────────
    # One analysis = 1 text call + 5 image calls, so keep this low.
    analysis_rate_limit: str = "10/minute"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Don't fail on unknown env vars
    )

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024


# Module-level singleton — import this everywhere instead of instantiating Settings()
settings = Settings()
