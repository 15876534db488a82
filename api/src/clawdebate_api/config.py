"""API configuration from environment variables."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """API settings loaded from environment."""

    cors_origins: str = "http://localhost:3000"
    debug: bool = False
    # Anonymous session cookie lifetime
    session_cookie_max_age: int = 60 * 60 * 24 * 30
    session_cookie_secure: bool = False
    # Shared secret for debate and stage management; unset disables those routes
    admin_token: str | None = None

    @property
    def cors_origin_list(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    model_config = {"env_prefix": "API_", "env_file": ".env", "extra": "ignore"}


settings = Settings()
