"""Runtime configuration for the feed server and client.

Every option is read from the environment (or a ``.env`` file) by its
upper-case alias. Only ``SECRET_KEY`` has no default.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Feed settings; see ``.env.example`` for a minimal local setup."""

    app_name: str = Field(default="Quill Feed", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Token signing
    secret_key: str = Field(alias="SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60 * 24 * 7,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )

    # Storage
    database_url: str = Field(default="sqlite:///./quill.db", alias="DATABASE_URL")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Content and account limits
    max_post_length: int = Field(default=280, alias="MAX_POST_LENGTH")
    min_username_length: int = Field(default=3, alias="MIN_USERNAME_LENGTH")
    max_username_length: int = Field(default=30, alias="MAX_USERNAME_LENGTH")
    min_password_length: int = Field(default=6, alias="MIN_PASSWORD_LENGTH")

    # Feed pages
    posts_per_page: int = Field(default=10, alias="POSTS_PER_PAGE")
    max_posts_per_page: int = Field(default=50, alias="MAX_POSTS_PER_PAGE")

    # Optimistic temporary posts older than this are swept after a create settles.
    temp_post_grace_seconds: float = Field(default=2.0, alias="TEMP_POST_GRACE_SECONDS")

    # Browser clients
    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(default=["*"], alias="CORS_ALLOW_HEADERS")

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


settings = Settings()  # type: ignore[call-arg]
