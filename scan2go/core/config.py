
from pydantic import Field
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    """Application configuration loaded from environment variables / .env file."""

    app_name: str = "Scan2Go API"
    app_env: str = "development"
    app_port: int = 3001
    frontend_url: str = "http://localhost:5173"
    max_upload_size_mb: int = 5

    # Create missing tables on startup (local dev without alembic)
    auto_create_tables: bool = Field(default=True, alias="AUTO_CREATE_TABLES")

    # Database (SQLite via aiosqlite for local dev, any async driver in prod)
    database_url: str = Field(
        default="sqlite+aiosqlite:///./scan2go_dev.db",
        alias="DATABASE_URL",
    )

    # Auth
    jwt_secret: str = Field(default="change-me", alias="JWT_SECRET")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    jwt_expires_days: int = Field(default=7, alias="JWT_EXPIRES_DAYS")

    # Only addresses under this domain may register or appear in a roster
    institution_email_domain: str = Field(
        default="sst.scaler.com", alias="INSTITUTION_EMAIL_DOMAIN",
    )

    # Meal policy
    default_meal_type: str = Field(default="lunch", alias="DEFAULT_MEAL_TYPE")
    recent_claim_days: int = Field(
        default=7, alias="RECENT_CLAIM_DAYS",
    )  # window for "active students" on the admin dashboard

    # Roster import
    import_error_preview: int = Field(
        default=10, alias="IMPORT_ERROR_PREVIEW",
    )  # how many error messages / processed rows the report echoes back

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "populate_by_name": True,
        "extra": "ignore",
    }

    @property
    def max_upload_size_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024

    @property
    def email_suffix(self) -> str:
        return f"@{self.institution_email_domain.lower()}"

    def is_institutional_email(self, email: str) -> bool:
        return email.strip().lower().endswith(self.email_suffix)

settings = Settings()
