from pydantic_settings import BaseSettings
from pydantic import field_validator, model_validator
from functools import lru_cache


DEFAULT_SECRET_KEY = "development-secret-key-change-in-production"

# Secrets that must never reach a production deployment
WEAK_SECRET_KEYS = {
    DEFAULT_SECRET_KEY,
    "changeme",
    "secret",
    "password",
    "supersecret",
    "your-secret-key",
    "jwt-secret",
}

MIN_PRODUCTION_SECRET_LENGTH = 32


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    DATABASE_URL: str = "postgresql+asyncpg://localhost:5432/field_ops"

    @field_validator('DATABASE_URL', mode='before')
    @classmethod
    def convert_database_url(cls, v: str) -> str:
        """Convert postgresql:// to postgresql+asyncpg:// for async support."""
        if v and v.startswith('postgresql://'):
            return v.replace('postgresql://', 'postgresql+asyncpg://', 1)
        return v

    # Auth
    SECRET_KEY: str = DEFAULT_SECRET_KEY
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 120

    # CORS
    FRONTEND_URL: str = "http://localhost:3000"

    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str | None = None

    # Backend error messages are echoed to clients on 500s unless disabled
    EXPOSE_BACKEND_ERRORS: bool = True

    # Shop location used by the time clock geofence
    SHOP_NAME: str = "Pontifex Industries Shop"
    SHOP_LATITUDE: float = 33.97121
    SHOP_LONGITUDE: float = -84.18066
    GEOFENCE_RADIUS_METERS: float = 20.0
    BYPASS_LOCATION_CHECK: bool = False

    # Job workflow
    WORKFLOW_ENFORCE_ORDER: bool = True

    # Standby billing
    STANDBY_HOURLY_RATE: float = 189.00
    STANDBY_MINIMUM_HOURS: float = 1.0
    STANDBY_POLICY_VERSION: str = "v1.0"

    # Access requests
    MINIMUM_APPLICANT_AGE: int = 18

    # Drive-time buffer added before the jobsite arrival
    DRIVE_TIME_BUFFER_HOURS: float = 0.0

    class Config:
        env_file = ".env"
        case_sensitive = True

    @model_validator(mode="after")
    def validate_production_settings(self) -> "Settings":
        """Reject weak secrets and force DEBUG off outside development."""
        if self.is_production:
            if self.SECRET_KEY in WEAK_SECRET_KEYS:
                raise ValueError("SECRET_KEY must be changed from the default in production")
            if len(self.SECRET_KEY) < MIN_PRODUCTION_SECRET_LENGTH:
                raise ValueError(
                    f"SECRET_KEY must be at least {MIN_PRODUCTION_SECRET_LENGTH} characters in production"
                )
            self.DEBUG = False
        return self

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() in ("production", "staging")

    @property
    def DOCS_ENABLED(self) -> bool:
        return not self.is_production

    @property
    def sqlalchemy_echo(self) -> bool:
        """SQL echo logs bound parameters, never enable it in production."""
        return self.DEBUG and not self.is_production


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
