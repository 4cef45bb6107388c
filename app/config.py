"""
Application configuration with Pydantic Settings for validation and type safety.
Supports environment-specific configurations and .env file loading.
"""

from enum import Enum
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator


class Environment(str, Enum):
    """Application environment types"""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class Settings(BaseSettings):
    """
    Application settings with validation.
    Settings are loaded from environment variables or .env file.
    """

    # Application settings
    app_name: str = Field(default="TMC Recipe Manager", description="Application name")
    app_version: str = Field(default="2.0.0", description="Application version")
    environment: Environment = Field(
        default=Environment.DEVELOPMENT, description="Application environment"
    )
    debug: bool = Field(default=False, description="Debug mode")

    # Server settings
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, ge=1, le=65535, description="Server port")

    # MongoDB settings
    mongo_uri: str = Field(
        default="mongodb://localhost:27017", description="MongoDB connection URI"
    )
    mongo_db_name: str = Field(
        default="tmc-recipe-manager", description="MongoDB database name"
    )
    db_init_attempts: int = Field(
        default=5, ge=1, description="Database connection retry attempts"
    )
    db_init_delay_sec: float = Field(
        default=2.0, ge=0, description="Delay between DB connection attempts"
    )

    # Collections (embedded shape)
    recipes_collection: str = Field(default="recetas_optimizadas")
    meal_plans_collection: str = Field(default="planes_comidas_optimizados")
    clients_collection: str = Field(default="clientes_optimizados")
    users_collection: str = Field(default="users")

    # Collections (legacy normalized shape)
    legacy_recipes_collection: str = Field(default="recetas")
    legacy_ingredients_collection: str = Field(default="ingredientes")
    legacy_plans_collection: str = Field(default="planes")
    legacy_plan_recipes_collection: str = Field(default="planRecetas")

    # Authentication
    jwt_secret: str = Field(
        default="change-me-in-production", description="Access token signing secret"
    )
    jwt_refresh_secret: str = Field(
        default="change-me-too", description="Refresh token signing secret"
    )
    jwt_algorithm: str = Field(default="HS256", description="JWT signing algorithm")
    jwt_expire_minutes: int = Field(
        default=7 * 24 * 60, ge=1, description="Access token lifetime"
    )
    jwt_refresh_expire_minutes: int = Field(
        default=30 * 24 * 60, ge=1, description="Refresh token lifetime"
    )

    # Migration
    migration_default_client_id: Optional[str] = Field(
        default=None,
        description="Client id assigned to migrated plans (a fresh id when unset)",
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(
        default="%(asctime)s %(levelname)s %(name)s: %(message)s",
        description="Log format string",
    )

    # CORS settings
    cors_origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"],
        description="Allowed CORS origins",
    )
    cors_allow_credentials: bool = Field(
        default=True, description="Allow CORS credentials"
    )
    cors_allow_methods: list[str] = Field(
        default=["*"], description="Allowed HTTP methods"
    )
    cors_allow_headers: list[str] = Field(
        default=["*"], description="Allowed HTTP headers"
    )

    # API settings
    api_prefix: str = Field(default="/api", description="API route prefix")
    api_title: str = Field(
        default="TMC Recipe Manager API", description="API documentation title"
    )
    api_description: str = Field(
        default="Recipes, clients and embedded meal plans on MongoDB",
        description="API documentation description",
    )

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    @field_validator("environment", mode="before")
    @classmethod
    def validate_environment(cls, v):
        """Validate and normalize environment value"""
        if isinstance(v, str):
            return Environment(v.lower())
        return v

    def is_production(self) -> bool:
        """Check if running in production environment"""
        return self.environment == Environment.PRODUCTION

    def is_development(self) -> bool:
        """Check if running in development environment"""
        return self.environment == Environment.DEVELOPMENT


# Global settings instance
settings = Settings()

MONGO_URI = settings.mongo_uri
MONGO_DB = settings.mongo_db_name
