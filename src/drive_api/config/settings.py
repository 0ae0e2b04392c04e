# src/drive_api/config/settings.py
from functools import lru_cache
from typing import List, Optional, Union

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Single source of truth for all application settings.

    Configuration precedence:
    1. Environment variables (highest priority)
    2. .env file (if exists)
    3. Default values in this class (lowest priority)

    Usage:
        from drive_api.config.settings import get_settings
        settings = get_settings()
        bucket = settings.s3_bucket
    """

    # Application Settings
    app_name: str = Field(
        default="cloud-drive-api",
        description="Application name"
    )

    app_env: str = Field(
        default="development",
        description="Runtime environment: development or production"
    )

    host: str = Field(default="0.0.0.0", description="Interface the server binds to")
    port: int = Field(default=5000, description="Port the server listens on")

    api_prefix: str = Field(
        default="/api",
        description="Path prefix every route is mounted under"
    )

    cors_origins: Union[List[str], str] = Field(
        default=["*"],
        description="Allowed CORS origins (comma separated in the environment)"
    )

    # AWS Core Settings
    aws_region: str = Field(default="us-east-1")

    aws_endpoint_url: Optional[str] = Field(
        default=None,
        description="Override endpoint for local emulators (moto server, localstack)"
    )

    # S3 Configuration
    s3_bucket: str = Field(
        default="cloud-drive-files",
        description="S3 bucket holding uploaded objects"
    )

    # DynamoDB Configuration
    dynamodb_table: str = Field(
        default="cloud-drive-files",
        description="DynamoDB table keyed by (userId, fileId)"
    )

    # Cognito Configuration
    cognito_client_id: str = Field(
        default="",
        description="Cognito user pool app client id (no client secret)"
    )

    # Upload / link policy
    max_upload_size_bytes: int = Field(default=50 * 1024 * 1024)
    download_url_ttl_seconds: int = Field(default=3600)
    default_share_ttl_seconds: int = Field(default=86400)
    max_share_ttl_seconds: int = Field(
        default=604800,
        description="SigV4 presigned URLs cannot outlive seven days"
    )
    orphan_grace_seconds: int = Field(
        default=3600,
        description="Unrecorded objects younger than this may belong to an upload in progress"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )

    @field_validator("app_env", mode="before")
    @classmethod
    def normalize_app_env(cls, v):
        """Map short environment names onto the two supported values."""
        if v:
            mode_mapping = {
                "dev": "development",
                "local": "development",
                "prod": "production",
            }
            v = mode_mapping.get(str(v).lower(), str(v).lower())
        valid_envs = ["development", "production"]
        if v not in valid_envs:
            raise ValueError(f"Invalid app_env: {v}. Must be one of {valid_envs}")
        return v

    @field_validator("cors_origins", mode="before")
    @classmethod
    def split_cors_origins(cls, v):
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator("api_prefix")
    @classmethod
    def normalize_api_prefix(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if v and not v.startswith("/"):
            v = f"/{v}"
        return v

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    def get_environment_dict(self) -> dict:
        """Get non-secret configuration as a dictionary for display."""
        return {
            "APP_ENV": self.app_env,
            "HOST": self.host,
            "PORT": str(self.port),
            "API_PREFIX": self.api_prefix,
            "AWS_REGION": self.aws_region,
            "AWS_ENDPOINT_URL": self.aws_endpoint_url or "",
            "S3_BUCKET": self.s3_bucket,
            "DYNAMODB_TABLE": self.dynamodb_table,
            "COGNITO_CLIENT_ID": self.cognito_client_id,
            "MAX_UPLOAD_SIZE_BYTES": str(self.max_upload_size_bytes),
            "ORPHAN_GRACE_SECONDS": str(self.orphan_grace_seconds),
            "LOG_LEVEL": self.log_level,
        }

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    This ensures we only create one Settings instance per process.
    """
    return Settings()
