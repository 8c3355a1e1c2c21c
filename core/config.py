"""
Configuration management using Pydantic Settings
Handles environment variables and validation
"""
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import ConfigDict, Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    # Environment
    environment: str = Field(default="development")
    debug: bool = Field(default=False)

    # Application
    app_name: str = "RunMemories"
    app_version: str = "0.1.0"
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3001)
    frontend_url: str = Field(default="http://localhost:5173")
    backend_url: str = Field(default="http://localhost:3001")

    # Storage
    storage_dir: Path = Field(default=Path("pdfs"))

    # Payment provider
    stripe_secret_key: Optional[SecretStr] = Field(default=None)
    stripe_webhook_secret: Optional[SecretStr] = Field(default=None)
    enable_webhook_idempotency: bool = Field(default=True)

    # Email settings
    sendgrid_api_key: Optional[SecretStr] = Field(default=None)
    from_email: str = Field(default="noreply@runmemories.com")
    from_name: str = Field(default="RunMemories")

    # Upload limits
    max_upload_bytes: int = Field(default=500 * 1024 * 1024)
    min_pdf_bytes: int = Field(default=10 * 1024)

    # Previews
    placeholder_preview_width: int = Field(default=300, gt=0)
    preview_max_width: int = Field(default=400, gt=0)
    preview_jpeg_quality: int = Field(default=70, ge=1, le=95)

    # Performance
    request_timeout: int = Field(default=30)

    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")  # json or text

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v):
        allowed = ["development", "test", "staging", "production"]
        if v not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v):
        if v not in ("json", "text"):
            raise ValueError("log_format must be 'json' or 'text'")
        return v

    @field_validator("frontend_url", "backend_url")
    @classmethod
    def strip_trailing_slash(cls, v):
        return v.rstrip("/")

    @model_validator(mode="after")
    def validate_production_settings(self):
        """Validate production-specific settings after all fields are set"""
        if self.environment == "production":
            if not self.stripe_secret_key:
                raise ValueError("Stripe secret key required in production")
            if not self.stripe_webhook_secret:
                raise ValueError("Stripe webhook secret required in production")
        return self

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def previews_dir(self) -> Path:
        return self.storage_dir / "previews"

    @property
    def processed_events_path(self) -> Path:
        return self.storage_dir / "processed-webhook-events.log"

    @property
    def email_enabled(self) -> bool:
        return self.sendgrid_api_key is not None and bool(self.sendgrid_api_key.get_secret_value())

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra environment variables
    )

    def model_dump(self, **kwargs):
        """Override to mask sensitive fields when serializing"""
        data = super().model_dump(**kwargs)

        sensitive_fields = [
            "stripe_secret_key",
            "stripe_webhook_secret",
            "sendgrid_api_key",
        ]

        for field in sensitive_fields:
            if field in data and data[field]:
                if hasattr(data[field], "get_secret_value"):
                    value = data[field].get_secret_value()
                else:
                    value = str(data[field])

                # Keep first 4 chars for identification
                if len(value) > 4:
                    data[field] = value[:4] + "*" * (len(value) - 4)
                else:
                    data[field] = "*" * len(value)

        return data


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


# Global settings instance
settings = get_settings()
