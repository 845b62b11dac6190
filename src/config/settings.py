"""
Application configuration using Pydantic settings.

Configuration is loaded from environment variables with sensible defaults.
Using Pydantic's BaseSettings means we get:
- Type validation at startup (fail fast if config is wrong)
- Documentation of what's required vs optional
- Easy testing with different configurations

Mock modes enable local development without external services.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    For lists (like cors_origins), use comma-separated values in env.
    """

    # API Configuration
    api_title: str = "Video Intake API"
    api_version: str = "v1"
    port: int = Field(
        default=5000,
        description="Port the development server listens on"
    )
    frontend_url: str = Field(
        default="http://localhost:3000",
        description="Base URL of the frontend. Viewing pages live at {frontend_url}/user/{id}."
    )

    # Snowflake Configuration
    snowflake_account: str = Field(
        default="",
        description="Snowflake account identifier"
    )
    snowflake_user: str = Field(
        default="",
        description="Snowflake service account username"
    )
    snowflake_password: str = Field(
        default="",
        description="Snowflake service account password"
    )
    snowflake_private_key_path: Optional[str] = Field(
        default=None,
        description="Path to RSA private key file for key-pair authentication"
    )
    snowflake_private_key_base64: Optional[str] = Field(
        default=None,
        description="Base64-encoded private key (for deployment, alternative to file path)"
    )
    snowflake_database: str = Field(
        default="VIDEO_INTAKE",
        description="Snowflake database name"
    )
    snowflake_schema: str = Field(
        default="PUBLIC",
        description="Snowflake schema name"
    )
    snowflake_warehouse: str = Field(
        default="COMPUTE_WH",
        description="Snowflake warehouse for query execution"
    )
    snowflake_role: Optional[str] = Field(
        default=None,
        description="Snowflake role to use (optional)"
    )
    snowflake_mock_mode: bool = Field(
        default=False,
        description="Keep submissions in memory instead of Snowflake. Records are lost on restart."
    )

    # R2/S3 Storage Configuration
    r2_account_id: str = Field(
        default="",
        description="Cloudflare account ID for R2"
    )
    r2_access_key_id: str = Field(
        default="",
        description="R2 access key ID"
    )
    r2_secret_access_key: str = Field(
        default="",
        description="R2 secret access key"
    )
    r2_bucket_name: str = Field(
        default="video-templates",
        description="R2 bucket name for videos and QR images"
    )
    r2_endpoint_url: Optional[str] = Field(
        default=None,
        description="R2 endpoint URL. Auto-constructed from account_id if not provided."
    )
    r2_public_base_url: str = Field(
        default="",
        description="Public base URL of the bucket (custom domain or r2.dev URL). Object URLs are {base}/{key}."
    )
    r2_video_folder: str = Field(
        default="video_templates",
        description="Key prefix for uploaded videos"
    )
    r2_qr_folder: str = Field(
        default="qrcodes",
        description="Key prefix for QR images when QR codes are stored remotely"
    )
    r2_mock_mode: bool = Field(
        default=False,
        description="Use in-memory mock instead of real R2. Enables local dev without object storage."
    )

    # QR Codes
    qr_storage: Literal["remote", "local"] = Field(
        default="remote",
        description="Where QR images live: 'remote' (object storage) or 'local' (served from upload_dir)"
    )
    upload_dir: str = Field(
        default="uploads",
        description="Local directory for QR images in local mode"
    )
    static_url_prefix: str = Field(
        default="/uploads",
        description="URL prefix that serves upload_dir in local mode"
    )

    # Mail Configuration
    mail_host: str = Field(
        default="",
        description="SMTP relay host"
    )
    mail_port: int = Field(
        default=587,
        description="SMTP relay port"
    )
    mail_secure: bool = Field(
        default=False,
        description="Use implicit TLS (usually port 465). Otherwise STARTTLS is used when offered."
    )
    mail_user: str = Field(
        default="",
        description="SMTP username. Login is skipped when empty."
    )
    mail_password: str = Field(
        default="",
        description="SMTP password"
    )
    mail_sender: str = Field(
        default="",
        description="From address for notification emails"
    )
    mail_reject_unauthorized: bool = Field(
        default=True,
        description="Verify the relay's TLS certificate"
    )
    mail_timeout_seconds: float = Field(
        default=30.0,
        description="Socket timeout for the SMTP connection"
    )
    admin_email: str = Field(
        default="",
        description="Administrator address that receives submission notifications"
    )
    mail_mock_mode: bool = Field(
        default=False,
        description="Record emails in memory instead of sending them."
    )
    notification_required: bool = Field(
        default=False,
        description="Fail the submission when the admin email cannot be sent. Default is best-effort."
    )

    # Application Behavior
    max_upload_size_mb: int = Field(
        default=100,
        description="Maximum video size in MB."
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    # CORS
    cors_origins: str = Field(
        default="*",
        description="Comma-separated list of allowed CORS origins."
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse comma-separated CORS origins into a list."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def r2_endpoint(self) -> str:
        """
        Construct R2 endpoint URL from account ID.

        R2 endpoints follow the pattern: https://{account_id}.r2.cloudflarestorage.com
        """
        if self.r2_endpoint_url:
            return self.r2_endpoint_url
        return f"https://{self.r2_account_id}.r2.cloudflarestorage.com"

    @property
    def serves_local_qr_codes(self) -> bool:
        return self.qr_storage == "local"

    def validate_required_fields(self) -> list[str]:
        """
        Validate that required fields are set based on mock mode settings.

        Returns list of missing required fields.
        This is separate from Pydantic validation because requirements
        depend on whether we're in mock mode.
        """
        missing = []

        if not self.frontend_url:
            missing.append("FRONTEND_URL")

        # Snowflake only required if not in mock mode
        if not self.snowflake_mock_mode:
            if not self.snowflake_account:
                missing.append("SNOWFLAKE_ACCOUNT")
            if not self.snowflake_user:
                missing.append("SNOWFLAKE_USER")
            # Need either password or private key
            if (
                not self.snowflake_password
                and not self.snowflake_private_key_path
                and not self.snowflake_private_key_base64
            ):
                missing.append("SNOWFLAKE_PASSWORD or SNOWFLAKE_PRIVATE_KEY_PATH")

        # R2 only required if not in mock mode
        if not self.r2_mock_mode:
            if not self.r2_account_id and not self.r2_endpoint_url:
                missing.append("R2_ACCOUNT_ID")
            if not self.r2_access_key_id:
                missing.append("R2_ACCESS_KEY_ID")
            if not self.r2_secret_access_key:
                missing.append("R2_SECRET_ACCESS_KEY")
            if not self.r2_public_base_url:
                missing.append("R2_PUBLIC_BASE_URL")

        # Mail only required if not in mock mode
        if not self.mail_mock_mode:
            if not self.mail_host:
                missing.append("MAIL_HOST")
            if not self.mail_sender:
                missing.append("MAIL_SENDER")
            if not self.admin_email:
                missing.append("ADMIN_EMAIL")

        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache means we only load settings once per process.
    For tests, you can call get_settings.cache_clear() to reset.
    """
    return Settings()
