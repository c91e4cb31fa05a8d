"""Configuration for the Cloudant client."""

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

AUTH_TYPES = {"basic", "iam", "couchdb_session", "bearertoken", "noauth"}

# Default read timeout (2.5 minutes)
READ_TIMEOUT = 150.0


class CloudantConfig(BaseSettings):
    """Configuration for the Cloudant client.

    All settings can be configured via environment variables with CLOUDANT_ prefix.

    Authentication Selection:
        - auth_type unset (default): IAM if CLOUDANT_APIKEY is set, basic if
          username and password are set, bearer token if CLOUDANT_BEARER_TOKEN
          is set, otherwise no authentication
        - auth_type="couchdb_session": cookie session via POST /_session
        - auth_type="basic" / "iam" / "bearertoken" / "noauth": forced
    """

    model_config = SettingsConfigDict(
        env_prefix="CLOUDANT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    url: str = Field(
        default="http://localhost:5984",
        validation_alias=AliasChoices("url", "CLOUDANT_URL", "CLOUDANT_SERVICE_URL"),
    )
    timeout: float = Field(default=READ_TIMEOUT, ge=1.0, le=600.0)

    # Authentication
    auth_type: str | None = Field(
        default=None,
        description="Authentication: basic, iam, couchdb_session, bearertoken or noauth",
    )
    username: str | None = Field(default=None)
    password: str | None = Field(default=None)
    apikey: str | None = Field(default=None)
    iam_url: str = Field(default="https://iam.cloud.ibm.com")
    bearer_token: str | None = Field(default=None)

    # Transport behaviour
    max_retries: int = Field(
        default=2,
        ge=0,
        le=10,
        description="Retries for connection errors, 429 and 5xx responses (0 disables)",
    )
    disable_ssl_verification: bool = Field(default=False)
    enable_gzip_compression: bool = Field(
        default=False,
        description="Gzip-compress JSON request bodies",
    )

    log_level: str = Field(default="INFO")

    @field_validator("auth_type")
    @classmethod
    def validate_auth_type(cls, v: str | None) -> str | None:
        """Validate auth type is one of the allowed values."""
        if v is None or v == "":
            return None
        if v.lower() not in AUTH_TYPES:
            raise ValueError(f"Invalid auth_type: {v}. Must be one of {sorted(AUTH_TYPES)}")
        return v.lower()

    @field_validator("url", "iam_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate URL format and strip trailing slash."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("URL must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a valid Python logging level."""
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"Invalid log level: {v}")
        return v.upper()

    @property
    def resolved_auth_type(self) -> str:
        """Determine the authentication scheme to use.

        Returns:
            One of the AUTH_TYPES values.
        """
        if self.auth_type:
            return self.auth_type
        if self.apikey:
            return "iam"
        if self.username and self.password:
            return "basic"
        if self.bearer_token:
            return "bearertoken"
        return "noauth"

    def validate_config(self) -> None:
        """Validate that required credentials are present for the auth type.

        Raises:
            ValueError: If configuration is incomplete for the selected scheme.
        """
        auth_type = self.resolved_auth_type

        if auth_type in ("basic", "couchdb_session"):
            if not (self.username and self.password):
                raise ValueError(
                    f"{auth_type} authentication requires CLOUDANT_USERNAME and "
                    "CLOUDANT_PASSWORD to be set"
                )
        elif auth_type == "iam":
            if not self.apikey:
                raise ValueError("iam authentication requires CLOUDANT_APIKEY to be set")
        elif auth_type == "bearertoken":
            if not self.bearer_token:
                raise ValueError(
                    "bearertoken authentication requires CLOUDANT_BEARER_TOKEN to be set"
                )
