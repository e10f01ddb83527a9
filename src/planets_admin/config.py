"""Runtime settings read from the process environment."""

import os

from pydantic import BaseModel

from planets_admin.errors import ConfigError

STORAGE_VARS = ("R2_ENDPOINT", "R2_ACCESS_KEY_ID", "R2_SECRET_ACCESS_KEY", "R2_BUCKET_NAME")


class Settings(BaseModel):
    """Application settings.

    Storage credentials are optional here so the API and the OpenAPI export
    work without a bucket; ``require_storage`` enforces them when the S3
    client is actually built.
    """

    r2_endpoint: str | None = None
    r2_access_key_id: str | None = None
    r2_secret_access_key: str | None = None
    r2_bucket_name: str | None = None
    r2_region: str = "auto"
    users_file: str | None = None
    super_admin_emails: list[str] = []
    api_title: str = "planets-admin"
    api_version: str = "1.0.0"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "Settings":
        env = os.environ if environ is None else environ
        emails = [e.strip() for e in env.get("SUPER_ADMIN_EMAILS", "").split(",") if e.strip()]
        return cls(
            r2_endpoint=env.get("R2_ENDPOINT") or None,
            r2_access_key_id=env.get("R2_ACCESS_KEY_ID") or None,
            r2_secret_access_key=env.get("R2_SECRET_ACCESS_KEY") or None,
            r2_bucket_name=env.get("R2_BUCKET_NAME") or None,
            r2_region=env.get("R2_REGION") or "auto",
            users_file=env.get("PLANETS_USERS_FILE") or None,
            super_admin_emails=emails,
            api_title=env.get("PLANETS_API_TITLE") or "planets-admin",
            api_version=env.get("PLANETS_API_VERSION") or "1.0.0",
            log_level=env.get("LOG_LEVEL") or "INFO",
        )

    def require_storage(self) -> None:
        """Raise ConfigError naming the first missing storage variable."""
        for var in STORAGE_VARS:
            if not getattr(self, var.lower()):
                raise ConfigError(f"{var} environment variable is required")
