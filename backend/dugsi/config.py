from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    data_path: Path = Path.home() / "DugsiHub"
    database_url: str | None = None
    # Uploads are counted while streaming; anything past this is rejected
    # before a single byte reaches the blob sink.
    max_upload_bytes: int = 25 * 1024 * 1024  # 25 MiB
    page_size: int = 12

    # HS256 session signing key. Must be at least 32 characters.
    auth_secret: str | None = None
    session_ttl_seconds: int = 7 * 24 * 3600
    remember_ttl_seconds: int = 30 * 24 * 3600
    session_cookie_name: str = "session"
    cookie_secure: bool = False

    # "authenticated": any signed-in principal may download a document.
    # "owner": only the uploader may.
    retrieval_policy: Literal["authenticated", "owner"] = "authenticated"

    # Small deployments keep PDF bytes in the documents table instead of a blob sink.
    inline_payloads: bool = False

    # Setting a bucket switches the blob sink from local disk to S3.
    s3_bucket: str | None = None
    s3_region: str = "us-east-1"
    s3_endpoint_url: str | None = None
    s3_public_base_url: str | None = None
    uploads_url_prefix: str = "/uploads"

    debug: bool = False
    api_prefix: str = "/api/v1"
    host: str = "127.0.0.1"
    port: int = 8000

    @property
    def db_path(self) -> Path:
        return self.data_path / "db.sqlite"

    @property
    def uploads_dir(self) -> Path:
        # Local fallback only. Not durable on ephemeral hosts.
        return self.data_path / "uploads"

    @property
    def sqlalchemy_url(self) -> str:
        return self.database_url or f"sqlite:///{self.db_path}"

    model_config = {"env_prefix": "DUGSI_"}


settings = Settings()
