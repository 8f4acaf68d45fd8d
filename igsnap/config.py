"""Configuration management using Pydantic Settings."""

from enum import Enum

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings


class StorageTarget(str, Enum):
    """Where snapshots are persisted."""
    DOCUMENT_STORE = "document_store"
    OBJECT_STORE = "object_store"
    LOCAL_FILE = "local_file"


class DocumentBackend(str, Enum):
    """Document store implementation."""
    MONGO = "mongo"
    SQLITE = "sqlite"
    REDIS = "redis"


class MatcherStrategy(str, Enum):
    """How the profile record is picked out of a remote dataset."""
    USERNAME = "username"
    FIRST_RECORD = "first_record"
    NO_SHORT_CODE = "no_short_code"


class LogFormat(str, Enum):
    """Log output format."""
    JSON = "json"
    CONSOLE = "console"


class ScraperConfig(BaseSettings):
    """Configuration for the igsnap pipeline."""

    # Apify actor settings
    apify_token: str | None = Field(
        default=None,
        validation_alias=AliasChoices("IGSNAP_APIFY_TOKEN", "APIFY_API_TOKEN"),
    )
    apify_actor_id: str = "apify/instagram-scraper"
    apify_results_type: str = "details"
    results_limit: int = 100
    apify_wait_secs: int | None = None

    # Dataset fetch retry
    fetch_attempts: int = 3
    fetch_retry_delay_seconds: float = 2.0

    # Matching
    profile_matcher: MatcherStrategy = MatcherStrategy.USERNAME

    # Storage targets
    storage_targets: set[StorageTarget] = {StorageTarget.DOCUMENT_STORE}
    document_backend: DocumentBackend = DocumentBackend.SQLITE
    sqlite_path: str = ".igsnap.db"
    redis_url: str = "redis://localhost:6379/0"
    data_dir: str = "data"

    mongodb_uri: str | None = Field(
        default=None,
        validation_alias=AliasChoices("IGSNAP_MONGODB_URI", "MONGODB_URI"),
    )
    mongodb_db_name: str = Field(
        default="instagram-scraper",
        validation_alias=AliasChoices("IGSNAP_MONGODB_DB_NAME", "MONGODB_DB_NAME"),
    )
    mongodb_collection: str = "profiles"

    # Object store (S3)
    aws_region: str = Field(
        default="us-east-1",
        validation_alias=AliasChoices("IGSNAP_AWS_REGION", "AWS_REGION"),
    )
    aws_access_key_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("IGSNAP_AWS_ACCESS_KEY_ID", "AWS_ACCESS_KEY_ID"),
    )
    aws_secret_access_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("IGSNAP_AWS_SECRET_ACCESS_KEY", "AWS_SECRET_ACCESS_KEY"),
    )
    s3_bucket_name: str | None = Field(
        default=None,
        validation_alias=AliasChoices("IGSNAP_S3_BUCKET_NAME", "S3_BUCKET_NAME"),
    )
    s3_public_base_url: str | None = None

    # Media relocation
    relocate_media: bool = True
    media_timeout_seconds: float = 30.0
    max_concurrency: int = 5

    # Read path / batch
    scrape_on_miss: bool = True
    request_delay_ms: int = 1000

    # Logging
    log_level: str = "INFO"
    log_format: LogFormat = LogFormat.CONSOLE

    model_config = {
        "env_prefix": "IGSNAP_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "populate_by_name": True,
    }

    @property
    def object_store_configured(self) -> bool:
        """True when an S3 bucket is available for media and snapshots."""
        return bool(self.s3_bucket_name)
