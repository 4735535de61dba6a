"""Shared configuration loaded from environment / .env file."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application-wide settings, populated from env vars or .env file."""

    # HTTP fetching
    request_timeout: float = Field(default=60.0, description="Per-request timeout in seconds")
    user_agent: str = "dataset-ingest/0.1 (+https://github.com/labring/FastGPT)"
    max_file_bytes: int = Field(
        default=100 * 1024 * 1024,
        description="Upper bound for a buffered remote file; larger bodies are rejected",
    )

    # Retry shell
    max_retries: int = Field(default=3, description="Attempts per fetch for transient errors")
    retry_wait_min: float = 1.0
    retry_wait_max: float = 10.0

    # Chunking defaults
    default_chunk_size: int = 512
    default_chunk_overlap: int = 64

    # Local object store (directory-backed)
    object_store_root: str = "data/objects"

    # Platform gateway used by the Feishu / Yuque connectors
    pro_api_base_url: str = Field(
        default="",
        description=(
            "Base URL of the platform gateway service, e.g. "
            "'http://fastgpt-pro:3000/api'. Leave empty to disable platform connectors."
        ),
    )
    pro_api_root_key: str = ""

    # Optional remote PDF parse service
    custom_pdf_parse_url: str = ""
    custom_pdf_parse_key: str = ""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


# Singleton — import `settings` wherever needed.
settings = Settings()
