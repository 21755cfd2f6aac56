"""
Runtime settings for the engine and the request layer.
"""

from __future__ import annotations

from typing import Optional
from urllib.parse import urlparse

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

TACHYON_ENV_FILENAME = "tachyon.env"


def _is_ssl_url(url: str) -> bool:
    """_is_ssl_url"""
    parsed_url = urlparse(url)
    return parsed_url.scheme == "https"


def _normalize_url(url: Optional[str]) -> str:
    """_normalize_url"""
    if not url:
        return ""
    parsed_url = urlparse(url)
    if not parsed_url.scheme:
        url = "https://" + url
    return url.rstrip("/")


class TachyonSettings(BaseSettings):
    """
    Settings model populated from environment variables or ``tachyon.env``
    via `pydantic-settings`.
    """

    DOMAIN: Optional[str] = Field(default=None, description="HTTP origin serving source images")
    S3_BUCKET: Optional[str] = Field(default=None, description="Bucket holding source images")
    S3_REGION: Optional[str] = None
    S3_ENDPOINT_URL: Optional[str] = None
    AWS_REGION: Optional[str] = None
    CACHE_BUCKET: Optional[str] = Field(default=None, description="Bucket for transformed output")

    DEFAULT_QUALITY: int = Field(default=82, ge=1, le=100)
    MAX_AGE: int = 31536000
    LOG_LEVEL: str = "INFO"
    PATH_PREFIX: str = "/tachyon/"
    ORIGIN_TIMEOUT: float = 30.0

    model_config = SettingsConfigDict(
        env_file=TACHYON_ENV_FILENAME,
        extra="ignore",
    )

    @field_validator("DOMAIN", "S3_ENDPOINT_URL")
    @classmethod
    def _normalize(cls, value: Optional[str]) -> Optional[str]:
        return _normalize_url(value) or None

    @field_validator("LOG_LEVEL")
    @classmethod
    def _upper(cls, value: str) -> str:
        return value.upper()

    def get_region(self) -> str:
        """Region for the S3 client, falling back to the AWS defaults."""
        return self.S3_REGION or self.AWS_REGION or "us-east-1"

    @property
    def has_origin(self) -> bool:
        return bool(self.DOMAIN or self.S3_BUCKET)

    @property
    def endpoint_uses_ssl(self) -> bool:
        if self.S3_ENDPOINT_URL is None:
            return True
        return _is_ssl_url(self.S3_ENDPOINT_URL)
