from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import aioboto3
import httpx
from botocore.config import Config
from botocore.exceptions import ClientError

from tachyon.domain.types.origin import OriginObject, OriginSource
from tachyon.io.decorators import sync_compatible
from tachyon.io.exceptions import OriginError, SourceNotFoundError
from tachyon.io.settings import TachyonSettings
from tachyon.io.url import build_s3_object_url

logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = ("NoSuchKey", "NotFound", "404")


# ----------------------------------- dataclasses -------------------------------------------
@dataclass
class StorageConfig:
    """Configuration for the S3 client."""

    service_name: str = "s3"
    addressing_style: str = "auto"
    max_pool_connections: int = 10
    read_timeout: int = 60
    connect_timeout: int = 10
    max_retries: int = 3

    def to_boto3_config(self, extra: Optional[Dict[str, Any]] = None) -> Config:
        """Convert to boto3 Config object."""
        s3_cfg = {"addressing_style": self.addressing_style}
        if extra and isinstance(extra.get(self.service_name), dict):
            s3_cfg.update(extra[self.service_name])
        return Config(
            signature_version="s3v4",
            s3=s3_cfg,
            retries={"max_attempts": self.max_retries, "mode": "standard"},
            connect_timeout=self.connect_timeout,
            read_timeout=self.read_timeout,
            max_pool_connections=self.max_pool_connections,
        )


def _is_not_found(e: ClientError) -> bool:
    status = e.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
    code = e.response.get("Error", {}).get("Code")
    return status == 404 or code in _NOT_FOUND_CODES


class StorageApi:
    """
    Async S3 client wrapper built on aioboto3.

    Used as the origin fallback for source images and as the target of
    cache writes. Credentials come from the default AWS provider chain.
    """

    def __init__(
        self,
        settings: TachyonSettings,
        config: Optional[StorageConfig] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._settings = settings
        self._raw_config = config or StorageConfig()
        self._config = self._raw_config.to_boto3_config()
        self._session = aioboto3.Session()
        self._client_cm = None
        self._client = None  # type: ignore
        self._http = http_client
        self._asyncio_lock: Optional[asyncio.Lock] = None

    # --------------- Properties ---------------
    @property
    def is_connected(self) -> bool:
        return self._client is not None

    @property
    def region(self) -> str:
        return self._settings.get_region()

    # --------------- Connection Management ---------------
    async def _get_lock(self) -> asyncio.Lock:
        if self._asyncio_lock is None:
            self._asyncio_lock = asyncio.Lock()
        return self._asyncio_lock

    async def _connect(self) -> "StorageApi":
        if self.is_connected:
            return self
        lock = await self._get_lock()
        async with lock:
            if self.is_connected:
                return self
            for name in ("botocore", "aioboto3", "aiobotocore"):
                logging.getLogger(name).setLevel(logging.WARNING)
            self._client_cm = self._session.client(
                service_name=self._raw_config.service_name,
                endpoint_url=self._settings.S3_ENDPOINT_URL,
                use_ssl=self._settings.endpoint_uses_ssl,
                config=self._config,
                region_name=self.region,
            )
            self._client = await self._client_cm.__aenter__()  # type: ignore
        return self

    async def _ensure_connected(self) -> None:
        if not self.is_connected:
            await self._connect()

    @sync_compatible
    async def close(self) -> None:
        """Close the underlying S3 and HTTP clients."""
        if self._client_cm is not None:
            await self._client_cm.__aexit__(None, None, None)
        self._client = None
        self._client_cm = None
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    # --------------- Object Operations ---------------
    @sync_compatible
    async def get(self, bucket: str, key: str) -> OriginObject:
        """Download an object with the service credentials."""
        await self._ensure_connected()
        try:
            resp = await self._client.get_object(Bucket=bucket, Key=key)
        except ClientError as e:
            if _is_not_found(e):
                raise SourceNotFoundError(key) from e
            raise OriginError(f"S3 get_object failed for {bucket}/{key}: {e}") from e
        body = resp["Body"]
        try:
            data = await body.read()
        finally:
            body.close()
        return OriginObject.from_s3_response(key, data, resp)

    @sync_compatible
    async def get_presigned(self, bucket: str, key: str, presigned: Dict[str, str]) -> OriginObject:
        """
        Download an object with the caller's presigned ``X-Amz-*`` query
        instead of the service credentials.
        """
        url = build_s3_object_url(bucket, key, self.region, self._settings.S3_ENDPOINT_URL)
        if self._http is None:
            self._http = httpx.AsyncClient(timeout=self._settings.ORIGIN_TIMEOUT)
        try:
            resp = await self._http.get(url, params=presigned)
        except httpx.HTTPError as e:
            raise OriginError(f"Presigned fetch failed for {key}: {e}") from e
        if resp.status_code == 404:
            raise SourceNotFoundError(key)
        if resp.status_code != 200:
            raise OriginError(
                f"Presigned fetch failed for {key}: HTTP {resp.status_code}",
                status_code=resp.status_code,
            )
        return OriginObject(
            Key=key,
            Body=resp.content,
            ContentType=resp.headers.get("content-type"),
            ETag=resp.headers.get("etag"),
            LastModified=resp.headers.get("last-modified"),
            source=OriginSource.S3,
        )

    @sync_compatible
    async def put(
        self,
        bucket: str,
        key: str,
        body: bytes,
        content_type: Optional[str] = None,
        cache_control: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
    ) -> str:
        """Upload object from bytes and return its ETag."""
        await self._ensure_connected()
        params: Dict[str, Any] = {"Bucket": bucket, "Key": key, "Body": body}
        if content_type:
            params["ContentType"] = content_type
        if cache_control:
            params["CacheControl"] = cache_control
        if metadata:
            params["Metadata"] = metadata
        try:
            resp = await self._client.put_object(**params)
        except ClientError as e:
            raise OriginError(f"S3 put_object failed for {bucket}/{key}: {e}") from e
        return resp.get("ETag", "")
