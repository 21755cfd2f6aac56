from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

import httpx

from tachyon.api.storage_api import StorageApi
from tachyon.domain.types.image import TransformResult
from tachyon.domain.types.origin import OriginObject, OriginSource
from tachyon.io.decorators import sync_compatible
from tachyon.io.exceptions import OriginError, SourceNotFoundError
from tachyon.io.settings import TachyonSettings
from tachyon.io.url import build_origin_url, canonical_query, presigned_params

logger = logging.getLogger(__name__)


class OriginApi:
    """
    Fetches source images.

    The HTTP origin (``DOMAIN``) is tried first; the S3 bucket is the
    fallback when the HTTP origin reports 404, and the only origin when no
    domain is configured.
    """

    def __init__(
        self,
        settings: TachyonSettings,
        storage: Optional[StorageApi] = None,
        client: Optional[httpx.AsyncClient] = None,
        retry_count: int = 2,
        retry_sleep_sec: float = 0.5,
    ):
        self._settings = settings
        self._storage = storage
        self._client = client
        self._retry_count = retry_count
        self._retry_sleep_sec = retry_sleep_sec

    @property
    def storage(self) -> StorageApi:
        if self._storage is None:
            self._storage = StorageApi(self._settings)
        return self._storage

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._settings.ORIGIN_TIMEOUT, follow_redirects=True
            )
        return self._client

    async def _fetch_http(self, key: str) -> OriginObject:
        url = build_origin_url(self._settings.DOMAIN, key)
        client = self._get_client()
        for attempt in range(self._retry_count + 1):
            try:
                resp = await client.get(url)
            except httpx.TransportError as e:
                if attempt < self._retry_count:
                    logger.warning("GET %s failed (%s), retrying", url, e)
                    await asyncio.sleep(self._retry_sleep_sec)
                    continue
                raise OriginError(f"GET {url} failed: {e}") from e
            if resp.status_code >= 500 and attempt < self._retry_count:
                logger.warning("GET %s returned %s, retrying", url, resp.status_code)
                await asyncio.sleep(self._retry_sleep_sec)
                continue
            break
        if resp.status_code == 404:
            raise SourceNotFoundError(key)
        if not resp.is_success:
            raise OriginError(f"HTTP error! status: {resp.status_code}", status_code=resp.status_code)
        logger.info("GET %s", url)
        return OriginObject(
            Key=key,
            Body=resp.content,
            ContentType=resp.headers.get("content-type"),
            ETag=resp.headers.get("etag"),
            LastModified=resp.headers.get("last-modified"),
            source=OriginSource.HTTP,
        )

    async def _fetch_s3(self, key: str, params: Dict[str, Any]) -> OriginObject:
        bucket = self._settings.S3_BUCKET
        presigned = presigned_params(params)
        if presigned.get("X-Amz-Algorithm"):
            return await self.storage.get_presigned(bucket, key, presigned)
        return await self.storage.get(bucket, key)

    @sync_compatible
    async def fetch(self, key: str, params: Optional[Dict[str, Any]] = None) -> OriginObject:
        params = params or {}
        if self._settings.DOMAIN:
            try:
                return await self._fetch_http(key)
            except SourceNotFoundError:
                if not self._settings.S3_BUCKET:
                    raise
                logger.info("%s not found over HTTP, falling back to S3", key)
        if self._settings.S3_BUCKET:
            return await self._fetch_s3(key, params)
        raise OriginError("No origin configured; set DOMAIN or S3_BUCKET")

    @sync_compatible
    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
        if self._storage is not None:
            await self._storage.close()


class CacheWriter:
    """Stores transformed output in ``CACHE_BUCKET``."""

    def __init__(self, settings: TachyonSettings, storage: StorageApi):
        self._settings = settings
        self._storage = storage

    @property
    def enabled(self) -> bool:
        return bool(self._settings.CACHE_BUCKET)

    @staticmethod
    def cache_key(key: str, params: Dict[str, Any]) -> str:
        query = canonical_query(params)
        return f"{key}?{query}" if query else key

    @sync_compatible
    async def write(self, key: str, params: Dict[str, Any], result: TransformResult) -> Optional[str]:
        """Upload ``result``; returns the cache key, or None when caching is off."""
        if not self.enabled:
            return None
        cache_key = self.cache_key(key, params)
        await self._storage.put(
            self._settings.CACHE_BUCKET,
            cache_key,
            result.data,
            content_type=result.content_type,
            cache_control=f"max-age={self._settings.MAX_AGE}",
        )
        logger.debug("Cached %s (%s bytes)", cache_key, result.size)
        return cache_key
