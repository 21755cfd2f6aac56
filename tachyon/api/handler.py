"""
Lambda function-URL adapter.

Turns an invocation event into an origin fetch plus a transform and builds
a buffered (base64) response.
"""

from __future__ import annotations

import asyncio
import base64
import logging
import os
from email.utils import formatdate
from typing import Any, Dict, List, Optional

from botocore.exceptions import BotoCoreError

from tachyon.api.origin_api import CacheWriter, OriginApi
from tachyon.domain.types.image import TransformResult
from tachyon.engine import TransformEngine
from tachyon.io.decorators import sync_compatible
from tachyon.io.env import load_settings
from tachyon.io.exceptions import OriginError, SourceNotFoundError, TachyonError
from tachyon.io.settings import TachyonSettings
from tachyon.io.url import merge_presign, parse_query, parse_request_path

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

ERRORS_HEADER = "X-Tachyon-Errors"
WEBP_HEADER = "x-webp"


def _text_response(status_code: int, body: str) -> Dict[str, Any]:
    return {
        "statusCode": status_code,
        "headers": {"Content-Type": "text/html"},
        "body": body,
        "isBase64Encoded": False,
    }


def _has_header(event: Dict[str, Any], name: str) -> bool:
    headers = event.get("headers") or {}
    return any(header.lower() == name for header in headers)


class TachyonHandler:
    def __init__(
        self,
        settings: Optional[TachyonSettings] = None,
        engine: Optional[TransformEngine] = None,
        origin: Optional[OriginApi] = None,
        cache: Optional[CacheWriter] = None,
    ):
        self.settings = settings or load_settings()
        self.engine = engine or TransformEngine(default_quality=self.settings.DEFAULT_QUALITY)
        self.origin = origin or OriginApi(self.settings)
        if cache is None and self.settings.CACHE_BUCKET:
            cache = CacheWriter(self.settings, self.origin.storage)
        self.cache = cache

    def parse_event(self, event: Dict[str, Any]) -> tuple[str, Dict[str, Any], List[str]]:
        """Origin key, merged parameters and parameter order of an event."""
        key = parse_request_path(event.get("rawPath") or "/", self.settings.PATH_PREFIX)
        params, order = parse_query(
            event.get("rawQueryString"), event.get("queryStringParameters")
        )
        if "webp" not in params:
            params["webp"] = _has_header(event, WEBP_HEADER)
        params, order = merge_presign(params, order)
        return key, params, order

    def build_response(self, result: TransformResult) -> Dict[str, Any]:
        headers = {
            "Cache-Control": f"max-age={self.settings.MAX_AGE}",
            "Last-Modified": formatdate(usegmt=True),
            "Content-Type": result.content_type,
        }
        if result.errors:
            headers[ERRORS_HEADER] = result.errors_header
        return {
            "statusCode": 200,
            "headers": headers,
            "body": base64.b64encode(result.data).decode("ascii"),
            "isBase64Encoded": True,
        }

    @sync_compatible
    async def handle(self, event: Dict[str, Any]) -> Dict[str, Any]:
        key, params, order = self.parse_event(event)
        try:
            source = await self.origin.fetch(key, params)
            result = await asyncio.to_thread(self.engine.transform, source.body, params, order)
        except SourceNotFoundError:
            logger.info("Source not found: %s", key)
            return _text_response(404, "File not found.")
        except TachyonError:
            logger.exception("Failed to transform %s", key)
            return _text_response(500, "Internal server error.")

        if self.cache is not None:
            try:
                await self.cache.write(key, params, result)
            except (OriginError, BotoCoreError) as e:
                logger.warning("Cache write for %s failed: %s", key, e)

        logger.info(
            "Served %s as %s %sx%s (%s bytes)",
            key,
            result.format,
            result.width,
            result.height,
            result.size,
        )
        return self.build_response(result)


_handler: Optional[TachyonHandler] = None


def handler(event: Dict[str, Any], context: Any = None) -> Dict[str, Any]:
    """Lambda entry point."""
    global _handler
    if _handler is None:
        _handler = TachyonHandler()
    return _handler.handle(event)
