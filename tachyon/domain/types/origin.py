import datetime
import enum
from typing import Any, Dict, Optional, Union

from pydantic import Field, field_serializer

from tachyon.domain.types.base import BaseInfo


class OriginSource(str, enum.Enum):
    HTTP = "http"
    S3 = "s3"


class OriginObject(BaseInfo):
    """A source image fetched from the origin"""

    key: str = Field(..., description="Key of the object", alias="Key")
    body: bytes = Field(..., repr=False, alias="Body")
    content_type: Optional[str] = Field(default=None, alias="ContentType")
    etag: Optional[str] = Field(default=None, alias="ETag")
    last_modified: Optional[Union[datetime.datetime, str]] = Field(
        default=None, alias="LastModified"
    )
    source: OriginSource = OriginSource.HTTP

    @property
    def size(self) -> int:
        return len(self.body)

    @field_serializer("body")
    def serialize_body(self, body: bytes) -> int:
        """Only the size is serialised"""
        return len(body)

    @classmethod
    def from_s3_response(cls, key: str, body: bytes, response: Dict[str, Any]) -> "OriginObject":
        return cls(
            Key=key,
            Body=body,
            ContentType=response.get("ContentType"),
            ETag=response.get("ETag"),
            LastModified=response.get("LastModified"),
            source=OriginSource.S3,
        )
