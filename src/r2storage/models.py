"""
Data models for the R2 storage SDK
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, UTC
from typing import AsyncIterator, Dict, List, Optional

import httpx


@dataclass(frozen=True)
class Credentials:
    """Account identity and key pair. The secret never appears in repr()."""
    account_id: str
    access_key_id: str
    secret_access_key: str = field(repr=False)


@dataclass
class BucketInfo:
    """A bucket as reported by the account-wide listing."""
    name: str
    location: str
    creation_date: Optional[datetime] = None


@dataclass
class BucketDetails:
    """Bucket-level details returned by a bucket info lookup."""
    name: str
    location: str
    creation_date: Optional[datetime] = None


@dataclass
class PresignedUrlResult:
    """Represents a presigned URL and the values bound into it."""
    url: str
    key: str
    content_type: str
    expires_in: int
    metadata: Optional[Dict[str, str]] = None
    # Advisory only, echoed back for the caller's own checks.
    max_file_size: Optional[int] = None
    allowed_content_types: Optional[List[str]] = None
    issued_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def expires_at(self) -> datetime:
        return self.issued_at + timedelta(seconds=self.expires_in)


@dataclass
class UploadResult:
    """Represents the result of a direct upload."""
    key: str
    content_type: str
    file_size: int
    etag: Optional[str] = None


@dataclass
class R2Object:
    """
    Snapshot of a stored object's metadata at request time.

    ``metadata`` keys come back lower-cased with the ``x-amz-meta-`` prefix
    removed, whatever casing was used on upload; look them up in lower case.
    """
    key: str
    size: int
    last_modified: datetime
    content_type: Optional[str] = None
    etag: Optional[str] = None
    metadata: Optional[Dict[str, str]] = None


@dataclass
class R2ObjectBody(R2Object):
    """
    An object descriptor together with its unread response body.

    The body is a streamed ``httpx.Response``; it must be consumed or closed
    by the caller. Using the object as an async context manager closes it.
    """
    body: Optional[httpx.Response] = field(default=None, repr=False)

    async def read(self) -> bytes:
        """Read the whole payload and release the connection."""
        try:
            return await self.body.aread()
        finally:
            await self.body.aclose()

    async def text(self, encoding: str = "utf-8") -> str:
        return (await self.read()).decode(encoding)

    async def iter_bytes(self, chunk_size: Optional[int] = None) -> AsyncIterator[bytes]:
        try:
            async for chunk in self.body.aiter_bytes(chunk_size):
                yield chunk
        finally:
            await self.body.aclose()

    async def aclose(self) -> None:
        """Discard the payload without reading it."""
        await self.body.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()
