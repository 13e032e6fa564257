import hashlib
from datetime import datetime, UTC
from email.utils import format_datetime
from typing import Callable, Dict, List, Optional

import httpx
import pytest_asyncio

from r2storage import R2Client

ACCOUNT_ID = "abc123"
ACCESS_KEY = "AKIATESAFEKEY0000001"
SECRET_KEY = "wJalrXUtnFEMIaKkMDENGbPxRfIcxAmPlEkEyZaB"

LAST_MODIFIED = datetime(2025, 3, 14, 9, 26, 53, tzinfo=UTC)


class FakeR2:
    """In-memory stand-in for the R2 S3 endpoint, served via httpx.MockTransport."""

    def __init__(self, buckets: Optional[List[str]] = None):
        self.objects: Dict[str, Dict[str, dict]] = {name: {} for name in (buckets or [])}
        self.requests: List[httpx.Request] = []

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if "authorization" not in request.headers:
            return httpx.Response(403)

        path = request.url.path.lstrip("/")
        if not path:
            return self._list_buckets()

        bucket, _, key = path.partition("/")
        if bucket not in self.objects:
            return httpx.Response(404)
        if not key:
            if request.url.query == b"location":
                return httpx.Response(
                    200,
                    text='<?xml version="1.0" encoding="UTF-8"?>'
                    '<LocationConstraint xmlns="http://s3.amazonaws.com/doc/2006-03-01/">auto</LocationConstraint>',
                )
            return httpx.Response(200)

        store = self.objects[bucket]
        if request.method == "PUT":
            body = request.read()
            metadata = {
                name.lower(): value
                for name, value in request.headers.items()
                if name.lower().startswith("x-amz-meta-")
            }
            store[key] = {
                "body": body,
                "content_type": request.headers.get("content-type", "application/octet-stream"),
                "metadata": metadata,
                "etag": hashlib.md5(body).hexdigest(),
            }
            return httpx.Response(200, headers={"ETag": f'"{store[key]["etag"]}"'})

        obj = store.get(key)
        if request.method == "DELETE":
            if obj is None:
                return httpx.Response(404)
            del store[key]
            return httpx.Response(204)

        if obj is None:
            return httpx.Response(404)

        headers = {
            "Content-Type": obj["content_type"],
            "ETag": f'"{obj["etag"]}"',
            "Last-Modified": format_datetime(LAST_MODIFIED, usegmt=True),
            **obj["metadata"],
        }
        if request.method == "HEAD":
            return httpx.Response(200, headers=headers)
        return httpx.Response(200, headers=headers, content=obj["body"])

    def _list_buckets(self) -> httpx.Response:
        entries = "".join(
            f"<Bucket><Name>{name}</Name><CreationDate>2024-01-01T00:00:00.000Z</CreationDate></Bucket>"
            for name in self.objects
        )
        return httpx.Response(
            200,
            text='<?xml version="1.0" encoding="UTF-8"?>'
            '<ListAllMyBucketsResult xmlns="http://s3.amazonaws.com/doc/2006-03-01/">'
            f"<Buckets>{entries}</Buckets></ListAllMyBucketsResult>",
        )


def make_client(handler: Callable[[httpx.Request], httpx.Response]) -> R2Client:
    return R2Client(
        account_id=ACCOUNT_ID,
        access_key_id=ACCESS_KEY,
        secret_access_key=SECRET_KEY,
        transport=httpx.MockTransport(handler),
    )


@pytest_asyncio.fixture
async def fake_r2():
    return FakeR2(buckets=["gallery"])


@pytest_asyncio.fixture
async def client(fake_r2):
    r2 = R2Client(
        account_id=ACCOUNT_ID,
        access_key_id=ACCESS_KEY,
        secret_access_key=SECRET_KEY,
        transport=fake_r2.transport(),
    )
    yield r2
    await r2.close()
