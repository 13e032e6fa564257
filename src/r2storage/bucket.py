"""
R2Bucket - operations scoped to a single bucket
"""

import logging
from typing import BinaryIO, Dict, List, Optional, Union
from urllib.parse import quote

from ._http import HttpClient
from ._parsing import (
    build_metadata_headers,
    content_type_allowed,
    extract_metadata,
    parse_content_length,
    parse_etag,
    parse_last_modified,
    parse_location_xml,
)
from ._signer import SignMode, Signer, validate_expiry
from .error import ContentTypeNotAllowedError, RemoteError, ValidationError
from .models import BucketDetails, PresignedUrlResult, R2ObjectBody, UploadResult

logger = logging.getLogger(__name__)

DEFAULT_UPLOAD_EXPIRY = 86400
DEFAULT_DOWNLOAD_EXPIRY = 3600

UploadContent = Union[bytes, bytearray, memoryview, str, BinaryIO]


def _require_key(key: str) -> None:
    if not key:
        raise ValidationError("Object key must be a non-empty string.")


def _to_bytes(content: UploadContent) -> bytes:
    """Normalize upload content to bytes."""
    if isinstance(content, bytes):
        return content
    if isinstance(content, (bytearray, memoryview)):
        return bytes(content)
    if isinstance(content, str):
        return content.encode("utf-8")
    if hasattr(content, "read"):
        data = content.read()
        return data.encode("utf-8") if isinstance(data, str) else bytes(data)
    raise ValidationError(f"Unsupported upload content type: {type(content).__name__}")


class R2Bucket:
    """
    Operations on one bucket.

    Handles are cheap and hold no per-call state; they borrow the signer,
    base URL and HTTP client of the ``R2Client`` that created them.

    Example:
        bucket = client.bucket("gallery")
        result = await bucket.presigned_upload_url(
            "file.jpg",
            "image/jpeg",
            allowed_content_types=["image/*"],
        )
    """

    def __init__(self, name: str, signer: Signer, base_url: str, http: HttpClient):
        if not name:
            raise ValidationError("Bucket name must be a non-empty string.")
        self._name = name
        self._signer = signer
        self._base_url = base_url
        self._http = http

    @property
    def name(self) -> str:
        return self._name

    def __repr__(self) -> str:
        return f"R2Bucket(name={self._name!r})"

    def _bucket_url(self) -> str:
        return f"{self._base_url}/{self._name}/"

    def _object_url(self, key: str) -> str:
        return f"{self._base_url}/{self._name}/{quote(key, safe='/')}"

    async def get_info(self) -> BucketDetails:
        """Get the bucket location via GetBucketLocation."""
        signed = self._signer.sign(f"{self._base_url}/{self._name}?location", "GET")
        response = await self._http.get(signed.url, headers=signed.headers)

        if not response.is_success:
            raise RemoteError("Get bucket info", response.status_code, response.reason_phrase)

        return BucketDetails(name=self._name, location=parse_location_xml(response.text))

    async def presigned_upload_url(
        self,
        key: str,
        content_type: str,
        metadata: Optional[Dict[str, str]] = None,
        expires_in: int = DEFAULT_UPLOAD_EXPIRY,
        max_file_size: Optional[int] = None,
        allowed_content_types: Optional[List[str]] = None,
    ) -> PresignedUrlResult:
        """
        Generate a presigned PUT URL.

        Content-Type and every metadata header are bound into the signature,
        so the uploader must send them unchanged. ``max_file_size`` is not
        enforced by the service and is only echoed in the result.

        Raises:
            ContentTypeNotAllowedError: ``content_type`` matches none of
                ``allowed_content_types``. Nothing is signed or sent.
        """
        _require_key(key)
        if allowed_content_types and not content_type_allowed(content_type, allowed_content_types):
            raise ContentTypeNotAllowedError(content_type, allowed_content_types)
        validate_expiry(expires_in)

        headers = build_metadata_headers(content_type, metadata)
        signed = self._signer.sign(
            self._object_url(key),
            "PUT",
            headers=headers,
            mode=SignMode.QUERY,
            expires_in=expires_in,
        )

        logger.info(
            "[R2][PresignedUrl] method=PUT bucket=%s key=%s contentType=%s expirySeconds=%s",
            self._name,
            key,
            content_type,
            expires_in,
        )

        return PresignedUrlResult(
            url=signed.url,
            key=key,
            content_type=content_type,
            expires_in=expires_in,
            metadata=metadata,
            max_file_size=max_file_size,
            allowed_content_types=allowed_content_types,
        )

    async def presigned_download_url(
        self,
        key: str,
        expires_in: int = DEFAULT_DOWNLOAD_EXPIRY,
    ) -> PresignedUrlResult:
        """Generate a presigned GET URL. The object is not checked for existence."""
        _require_key(key)
        validate_expiry(expires_in)

        signed = self._signer.sign(
            self._object_url(key),
            "GET",
            mode=SignMode.QUERY,
            expires_in=expires_in,
        )

        logger.info(
            "[R2][PresignedUrl] method=GET bucket=%s key=%s expirySeconds=%s",
            self._name,
            key,
            expires_in,
        )

        # The content type is unknown without fetching the object.
        return PresignedUrlResult(url=signed.url, key=key, content_type="", expires_in=expires_in)

    async def exists(self) -> bool:
        """Best-effort check that the bucket exists. Never raises."""
        return await self._head_ok(self._bucket_url())

    async def object_exists(self, key: str) -> bool:
        """Best-effort check that an object exists. Never raises."""
        if not key:
            return False
        return await self._head_ok(self._object_url(key))

    async def _head_ok(self, url: str) -> bool:
        try:
            signed = self._signer.sign(url, "HEAD")
            response = await self._http.head(signed.url, headers=signed.headers)
            return response.is_success
        except Exception as ex:
            logger.debug("[R2][Exists] bucket=%s check failed: %r", self._name, ex)
            return False

    async def upload_file(
        self,
        key: str,
        content: UploadContent,
        content_type: str,
        metadata: Optional[Dict[str, str]] = None,
    ) -> UploadResult:
        """
        Upload an object with a header-signed PUT.

        ``content`` may be bytes-like, text (sent as UTF-8) or a binary
        file object, which is read fully before signing.
        """
        _require_key(key)
        body = _to_bytes(content)
        headers = build_metadata_headers(content_type, metadata)

        signed = self._signer.sign(self._object_url(key), "PUT", headers=headers, body=body)
        response = await self._http.put(signed.url, content=body, headers=signed.headers)

        if not response.is_success:
            raise RemoteError("Upload", response.status_code, response.reason_phrase)

        logger.debug("[R2][Upload] bucket=%s key=%s size=%s", self._name, key, len(body))

        return UploadResult(
            key=key,
            content_type=content_type,
            file_size=len(body),
            etag=parse_etag(response.headers),
        )

    async def delete_object(self, key: str) -> None:
        """Delete an object. Deleting a missing object is not an error."""
        _require_key(key)
        signed = self._signer.sign(self._object_url(key), "DELETE")
        response = await self._http.delete(signed.url, headers=signed.headers)

        if not response.is_success and response.status_code != 404:
            raise RemoteError("Delete", response.status_code, response.reason_phrase)

    async def get_object(self, key: str) -> R2ObjectBody:
        """
        Fetch an object's metadata and its unread body.

        The caller owns the body and must read or close it, e.g.::

            async with await bucket.get_object("file.jpg") as obj:
                data = await obj.read()
        """
        _require_key(key)
        signed = self._signer.sign(self._object_url(key), "GET")
        response = await self._http.stream("GET", signed.url, headers=signed.headers)

        if not response.is_success:
            await response.aclose()
            raise RemoteError("Get object", response.status_code, response.reason_phrase)

        metadata = extract_metadata(response.headers)
        return R2ObjectBody(
            key=key,
            size=parse_content_length(response.headers),
            last_modified=parse_last_modified(response.headers),
            content_type=response.headers.get("Content-Type"),
            etag=parse_etag(response.headers),
            metadata=metadata or None,
            body=response,
        )
