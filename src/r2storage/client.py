"""
R2Client - account-level client for Cloudflare R2
"""

import logging
from typing import List, Optional

import httpx

from ._http import HttpClient
from ._parsing import parse_buckets_xml
from ._signer import AwsSignatureV4Signer, Signer
from .bucket import R2Bucket
from .error import RemoteError
from .models import BucketInfo, Credentials

DEFAULT_SERVICE_HOST = "r2.cloudflarestorage.com"


class R2Client:
    """
    S3-compatible client for one R2 account.

    Example:
        async with R2Client(
            account_id="abc123",
            access_key_id="key",
            secret_access_key="secret",
        ) as r2:
            bucket = r2.bucket("gallery")
            result = await bucket.presigned_upload_url("file.jpg", "image/jpeg")

    Credentials are fixed for the lifetime of the client. To rotate keys,
    create a new client; handles from the old one keep signing with the old
    keys.
    """

    def __init__(
        self,
        account_id: str,
        access_key_id: str,
        secret_access_key: str,
        signer: Optional[Signer] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        service_host: str = DEFAULT_SERVICE_HOST,
    ):
        """
        Initialize R2Client.

        Args:
            account_id: Cloudflare account ID, used verbatim in the base URL
            access_key_id: R2 access key ID
            secret_access_key: R2 secret access key
            signer: Custom request signer; defaults to AWS SigV4 with region "auto"
            timeout: Request timeout in seconds; None means no client-side timeout
            transport: Custom httpx transport (e.g. ``httpx.MockTransport``)
            service_host: Host suffix appended to the account ID
        """
        self.account_id = account_id
        self.base_url = f"https://{account_id}.{service_host}"
        self._signer = signer or AwsSignatureV4Signer(access_key_id, secret_access_key)
        self._http = HttpClient(timeout=timeout, transport=transport)
        self._logger = logging.getLogger(__name__)

    @classmethod
    def from_credentials(cls, credentials: Credentials, **kwargs) -> "R2Client":
        return cls(
            credentials.account_id,
            credentials.access_key_id,
            credentials.secret_access_key,
            **kwargs,
        )

    def __repr__(self) -> str:
        return f"R2Client(account_id={self.account_id!r})"

    def bucket(self, name: str) -> R2Bucket:
        """Get a handle for one bucket. No request is made."""
        return R2Bucket(name, self._signer, self.base_url, self._http)

    async def list_buckets(self) -> List[BucketInfo]:
        """List all buckets in the account (S3 ListBuckets, GET /)."""
        signed = self._signer.sign(self.base_url, "GET")
        response = await self._http.get(signed.url, headers=signed.headers)

        if not response.is_success:
            raise RemoteError("List buckets", response.status_code, response.reason_phrase)

        buckets = parse_buckets_xml(response.text)
        self._logger.debug("[R2][ListBuckets] account=%s count=%s", self.account_id, len(buckets))
        return buckets

    async def close(self) -> None:
        """Close the client and cleanup resources."""
        await self._http.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
