"""
Request signing for the R2 storage SDK.

The client only depends on the ``Signer`` protocol. ``AwsSignatureV4Signer``
is the bundled implementation of AWS Signature Version 4.
"""

import enum
import hashlib
import hmac
from dataclasses import dataclass, field
from datetime import datetime, UTC
from typing import Dict, List, Optional, Protocol, Tuple
from urllib.parse import parse_qsl, quote, urlsplit, urlunsplit

from .error import ValidationError

ALGORITHM = "AWS4-HMAC-SHA256"
UNSIGNED_PAYLOAD = "UNSIGNED-PAYLOAD"
MAX_EXPIRY_SECONDS = 604800


class SignMode(enum.Enum):
    """Where the signature material is placed."""
    HEADER = "header"
    QUERY = "query"


@dataclass
class SignedRequest:
    """URL and headers to send, as produced by a signer."""
    url: str
    headers: Dict[str, str] = field(default_factory=dict)


class Signer(Protocol):
    def sign(
        self,
        url: str,
        method: str,
        headers: Optional[Dict[str, str]] = None,
        body: Optional[bytes] = None,
        mode: SignMode = SignMode.HEADER,
        expires_in: Optional[int] = None,
    ) -> SignedRequest:
        ...


def validate_expiry(expires_in: int) -> None:
    if expires_in < 1 or expires_in > MAX_EXPIRY_SECONDS:
        raise ValidationError(
            f"Expiry must be between 1 second and {MAX_EXPIRY_SECONDS} seconds (7 days)."
        )


def _uri_encode(value: str) -> str:
    return quote(value, safe="-_.~")


class AwsSignatureV4Signer:
    """
    Signs requests using AWS Signature Version 4.

    Every header handed to ``sign`` is part of the signature, in both modes,
    so a presigned upload URL is only valid with the exact Content-Type and
    metadata it was issued for.
    """

    def __init__(
        self,
        access_key: str,
        secret_key: str,
        region: str = "auto",
        service: str = "s3",
    ):
        self.access_key = access_key
        self._secret_key = secret_key
        self.region = region
        self.service = service

    def __repr__(self) -> str:
        return f"AwsSignatureV4Signer(access_key={self.access_key!r}, region={self.region!r})"

    def sign(
        self,
        url: str,
        method: str,
        headers: Optional[Dict[str, str]] = None,
        body: Optional[bytes] = None,
        mode: SignMode = SignMode.HEADER,
        expires_in: Optional[int] = None,
        timestamp: Optional[datetime] = None,
    ) -> SignedRequest:
        """
        Sign a request.

        In HEADER mode the returned headers carry ``Authorization``. In QUERY
        mode the returned URL carries the signature and ``expires_in`` is
        required.
        """
        if timestamp is None:
            timestamp = datetime.now(UTC)

        amz_date = timestamp.strftime("%Y%m%dT%H%M%SZ")
        datestamp = timestamp.strftime("%Y%m%d")
        credential_scope = f"{datestamp}/{self.region}/{self.service}/aws4_request"

        parts = urlsplit(url)
        request_headers = dict(headers or {})
        canonical_headers = self._build_canonical_headers(request_headers)
        canonical_headers["host"] = parts.netloc
        query_params = parse_qsl(parts.query, keep_blank_values=True)

        if mode is SignMode.QUERY:
            if expires_in is None:
                raise ValidationError("Query-string signing requires an expiry.")
            validate_expiry(expires_in)
            query_params += [
                ("X-Amz-Algorithm", ALGORITHM),
                ("X-Amz-Credential", f"{self.access_key}/{credential_scope}"),
                ("X-Amz-Date", amz_date),
                ("X-Amz-Expires", str(expires_in)),
                ("X-Amz-SignedHeaders", ";".join(sorted(canonical_headers))),
            ]
            payload_hash = UNSIGNED_PAYLOAD
        else:
            payload_hash = self._hash_payload(body)
            canonical_headers["x-amz-content-sha256"] = payload_hash
            canonical_headers["x-amz-date"] = amz_date

        signed_headers = ";".join(sorted(canonical_headers))
        canonical_querystring = self._build_canonical_querystring(query_params)

        canonical_request = "\n".join([
            method.upper(),
            parts.path or "/",
            canonical_querystring,
            "".join(f"{k}:{canonical_headers[k]}\n" for k in sorted(canonical_headers)),
            signed_headers,
            payload_hash,
        ])

        string_to_sign = "\n".join([
            ALGORITHM,
            amz_date,
            credential_scope,
            hashlib.sha256(canonical_request.encode()).hexdigest(),
        ])

        signature = hmac.new(
            self._derive_signing_key(datestamp),
            string_to_sign.encode(),
            hashlib.sha256
        ).hexdigest()

        if mode is SignMode.QUERY:
            query = f"{canonical_querystring}&X-Amz-Signature={signature}"
            signed_url = urlunsplit((parts.scheme, parts.netloc, parts.path, query, ""))
            return SignedRequest(url=signed_url, headers=request_headers)

        request_headers["X-Amz-Date"] = amz_date
        request_headers["X-Amz-Content-Sha256"] = payload_hash
        request_headers["Authorization"] = (
            f"{ALGORITHM} Credential={self.access_key}/{credential_scope}, "
            f"SignedHeaders={signed_headers}, Signature={signature}"
        )
        return SignedRequest(url=url, headers=request_headers)

    def _build_canonical_headers(self, headers: Dict[str, str]) -> Dict[str, str]:
        """Lower-case names, trimmed values with inner whitespace collapsed."""
        canonical = {}
        for key, value in headers.items():
            canonical[key.lower()] = " ".join(str(value).split())
        return canonical

    def _build_canonical_querystring(self, params: List[Tuple[str, str]]) -> str:
        encoded = sorted((_uri_encode(k), _uri_encode(v)) for k, v in params)
        return "&".join(f"{k}={v}" for k, v in encoded)

    def _hash_payload(self, body: Optional[bytes]) -> str:
        return hashlib.sha256(body or b"").hexdigest()

    def _derive_signing_key(self, datestamp: str) -> bytes:
        k_date = hmac.new(
            f"AWS4{self._secret_key}".encode(),
            datestamp.encode(),
            hashlib.sha256
        ).digest()

        k_region = hmac.new(k_date, self.region.encode(), hashlib.sha256).digest()
        k_service = hmac.new(k_region, self.service.encode(), hashlib.sha256).digest()
        k_signing = hmac.new(k_service, "aws4_request".encode(), hashlib.sha256).digest()

        return k_signing
