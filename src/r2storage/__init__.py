"""
r2storage - async S3-compatible client for Cloudflare R2
"""

__version__ = "1.0.0"

from .client import R2Client
from .bucket import R2Bucket
from ._signer import AwsSignatureV4Signer, SignedRequest, SignMode, Signer
from .models import (
    Credentials,
    BucketInfo,
    BucketDetails,
    PresignedUrlResult,
    UploadResult,
    R2Object,
    R2ObjectBody,
)
from .error import (
    R2StorageException,
    ValidationError,
    ContentTypeNotAllowedError,
    RemoteError,
    ResponseParseError,
    TransportFailure,
)

__all__ = [
    "R2Client",
    "R2Bucket",
    "AwsSignatureV4Signer",
    "SignedRequest",
    "SignMode",
    "Signer",
    "Credentials",
    "BucketInfo",
    "BucketDetails",
    "PresignedUrlResult",
    "UploadResult",
    "R2Object",
    "R2ObjectBody",
    "R2StorageException",
    "ValidationError",
    "ContentTypeNotAllowedError",
    "RemoteError",
    "ResponseParseError",
    "TransportFailure",
]
