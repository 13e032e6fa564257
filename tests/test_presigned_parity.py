from urllib.parse import parse_qs, urlsplit

import pytest

from r2storage import ContentTypeNotAllowedError, ValidationError
from conftest import SECRET_KEY


@pytest.mark.asyncio
async def test_presigned_upload_with_allowed_wildcard_type(client, fake_r2):
    bucket = client.bucket("gallery")

    result = await bucket.presigned_upload_url(
        "a.png",
        "image/png",
        allowed_content_types=["image/*"],
    )

    assert result.url.startswith("https://abc123.r2.cloudflarestorage.com/gallery/a.png?")
    assert "X-Amz-Algorithm=AWS4-HMAC-SHA256" in result.url
    assert "X-Amz-Credential=" in result.url
    assert "X-Amz-Signature=" in result.url
    assert "X-Amz-Expires=86400" in result.url
    assert result.key == "a.png"
    assert result.content_type == "image/png"
    assert result.expires_in == 86400
    assert result.allowed_content_types == ["image/*"]
    assert fake_r2.requests == []


@pytest.mark.asyncio
async def test_presigned_upload_rejects_disallowed_type_without_network(client, fake_r2):
    bucket = client.bucket("gallery")

    with pytest.raises(ContentTypeNotAllowedError, match="application/pdf") as excinfo:
        await bucket.presigned_upload_url(
            "a.png",
            "application/pdf",
            allowed_content_types=["image/*", "text/plain"],
        )

    assert "image/*, text/plain" in str(excinfo.value)
    assert isinstance(excinfo.value, ValidationError)
    assert fake_r2.requests == []


@pytest.mark.asyncio
async def test_presigned_upload_binds_content_type_and_metadata(client):
    bucket = client.bucket("gallery")

    result = await bucket.presigned_upload_url(
        "docs/report 1.pdf",
        "application/pdf",
        metadata={"owner": "alice", "x-amz-meta-origin": "scanner"},
    )

    query = parse_qs(urlsplit(result.url).query)
    signed_headers = query["X-Amz-SignedHeaders"][0].split(";")
    assert signed_headers == ["content-type", "host", "x-amz-meta-origin", "x-amz-meta-owner"]
    assert urlsplit(result.url).path == "/gallery/docs/report%201.pdf"
    assert result.metadata == {"owner": "alice", "x-amz-meta-origin": "scanner"}


@pytest.mark.asyncio
async def test_presigned_upload_echoes_max_file_size_without_enforcing(client):
    result = await client.bucket("gallery").presigned_upload_url(
        "big.bin",
        "application/octet-stream",
        max_file_size=10 * 1024 * 1024,
    )

    assert result.max_file_size == 10 * 1024 * 1024
    assert "max" not in result.url.lower()


@pytest.mark.asyncio
async def test_presigned_download_for_missing_object(client, fake_r2):
    result = await client.bucket("gallery").presigned_download_url("missing.txt")

    assert "/gallery/missing.txt?" in result.url
    assert "X-Amz-Expires=3600" in result.url
    assert "X-Amz-SignedHeaders=host" in result.url
    assert result.content_type == ""
    assert result.metadata is None
    assert fake_r2.requests == []


@pytest.mark.asyncio
async def test_presigned_urls_never_embed_secret(client):
    bucket = client.bucket("gallery")

    upload = await bucket.presigned_upload_url("a.png", "image/png")
    download = await bucket.presigned_download_url("a.png", expires_in=60)

    assert SECRET_KEY not in upload.url
    assert SECRET_KEY not in download.url
    assert (download.expires_at - download.issued_at).total_seconds() == 60


@pytest.mark.asyncio
async def test_expiry_validation_limits(client):
    bucket = client.bucket("gallery")

    with pytest.raises(ValueError, match="604800"):
        await bucket.presigned_download_url("a.png", expires_in=604801)

    with pytest.raises(ValidationError):
        await bucket.presigned_upload_url("a.png", "image/png", expires_in=0)

    one_second = await bucket.presigned_download_url("a.png", expires_in=1)
    assert "X-Amz-Expires=1&" in one_second.url


@pytest.mark.asyncio
async def test_empty_key_is_rejected(client):
    with pytest.raises(ValidationError):
        await client.bucket("gallery").presigned_download_url("")
