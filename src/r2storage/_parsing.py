"""
Response parsing and metadata helpers for the R2 storage SDK
"""

import xml.etree.ElementTree as ET
from datetime import datetime, UTC
from email.utils import parsedate_to_datetime
from typing import Dict, Iterable, List, Mapping, Optional

from .error import ResponseParseError
from .models import BucketInfo

METADATA_PREFIX = "x-amz-meta-"

# R2 has no selectable regions; every bucket reports this location.
DEFAULT_LOCATION = "auto"


def ensure_metadata_prefix(key: str) -> str:
    """Return the header name for a metadata key. Idempotent."""
    if key.lower().startswith(METADATA_PREFIX):
        return key
    return f"{METADATA_PREFIX}{key}"


def build_metadata_headers(
    content_type: str,
    metadata: Optional[Mapping[str, str]] = None,
) -> Dict[str, str]:
    """Build Content-Type plus prefixed metadata headers for an upload."""
    headers = {"Content-Type": content_type}
    for key, value in (metadata or {}).items():
        headers[ensure_metadata_prefix(key)] = str(value)
    return headers


def extract_metadata(headers: Mapping[str, str]) -> Dict[str, str]:
    """Recover custom metadata from response headers, keys lower-cased."""
    metadata = {}
    for name, value in headers.items():
        lowered = name.lower()
        if lowered.startswith(METADATA_PREFIX):
            metadata[lowered[len(METADATA_PREFIX):]] = value
    return metadata


def content_type_allowed(content_type: str, patterns: Iterable[str]) -> bool:
    """
    Check a content type against allowed patterns.

    ``image/*`` matches any type starting with ``image/``; any other pattern
    must match exactly.
    """
    for pattern in patterns:
        if pattern.endswith("/*"):
            if content_type.startswith(pattern[:-1]):
                return True
        elif content_type == pattern:
            return True
    return False


def parse_etag(headers: Mapping[str, str]) -> Optional[str]:
    etag = (headers.get("ETag") or "").replace('"', "")
    return etag or None


def parse_content_length(headers: Mapping[str, str]) -> int:
    try:
        return int(headers.get("Content-Length", 0))
    except (TypeError, ValueError):
        return 0


def parse_last_modified(headers: Mapping[str, str]) -> datetime:
    value = headers.get("Last-Modified")
    if value:
        try:
            return parsedate_to_datetime(value)
        except (TypeError, ValueError):
            pass
    return datetime.now(UTC)


def _local_name(tag: str) -> str:
    return tag.split("}")[-1]


def _parse_document(xml: str) -> Optional[ET.Element]:
    xml = (xml or "").strip()
    if not xml:
        return None
    try:
        return ET.fromstring(xml)
    except ET.ParseError as ex:
        raise ResponseParseError(f"Failed to parse XML response. {str(ex)}")


def _find_text(node: ET.Element, tag: str) -> Optional[str]:
    for child in node.iter():
        if _local_name(child.tag) == tag:
            text = (child.text or "").strip()
            return text or None
    return None


def _parse_iso_date(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def parse_xml_tag(xml: str, tag: str) -> Optional[str]:
    """Return the stripped text of the first ``tag`` element, namespace-agnostic."""
    doc = _parse_document(xml)
    if doc is None:
        return None
    return _find_text(doc, tag)


def parse_buckets_xml(xml: str) -> List[BucketInfo]:
    """Parse a ListBuckets body. Bucket entries without a name are skipped."""
    doc = _parse_document(xml)
    if doc is None:
        return []

    buckets = []
    for node in doc.iter():
        if _local_name(node.tag) != "Bucket":
            continue
        name = _find_text(node, "Name")
        if not name:
            continue
        buckets.append(
            BucketInfo(
                name=name,
                location=DEFAULT_LOCATION,
                creation_date=_parse_iso_date(_find_text(node, "CreationDate")),
            )
        )
    return buckets


def parse_location_xml(xml: str) -> str:
    """Parse a GetBucketLocation body; empty or missing means the default."""
    return parse_xml_tag(xml, "LocationConstraint") or DEFAULT_LOCATION
