"""
Decoding of Firestore trigger payloads.

Background functions bound to a Firestore document event receive the
document in the REST ``Value`` encoding, e.g.::

    {"value": {"name": "projects/p/databases/(default)/documents/notifications/abc",
               "fields": {"userId": {"stringValue": "u1"}}}}
"""
import base64
import re
from datetime import datetime, timezone
from typing import Any, Dict, Optional

_FRACTION_RE = re.compile(r"\.(\d+)")


def parse_timestamp(value: str) -> datetime:
    """Parse an RFC 3339 timestamp, truncating nanoseconds to microseconds."""
    value = value.replace("Z", "+00:00")
    value = _FRACTION_RE.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), value, count=1)
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def decode_value(value: Dict[str, Any]) -> Any:
    """Decode a single typed Firestore value."""
    if "nullValue" in value:
        return None
    if "stringValue" in value:
        return value["stringValue"]
    if "booleanValue" in value:
        return bool(value["booleanValue"])
    if "integerValue" in value:
        return int(value["integerValue"])
    if "doubleValue" in value:
        return float(value["doubleValue"])
    if "timestampValue" in value:
        return parse_timestamp(value["timestampValue"])
    if "referenceValue" in value:
        return value["referenceValue"]
    if "bytesValue" in value:
        return base64.b64decode(value["bytesValue"])
    if "geoPointValue" in value:
        point = value["geoPointValue"]
        return {"latitude": point.get("latitude", 0.0), "longitude": point.get("longitude", 0.0)}
    if "arrayValue" in value:
        return [decode_value(v) for v in value["arrayValue"].get("values", [])]
    if "mapValue" in value:
        return decode_fields(value["mapValue"].get("fields", {}))
    raise ValueError(f"Unsupported Firestore value: {value}")


def decode_fields(fields: Dict[str, Dict[str, Any]]) -> Dict[str, Any]:
    return {name: decode_value(value) for name, value in fields.items()}


def document_data(event: Dict[str, Any]) -> Dict[str, Any]:
    """Return the decoded fields of the document carried by a trigger event."""
    return decode_fields((event.get("value") or {}).get("fields", {}))


def document_path(event: Dict[str, Any]) -> Optional[str]:
    """Return the document path relative to the database root."""
    name = (event.get("value") or {}).get("name")
    if not name:
        return None
    marker = "/documents/"
    return name.split(marker, 1)[1] if marker in name else name


def document_id(event: Dict[str, Any]) -> Optional[str]:
    path = document_path(event)
    return path.rsplit("/", 1)[-1] if path else None
