from __future__ import annotations

import re
from datetime import datetime, timezone
from xml.sax.saxutils import escape as _sax_escape


XML_EXTRA_ENTITIES = {'"': "&#34;", "\r": "&#xD;"}

# Anything outside the XML 1.0 Char production.
INVALID_XML_CHARS = re.compile("[^\t\n\r\x20-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]")


def strip_invalid_xml_chars(value: str) -> str:
    return INVALID_XML_CHARS.sub("", value or "")


def escape(value: str) -> str:
    # Attribute values are always double-quoted, so ' is left alone.
    return _sax_escape(strip_invalid_xml_chars(value), XML_EXTRA_ENTITIES)


def to_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    dt = to_utc(value)
    return (
        f"{dt.year:04d}-{dt.month:02d}-{dt.day:02d}"
        f"T{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d}"
        f".{dt.microsecond // 1000:03d}+00:00"
    )
