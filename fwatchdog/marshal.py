"""
Request envelope used when `marshal_request=true`.

The function receives a single JSON document on stdin instead of the raw body,
so it can see the request headers without CGI-style environment variables:

    {"header": {"Content-Type": ["text/plain"]}, "body": {"raw": "aGVsbG8="}}

The body is base64 encoded so binary payloads survive the trip.
"""

import base64
from typing import Dict, Iterable, List, Tuple

from pydantic import BaseModel, ValidationError, field_serializer, field_validator

from .errors import InputEncodingError


class MarshalBody(BaseModel):
    raw: bytes = b""

    @field_serializer("raw")
    def _encode_raw(self, raw: bytes) -> str:
        return base64.b64encode(raw).decode("ascii")

    @field_validator("raw", mode="before")
    @classmethod
    def _decode_raw(cls, value):
        if isinstance(value, str):
            return base64.b64decode(value, validate=True)
        return value


class MarshalRequest(BaseModel):
    header: Dict[str, List[str]] = {}
    body: MarshalBody = MarshalBody()


def canonical_header_key(name: str) -> str:
    """Return the MIME canonical form of a header name, e.g. x-call-id -> X-Call-Id."""
    return "-".join(part[:1].upper() + part[1:].lower() for part in name.split("-"))


def group_headers(headers: Iterable[Tuple[str, str]]) -> Dict[str, List[str]]:
    """Collect repeated headers under one canonical key, keeping arrival order."""
    grouped: Dict[str, List[str]] = {}
    for name, value in headers:
        grouped.setdefault(canonical_header_key(name), []).append(value)
    return grouped


def marshal_request(body: bytes, headers: Iterable[Tuple[str, str]]) -> bytes:
    """
    Encode a request body and its headers into one JSON envelope.

    Args:
        body: The raw request body.
        headers: (name, value) pairs, repeats allowed.

    Returns:
        bytes: The UTF-8 JSON envelope.

    Raises:
        InputEncodingError: If the headers or body cannot be encoded.
    """
    try:
        envelope = MarshalRequest(header=group_headers(headers), body=MarshalBody(raw=body))
        return envelope.model_dump_json().encode("utf-8")
    except (ValidationError, ValueError, TypeError, UnicodeError) as e:
        raise InputEncodingError(str(e)) from e


def unmarshal_request(data: bytes) -> MarshalRequest:
    """Decode an envelope produced by marshal_request."""
    try:
        return MarshalRequest.model_validate_json(data)
    except ValidationError as e:
        raise InputEncodingError(str(e)) from e
