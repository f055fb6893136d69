"""
Tests for the JSON request envelope.
"""

import base64
import json

import pytest

from ..errors import InputEncodingError
from ..marshal import canonical_header_key, marshal_request, unmarshal_request


class TestCanonicalHeaderKey:

    @pytest.mark.parametrize("name,expected", [
        ("content-type", "Content-Type"),
        ("X-CALL-ID", "X-Call-Id"),
        ("accept", "Accept"),
    ])
    def test_canonical_form(self, name, expected):
        assert canonical_header_key(name) == expected


class TestMarshalRequest:
    """Test encoding a request into the envelope."""

    def test_envelope_layout(self):
        """Headers are grouped and the body is base64 encoded."""
        data = marshal_request(
            b"\x00\xffhello",
            [("content-type", "text/plain"), ("x-tag", "a"), ("x-tag", "b")],
        )
        envelope = json.loads(data)
        assert envelope["header"] == {"Content-Type": ["text/plain"], "X-Tag": ["a", "b"]}
        assert base64.b64decode(envelope["body"]["raw"]) == b"\x00\xffhello"

    def test_empty_request(self):
        envelope = json.loads(marshal_request(b"", []))
        assert envelope == {"header": {}, "body": {"raw": ""}}

    def test_unencodable_header_is_rejected(self):
        """A header value that is not a string cannot be encoded."""
        with pytest.raises(InputEncodingError):
            marshal_request(b"body", [("x-bad", object())])


class TestUnmarshalRequest:

    def test_decodes_marshalled_request(self):
        envelope = unmarshal_request(marshal_request(b"payload", [("x-id", "7")]))
        assert envelope.body.raw == b"payload"
        assert envelope.header == {"X-Id": ["7"]}

    def test_malformed_envelope(self):
        with pytest.raises(InputEncodingError):
            unmarshal_request(b"{not json")
