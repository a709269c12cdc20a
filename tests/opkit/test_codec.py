"""
Tests for the payload codec.

Tests cover:
- Request decoding (id line, ignored delimiter, multi-line payloads)
- Decode failures (empty and unreadable streams)
- Result encoding in legacy and strict output modes
- Structured error envelopes
"""

import io
import json

import pytest

from opkit.core.codec import (
    Encoded,
    OutputMode,
    Request,
    Result,
    build_request,
    decode,
    encode,
)
from opkit.core.errors import DecodeError, HandlerError, UnknownOperation


class _BrokenStream:
    def read(self):
        raise OSError("device not ready")


class TestDecode:
    """Test decode()."""

    def test_single_line_payload(self):
        """Test the canonical three-line request."""
        request = decode(io.StringIO('read-file\n---\n{"dir":"x","name":"y.txt"}\n'))

        assert request == Request("read-file", '{"dir":"x","name":"y.txt"}')

    def test_delimiter_content_is_ignored(self):
        """Test that any second line is discarded."""
        request = decode(io.StringIO("op\nnot a delimiter at all\npayload\n"))

        assert request.operation_id == "op"
        assert request.payload == "payload"

    def test_multi_line_payload_rejoined(self):
        """Test that payload lines are rejoined with newlines."""
        request = decode(io.StringIO('op\n---\n{\n  "a": 1\n}\n'))

        assert request.payload == '{\n  "a": 1\n}'

    def test_missing_payload_is_empty(self):
        """Test that a stream ending after the id yields an empty payload."""
        assert decode(io.StringIO("describe\n")).payload == ""
        assert decode(io.StringIO("describe\n---\n")).payload == ""
        assert decode(io.StringIO("describe")).payload == ""

    def test_operation_id_not_trimmed(self):
        """Test that the id line is kept verbatim (no whitespace trimming)."""
        request = decode(io.StringIO(" read-file \n---\n"))

        assert request.operation_id == " read-file "

    def test_crlf_terminators(self):
        """Test that a CRLF host gets the same id and payload as an LF host."""
        request = decode(io.BytesIO(b'read-file\r\n---\r\n{"dir":"x",\r\n"name":"y"}\r\n'))

        assert request.operation_id == "read-file"
        assert request.payload == '{"dir":"x",\n"name":"y"}'

    def test_lone_carriage_return_kept(self):
        """Test that a "\\r" not followed by a newline stays in the line."""
        request = decode(io.StringIO("op\r\n---\npay\rload"))

        assert request.operation_id == "op"
        assert request.payload == "pay\rload"

    def test_decode_binary_stream(self):
        """Test decoding from a bytes stream."""
        request = decode(io.BytesIO("op\n---\nhéllo\n".encode("utf-8")))

        assert request.payload == "héllo"

    def test_empty_stream_is_decode_error(self):
        """Test that an empty stream is a decode error, not an empty request."""
        with pytest.raises(DecodeError, match="empty request stream"):
            decode(io.StringIO(""))

    def test_read_failure_is_decode_error(self):
        """Test that a read failure surfaces as DecodeError."""
        with pytest.raises(DecodeError, match="device not ready"):
            decode(_BrokenStream())

    def test_invalid_utf8_is_decode_error(self):
        """Test that undecodable bytes surface as DecodeError."""
        with pytest.raises(DecodeError):
            decode(io.BytesIO(b"op\n---\n\xff\xfe\n"))


class TestBuildRequest:
    """Test build_request() against decode()."""

    @pytest.mark.parametrize("payload", [
        "",
        "single",
        '{"a":\n1}',
        "trailing newline\n",
        "\n\nleading blank lines",
        "a\n\n\nb",
    ])
    def test_payload_restored_exactly(self, payload):
        """Test that payloads with embedded newlines survive decoding."""
        stream = io.StringIO(build_request("op", payload))

        assert decode(stream).payload == payload

    def test_layout(self):
        """Test the raw request layout."""
        assert build_request("op", "x") == "op\n---\nx\n"
        assert build_request("op", "x", delimiter="") == "op\n\nx\n"


class TestResult:
    """Test Result construction rules."""

    def test_success(self):
        result = Result.success("out")
        assert result.ok
        assert result.output == "out"

    def test_failure(self):
        error = HandlerError("boom")
        result = Result.failure(error)
        assert not result.ok
        assert result.error is error

    def test_requires_exactly_one(self):
        """Test that neither-or-both is rejected."""
        with pytest.raises(ValueError):
            Result()
        with pytest.raises(ValueError):
            Result(output="x", error=HandlerError("y"))

    def test_empty_output_is_success(self):
        """Test that "" is a valid success payload."""
        assert Result.success("").ok


class TestEncode:
    """Test encode() output modes."""

    def test_success_written_verbatim(self):
        """Test that success output has no added framing."""
        encoded = encode(Result.success("hello\nworld"))

        assert encoded == Encoded(stdout=b"hello\nworld", stderr=b"", exit_code=0)

    def test_success_strict_mode(self):
        """Test that strict mode writes success the same way."""
        encoded = encode(Result.success("ok"), OutputMode.STRICT)

        assert encoded.stdout == b"ok"
        assert encoded.exit_code == 0

    def test_legacy_error_on_stdout(self):
        """Test that legacy mode writes errors to stdout and exits 0."""
        encoded = encode(Result.failure(UnknownOperation("nope")))

        assert encoded.stdout == b"unknown operation: nope"
        assert encoded.stderr == b""
        assert encoded.exit_code == 0

    def test_strict_error_on_stderr(self):
        """Test that strict mode leaves stdout empty and exits 1."""
        encoded = encode(Result.failure(HandlerError("build failed")), "strict")

        assert encoded.stdout == b""
        assert encoded.stderr == b"build failed"
        assert encoded.exit_code == 1

    def test_structured_error_envelope(self):
        """Test that structured errors carry the kind."""
        encoded = encode(Result.failure(UnknownOperation("nope")), structured_errors=True)

        envelope = json.loads(encoded.stdout)
        assert envelope == {
            "error": {
                "kind": "unknown_operation",
                "message": "unknown operation: nope",
                "operation": "nope",
            }
        }

    def test_invalid_mode_rejected(self):
        with pytest.raises(ValueError):
            encode(Result.success(""), "noisy")


class TestEncodedWrite:
    """Test writing encoded results to streams."""

    def test_write_to_binary_streams(self):
        stdout, stderr = io.BytesIO(), io.BytesIO()

        Encoded(stdout=b"out", stderr=b"err").write(stdout, stderr)

        assert stdout.getvalue() == b"out"
        assert stderr.getvalue() == b"err"

    def test_write_to_text_streams(self):
        """Test that text streams without a buffer receive decoded text."""
        stdout, stderr = io.StringIO(), io.StringIO()

        Encoded(stdout="héllo".encode("utf-8")).write(stdout, stderr)

        assert stdout.getvalue() == "héllo"
        assert stderr.getvalue() == ""
