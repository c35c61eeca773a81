"""Unit tests for input sanitization."""
import pytest
from pydantic import ValidationError

from clubcheckin.core.sanitization import sanitize_passcode, validate_qr_token_format
from clubcheckin.schemas import PasscodeCheckinRequest, QrCheckinRequest


@pytest.mark.unit
class TestSanitizePasscode:
    """Test passcode sanitization."""

    def test_valid(self):
        assert sanitize_passcode("012345") == "012345"

    def test_whitespace_trimmed(self):
        assert sanitize_passcode("  123456\n") == "123456"

    def test_integer_accepted(self):
        assert sanitize_passcode(654321) == "654321"

    @pytest.mark.parametrize("value", ["12345", "1234567", "12a456", "", "12 456", "１２３４５６"])
    def test_invalid_format(self, value):
        with pytest.raises(ValueError, match="6 digits"):
            sanitize_passcode(value)

    @pytest.mark.parametrize("value", [None, True, 12.5, ["123456"]])
    def test_invalid_type(self, value):
        with pytest.raises(ValueError):
            sanitize_passcode(value)


@pytest.mark.unit
class TestValidateQrToken:
    """Test QR payload validation."""

    def test_valid(self):
        token = "ci1.42.abc_DEF-123.1730000000.0123456789abcdef"
        assert validate_qr_token_format(token) == token

    def test_strips(self):
        assert validate_qr_token_format("  ci1.1.a.1.b  ") == "ci1.1.a.1.b"

    def test_empty(self):
        with pytest.raises(ValueError, match="required"):
            validate_qr_token_format("   ")

    def test_too_long(self):
        with pytest.raises(ValueError, match="maximum length"):
            validate_qr_token_format("a" * 201)

    @pytest.mark.parametrize("token", ["ci1 42", "<script>", "ci1.42.\x00", "ci1/42"])
    def test_bad_characters(self, token):
        with pytest.raises(ValueError, match="Invalid QR code format"):
            validate_qr_token_format(token)


@pytest.mark.unit
class TestRequestSchemas:
    """Sanitizers run as pydantic validators on request bodies."""

    def test_passcode_request(self):
        request = PasscodeCheckinRequest(passcode=" 000123 ", event_id=42)
        assert request.passcode == "000123"
        assert request.event_id == 42

    def test_passcode_request_event_optional(self):
        assert PasscodeCheckinRequest(passcode="000123").event_id is None

    def test_passcode_request_rejects_bad_passcode(self):
        with pytest.raises(ValidationError):
            PasscodeCheckinRequest(passcode="12345")

    def test_event_id_must_be_positive(self):
        with pytest.raises(ValidationError):
            PasscodeCheckinRequest(passcode="123456", event_id=0)

    def test_qr_request_rejects_bad_token(self):
        with pytest.raises(ValidationError):
            QrCheckinRequest(qr_token="not a token")
