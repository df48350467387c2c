"""Tests for NIT validation."""

import pytest

from oet_incident_gateway.core.nit_validator import (
    NitErrorKind,
    NitFormatError,
    calculate_check_digit,
    is_valid_nit,
    validate_nit,
)


class TestCalculateCheckDigit:
    """Test the weighted-sum check digit."""

    @pytest.mark.parametrize(
        ("digits", "expected"),
        [
            ("860069804", "7"),
            ("900123456", "3"),
            ("000000000", "0"),
            ("010000000", "1"),
            ("000001000", "1"),
        ],
    )
    def test_known_values(self, digits: str, expected: str) -> None:
        """Test check digits computed by hand."""
        assert calculate_check_digit(digits) == expected

    def test_rejects_wrong_length(self) -> None:
        """Test that only nine digits are accepted."""
        with pytest.raises(ValueError):
            calculate_check_digit("12345")

    def test_rejects_non_digits(self) -> None:
        """Test that letters are rejected."""
        with pytest.raises(ValueError):
            calculate_check_digit("12345678a")

    def test_rejects_non_ascii_digits(self) -> None:
        """Test that Arabic-Indic digits are not treated as digits."""
        with pytest.raises(ValueError):
            calculate_check_digit("\u0668\u0666\u0660\u0660\u0666\u0669\u0668\u0660\u0664")


class TestValidateNit:
    """Test validate_nit."""

    @pytest.mark.parametrize("nit", ["123456789", "000000000", "999999999", " 860069804 "])
    def test_nine_digits_without_check_digit(self, nit: str) -> None:
        """Test that any nine-digit string validates."""
        validate_nit(nit)

    @pytest.mark.parametrize("digits", ["860069804", "900123456", "010000000", "555555555"])
    def test_body_with_computed_check_digit(self, digits: str) -> None:
        """Test that a body with its own check digit validates."""
        validate_nit(f"{digits}-{calculate_check_digit(digits)}")

    def test_wrong_check_digit(self) -> None:
        """Test that a mismatched check digit is rejected."""
        digits = "860069804"
        wrong = str((int(calculate_check_digit(digits)) + 1) % 10)
        with pytest.raises(NitFormatError) as exc_info:
            validate_nit(f"{digits}-{wrong}")
        assert exc_info.value.kind == NitErrorKind.INVALID_CHECK_DIGIT

    @pytest.mark.parametrize("nit", ["", "   ", None])
    def test_missing_value(self, nit: str | None) -> None:
        """Test empty input."""
        with pytest.raises(NitFormatError) as exc_info:
            validate_nit(nit)
        assert exc_info.value.kind == NitErrorKind.MISSING_VALUE

    @pytest.mark.parametrize("nit", ["86006980A", "860.069.804", "860069804-x"])
    def test_invalid_characters(self, nit: str) -> None:
        """Test that only digits and hyphens are allowed."""
        with pytest.raises(NitFormatError) as exc_info:
            validate_nit(nit)
        assert exc_info.value.kind == NitErrorKind.INVALID_CHARACTERS

    @pytest.mark.parametrize(
        "nit",
        [
            "\u0668\u0666\u0660\u0660\u0666\u0669\u0668\u0660\u0664",
            "860069804-\u0667",
            "\uff18\uff16\uff10\uff10\uff16\uff19\uff18\uff10\uff14",
        ],
    )
    def test_non_ascii_digits_rejected(self, nit: str) -> None:
        """Test that Unicode digits outside 0-9 are invalid characters."""
        with pytest.raises(NitFormatError) as exc_info:
            validate_nit(nit)
        assert exc_info.value.kind == NitErrorKind.INVALID_CHARACTERS

    @pytest.mark.parametrize(
        "nit",
        ["12345678", "1234567890", "12345678-9", "1234567890-1", "123456789-12", "12345-6789-1"],
    )
    def test_wrong_length(self, nit: str) -> None:
        """Test malformed lengths with and without hyphen."""
        with pytest.raises(NitFormatError) as exc_info:
            validate_nit(nit)
        assert exc_info.value.kind == NitErrorKind.WRONG_LENGTH

    def test_error_is_value_error(self) -> None:
        """Test that NitFormatError can be caught as ValueError."""
        with pytest.raises(ValueError, match="NIT"):
            validate_nit("")


class TestIsValidNit:
    """Test the boolean wrapper."""

    def test_valid(self) -> None:
        assert is_valid_nit("860069804-7") is True

    def test_invalid(self) -> None:
        assert is_valid_nit("860069804-2") is False
