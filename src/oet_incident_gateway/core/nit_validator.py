"""Validation of Colombian tax identifiers (NIT).

A NIT is accepted in two shapes:
- nine digits, e.g. ``860069804``
- nine digits, a hyphen and one check digit, e.g. ``860069804-2``

When the check digit is present it must match the DIAN weighted-sum
algorithm implemented by :func:`calculate_check_digit`.
"""

from __future__ import annotations

import re
from enum import StrEnum

NIT_BODY_LENGTH = 9
NIT_WITH_CHECK_LENGTH = 11  # 9 digits + "-" + 1 digit

CHECK_DIGIT_WEIGHTS = (71, 67, 59, 53, 47, 43, 41, 37, 29)

_ALLOWED_CHARACTERS = re.compile(r"^[0-9-]+$")


def _is_ascii_digits(text: str) -> bool:
    return text.isascii() and text.isdigit()


class NitErrorKind(StrEnum):
    """Reason a NIT was rejected."""

    MISSING_VALUE = "missing_value"
    INVALID_CHARACTERS = "invalid_characters"
    WRONG_LENGTH = "wrong_length"
    INVALID_CHECK_DIGIT = "invalid_check_digit"


class NitFormatError(ValueError):
    """A NIT failed validation.

    Attributes:
        kind: Which rule was violated.
    """

    def __init__(self, kind: NitErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind


def calculate_check_digit(digits: str) -> str:
    """Compute the check digit for a nine-digit NIT body.

    Args:
        digits: Exactly nine ASCII digits.

    Returns:
        The check digit as a one-character string.

    Raises:
        ValueError: If ``digits`` is not nine ASCII digits.
    """
    if len(digits) != NIT_BODY_LENGTH or not _is_ascii_digits(digits):
        raise ValueError(f"Expected {NIT_BODY_LENGTH} digits, got: {digits!r}")

    total = sum(int(d) * w for d, w in zip(digits, CHECK_DIGIT_WEIGHTS, strict=True))
    remainder = total % 11
    return str(remainder if remainder < 2 else 11 - remainder)


def validate_nit(raw: str | None) -> None:
    """Validate a NIT, raising on the first violated rule.

    Args:
        raw: The NIT as received; surrounding whitespace is ignored.

    Raises:
        NitFormatError: If the value is missing, malformed or has a wrong
            check digit.
    """
    nit = (raw or "").strip()

    if not nit:
        raise NitFormatError(NitErrorKind.MISSING_VALUE, "NIT is required")

    if not _ALLOWED_CHARACTERS.match(nit):
        raise NitFormatError(
            NitErrorKind.INVALID_CHARACTERS, "NIT must contain only digits and a hyphen"
        )

    if "-" not in nit:
        if len(nit) != NIT_BODY_LENGTH:
            raise NitFormatError(NitErrorKind.WRONG_LENGTH, "NIT must have exactly 9 digits")
        return

    body, _, check = nit.partition("-")
    if (
        len(nit) != NIT_WITH_CHECK_LENGTH
        or len(body) != NIT_BODY_LENGTH
        or len(check) != 1
        or not _is_ascii_digits(body)
        or not _is_ascii_digits(check)
    ):
        raise NitFormatError(
            NitErrorKind.WRONG_LENGTH,
            "NIT must have exactly 9 digits, a hyphen and 1 check digit",
        )

    if calculate_check_digit(body) != check:
        raise NitFormatError(NitErrorKind.INVALID_CHECK_DIGIT, "NIT check digit is invalid")


def is_valid_nit(raw: str | None) -> bool:
    """Return True if :func:`validate_nit` accepts the value."""
    try:
        validate_nit(raw)
    except NitFormatError:
        return False
    return True
