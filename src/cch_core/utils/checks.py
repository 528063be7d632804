"""Validation helpers for candidate secret values."""
from __future__ import annotations

import regex

PLACEHOLDER_VALUES = (
    "example.com",
    "localhost",
    "127.0.0.1",
    "test@test.com",
    "user@example.com",
    "password123",
    "secretkey",
    "your_api_key_here",
    "insert_api_key_here",
)

# Published processor test numbers; Luhn-valid but never real cards.
TEST_CARD_NUMBERS = frozenset(
    {
        "4111111111111111",
        "4242424242424242",
        "4012888888881881",
        "4000056655665556",
        "5555555555554444",
        "5105105105105100",
        "5200828282828210",
        "378282246310005",
        "371449635398431",
        "6011111111111117",
        "6011000990139424",
        "30569309025904",
        "38520000023237",
    }
)

_CARD_SEPARATORS = regex.compile(r"[ -]")


def luhn_valid(value: str) -> bool:
    digits = [int(char) for char in value if char.isdigit()]
    if len(digits) < 13 or len(digits) > 19:
        return False
    checksum = 0
    parity = len(digits) % 2
    for index, digit in enumerate(digits):
        if index % 2 == parity:
            digit *= 2
            if digit > 9:
                digit -= 9
        checksum += digit
    return checksum % 10 == 0


def is_placeholder(value: str) -> bool:
    lowered = value.lower()
    return any(placeholder in lowered for placeholder in PLACEHOLDER_VALUES)


def normalize_card_number(value: str) -> str:
    return _CARD_SEPARATORS.sub("", value)


def card_number_valid(value: str) -> bool:
    """Accept a candidate card number only if it could be a real card."""

    digits = normalize_card_number(value)
    if not digits.isdigit() or not 13 <= len(digits) <= 19:
        return False
    if digits in TEST_CARD_NUMBERS:
        return False
    return luhn_valid(digits)


def mask_value(value: str, mask_char: str = "*") -> str:
    """Mask ``value`` keeping enough of its shape to recognise it.

    Values of eight characters or fewer are masked entirely. Longer values
    keep their first and last three characters around at least three mask
    characters.
    """

    if len(value) <= 8:
        return mask_char * len(value)
    middle = mask_char * max(3, len(value) - 6)
    return f"{value[:3]}{middle}{value[-3:]}"


__all__ = [
    "PLACEHOLDER_VALUES",
    "TEST_CARD_NUMBERS",
    "luhn_valid",
    "is_placeholder",
    "normalize_card_number",
    "card_number_valid",
    "mask_value",
]
