"""Utility exports."""
from .checks import card_number_valid, is_placeholder, luhn_valid, mask_value
from .fs import atomic_write_bytes, atomic_writer
from .text import collapse_whitespace, context_window, format_bytes, to_text, utf8_size

__all__ = [
    "card_number_valid",
    "is_placeholder",
    "luhn_valid",
    "mask_value",
    "atomic_write_bytes",
    "atomic_writer",
    "collapse_whitespace",
    "context_window",
    "format_bytes",
    "to_text",
    "utf8_size",
]
