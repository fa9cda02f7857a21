"""
Plate Text Normalization

Canonical form for recognized strings and the plate-shape heuristic.
"""


MIN_PLATE_LENGTH = 4
MAX_PLATE_LENGTH = 8


def normalize_text(raw_text: str) -> str:
    """
    Normalize recognized text.

    Steps:
    1. Convert to uppercase
    2. Drop every character that is not a Unicode letter or digit

    Order of the remaining characters is preserved and the function is
    idempotent. Input without any alphanumerics yields "".

    Args:
        raw_text: Raw text from the recognition engine

    Returns:
        Normalized text
    """
    if not raw_text:
        return ""

    return "".join(ch for ch in raw_text.upper() if ch.isalnum())


def looks_like_plate(text: str) -> bool:
    """
    Check if text has the shape of a licence plate.

    4-8 characters, all alphanumeric, at least one digit. Callers pass
    normalized text; separators such as "-" make the check fail.

    Args:
        text: Text to check

    Returns:
        True if plate-shaped
    """
    if not MIN_PLATE_LENGTH <= len(text) <= MAX_PLATE_LENGTH:
        return False

    has_digit = any(ch.isdigit() for ch in text)
    return has_digit and text.isalnum()
