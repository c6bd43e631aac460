import uuid
from typing import Optional

SHORT_ID_LENGTH = 8


def generate_id() -> str:
    """
    Generate a fresh record identifier.

    Returns:
        str: An uppercase UUID4 string, e.g. ``"3F2504E0-4F89-41D3-9A0C-0305E82C3301"``.
    """
    return str(uuid.uuid4()).upper()


def normalize_id(value: Optional[str]) -> str:
    """Uppercase and strip an identifier or identifier prefix."""
    return (value or "").strip().upper()


def short_id(value: Optional[str]) -> str:
    """
    Shortened display form of an identifier.

    Args:
        value (str): Full identifier.

    Returns:
        str: The first eight characters, uppercased.
    """
    return (value or "")[:SHORT_ID_LENGTH].upper()
