"""
Validation helpers for catalog and progress input
"""
import math
from typing import Any, Optional, Tuple


def validate_string_length(value: Any, field_name: str, min_length: int = 1, max_length: int = 255) -> Tuple[bool, Optional[str]]:
    """
    Validate the length of a string

    Args:
        value: Value to validate
        field_name: Field name (for the error message)
        min_length: Minimum length
        max_length: Maximum length

    Returns:
        (is_valid, error_message)
    """
    if value is not None and not isinstance(value, str):
        return False, f"{field_name} must be a string"

    if not value or not value.strip():
        if min_length > 0:
            return False, f"{field_name} is required"
        return True, None

    length = len(value.strip())

    if length < min_length:
        return False, f"{field_name} must be at least {min_length} characters"

    if length > max_length:
        return False, f"{field_name} cannot exceed {max_length} characters"

    return True, None


def validate_code(value: Any, field_name: str = "code", max_length: Optional[int] = None) -> Tuple[bool, Optional[str]]:
    """
    Validate a catalog code (non-empty, optionally bounded)

    Returns:
        (is_valid, error_message)
    """
    return validate_string_length(value, field_name, min_length=1, max_length=max_length or 255)


def normalize_code(value: str) -> str:
    """Codes are stored trimmed and uppercase"""
    return (value or '').strip().upper()


def validate_numeric(value: Any, field_name: str, min_value: Optional[float] = None, max_value: Optional[float] = None) -> Tuple[bool, Optional[str]]:
    """
    Validate a numeric value

    Args:
        value: Value to validate
        field_name: Field name
        min_value: Minimum allowed value
        max_value: Maximum allowed value

    Returns:
        (is_valid, error_message)
    """
    if isinstance(value, bool):
        return False, f"{field_name} must be a valid number"
    try:
        num = float(value)
    except (ValueError, TypeError):
        return False, f"{field_name} must be a valid number"

    if not math.isfinite(num):
        return False, f"{field_name} must be a valid number"

    if min_value is not None and num < min_value:
        return False, f"{field_name} must be greater than or equal to {min_value}"

    if max_value is not None and num > max_value:
        return False, f"{field_name} must be less than or equal to {max_value}"

    return True, None


def validate_non_negative(value: Any, field_name: str) -> Tuple[bool, Optional[str]]:
    """
    Validate that a number is zero or positive

    Returns:
        (is_valid, error_message)
    """
    return validate_numeric(value, field_name, min_value=0)


def coerce_number(value: Any, default: float = 0.0) -> float:
    """Lenient numeric coercion: missing, non-numeric or non-finite values become ``default``"""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return default
    try:
        num = float(value)
    except (ValueError, TypeError):
        return default
    if not math.isfinite(num):
        return default
    return num
