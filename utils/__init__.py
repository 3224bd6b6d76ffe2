"""
Utils package for the progress tracker
"""

from utils.json_unwrap import unwrap_json, unwrap_json_list
from utils.validators import (
    coerce_number,
    normalize_code,
    validate_code,
    validate_non_negative,
    validate_numeric,
    validate_string_length,
)


__all__ = [
    'unwrap_json',
    'unwrap_json_list',
    'coerce_number',
    'normalize_code',
    'validate_code',
    'validate_non_negative',
    'validate_numeric',
    'validate_string_length',
]
