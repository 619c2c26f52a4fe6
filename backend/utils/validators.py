"""
Input validation utilities.
"""

from typing import Any, Dict, Optional, Tuple


def is_blank(value: Any) -> bool:
    """True for None, non-strings and strings that are empty after strip()."""
    return not isinstance(value, str) or not value.strip()


def validate_required(fields: Dict[str, Any],
                      message: Optional[str] = None) -> Tuple[bool, str]:
    """
    Check that every named field carries a non-blank string.

    Args:
        fields: Mapping of client-facing field name to submitted value
        message: Error text to use instead of "<field> is required"

    Returns:
        Tuple of (is_valid, error_message)
    """
    for name, value in fields.items():
        if is_blank(value):
            return False, message or f"{name} is required"
    return True, ""


def validate_tags(tags: Any) -> Tuple[bool, str]:
    """
    Validate a tag list.

    Tags must be a list of strings; the list may be empty.
    """
    if not isinstance(tags, list):
        return False, "Tags must be a list of strings"
    if not all(isinstance(tag, str) for tag in tags):
        return False, "Tags must be a list of strings"
    return True, ""
