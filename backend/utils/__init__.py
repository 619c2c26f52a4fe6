"""
Utility modules package.
"""

from utils.clock import utc_now
from utils.validators import is_blank, validate_required, validate_tags

__all__ = [
    "utc_now",
    "is_blank",
    "validate_required",
    "validate_tags",
]
