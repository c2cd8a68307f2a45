from decimal import Decimal
from typing import Any


def safe_dot_access(obj: Any, path, default=None):
    """
    Safely access nested keys of a response-like object.
    """
    try:
        for key in path.split("."):
            obj = obj[key]
        return obj
    except KeyError:
        return default
    except TypeError:
        return default


def is_zero_value(value: Any) -> bool:
    """
    True when the value is what an unset field holds: None, False, 0 or an empty string/collection.
    """
    if value is None or value is False:
        return True
    if isinstance(value, (int, float, Decimal)) and value == 0:
        return True
    if isinstance(value, (str, bytes, bytearray, list, tuple, set, frozenset, dict)):
        return len(value) == 0
    return False
