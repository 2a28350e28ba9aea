"""
Utility helper functions for safe handling of upstream payloads.
"""
from typing import Any, Dict, List, Optional, Union


def safe_str(value: Any, default: str = "") -> str:
    """
    Safely convert value to string, handling None.

    Args:
        value: Any value to convert
        default: Default string if value is None

    Returns:
        String representation or default
    """
    if value is None:
        return default
    return str(value)


def safe_int(value: Any, default: Optional[int] = None) -> Optional[int]:
    """
    Return value as an int only if it is already integral.

    Accepts ints and floats with no fractional part. Booleans, strings,
    fractional floats, NaN and infinities all map to ``default``, so an
    upstream ID is never truncated or coerced.
    """
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return default


def safe_number(value: Any) -> Optional[Union[int, float]]:
    """Return value if it is a real number, otherwise None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    return None


def safe_dict(value: Any) -> Dict[str, Any]:
    """Return value if it is a dict, otherwise an empty dict."""
    return value if isinstance(value, dict) else {}


def safe_list(value: Any) -> List[Any]:
    """Return value if it is a list, otherwise an empty list."""
    return value if isinstance(value, list) else []


def dig(data: Any, *keys: str) -> Any:
    """
    Walk nested dicts, returning None as soon as a level is missing.

    Example:
        dig(raw, "sprites", "other", "official-artwork", "front_default")
    """
    current = data
    for key in keys:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current
