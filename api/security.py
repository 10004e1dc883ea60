"""
Input hygiene for lead payloads. Field validation itself happens in the browser;
the server only normalizes what it is given.
"""
import re


def sanitize_text(text, max_length: int | None = None) -> str:
    """
    Strip control characters, optionally enforce a length limit.
    Scalars (numbers, booleans) are kept as their string form; missing, null
    and container values become "".
    """
    if text is None or isinstance(text, (dict, list)):
        return ""
    if not isinstance(text, str):
        text = str(text)
    if max_length is not None:
        text = text[:max_length]
    text = re.sub(r"[\x00-\x08\x0b\x0c\x0e-\x1f]", "", text)
    return text.strip()


def text_field(data: dict, *keys: str, default: str = "") -> str:
    """First non-empty value among keys, sanitized, else default."""
    for key in keys:
        value = sanitize_text(data.get(key))
        if value:
            return value
    return default
