import html
from typing import Optional


def sanitize_string(value: Optional[str]) -> Optional[str]:
    """
    Escape HTML special characters so user-supplied values can be placed in
    email markup. Returns None if input is None.
    """
    if value is None:
        return None
    if not isinstance(value, str):
        return value
    return html.escape(value, quote=True)


def truncate(value: Optional[str], max_length: int) -> str:
    """Clip a value to a remote attribute's size limit"""
    if not value:
        return ""
    return value[:max_length] if len(value) > max_length else value
