import re
from typing import Any

# Anything outside the identifier charset gets stripped
_NOT_IDENTIFIER = re.compile(r"[^A-Za-z0-9_]")


def sanitize_identifier(raw: str) -> str:
    """
    Strip every character outside [A-Za-z0-9_] from a table or column name.
    Never raises; the worst case is an empty string.
    """
    return _NOT_IDENTIFIER.sub("", raw or "")


def escape_value(value: Any) -> Any:
    """
    Double single quotes in strings that would be written straight into SQL text.
    REST statements bind their values instead, so they never go through here.
    """
    if isinstance(value, str):
        return value.replace("'", "''")
    return value
