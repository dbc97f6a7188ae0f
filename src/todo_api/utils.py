from __future__ import annotations

import re
from typing import Optional

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

_DECIMAL_RE = re.compile(r"[+-]?[0-9]+")


# PUBLIC_INTERFACE
def int_or_zero(value: Optional[str]) -> int:
    """
    Parse an optional query-string value as a signed 64-bit integer.

    Absent values, anything but plain ASCII decimal digits with an optional
    sign, and numbers outside the signed 64-bit range all yield 0 instead of
    an error; the read endpoint relies on this to apply its defaults.

    Args:
        value: Raw query parameter value, or None when absent.

    Returns:
        The parsed integer, or 0.
    """
    if value is None or not _DECIMAL_RE.fullmatch(value):
        return 0
    number = int(value)
    if not INT64_MIN <= number <= INT64_MAX:
        return 0
    return number
