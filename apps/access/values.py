"""
Canonicalization of the legacy "allowed" encodings.

IsAllowed columns were written by several generations of admin tooling and
hold 1, True, 'Yes', 'yes ', '1', 'true', BIT bytes, or NULL.
"""
from decimal import Decimal

TRUTHY_STRINGS = frozenset(['yes', '1', 'true'])


def to_bool(value) -> bool:
    """
    Fold a stored IsAllowed value into a boolean. Never raises.

    - bool: unchanged
    - numbers: only 1 is true
    - strings: 'yes', '1', 'true' after trimming, case-insensitively
    - bytes: first byte 0x01 or 0x00 (BIT columns), otherwise decoded as a string
    - anything else, including None: false
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float, Decimal)):
        return value == 1
    if isinstance(value, str):
        return value.strip().lower() in TRUTHY_STRINGS
    if isinstance(value, (bytes, bytearray, memoryview)):
        data = bytes(value)
        if data and data[0] in (0, 1):
            return data[0] == 1
        return to_bool(data.decode('utf-8', errors='ignore'))
    return False
