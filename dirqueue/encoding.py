"""
Deterministic filename-safe identifiers.

The encoder reproduces the legacy producer's host/process token: a byte sum
of the input, uuencoded, then shifted into a base64-like alphabet. It is a
disambiguator, not a hash; collisions are resolved by the publish retries.
"""

import binascii
import re

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9+_]")


def _shift(char: str) -> str:
    """Map one uuencode character into the filename-safe alphabet."""
    code = ord(char)
    if ord(" ") <= code <= ord(":"):
        code += 33
    elif ord(":") < code <= ord("T"):
        code += 39
    elif ord("T") < code <= ord("]"):
        code -= 36
    elif char == "^":
        code = ord("+")
    return chr(code)


def encoded_id(value: str) -> str:
    """
    Encode a string into a short token drawn from ``[A-Za-z0-9+_]``.

    Args:
        value: Any string, typically hostname followed by process id.

    Returns:
        The encoded token. Identical input always yields identical output.
    """
    checksum = sum(value.encode("utf-8"))
    armored = binascii.b2a_uu(str(checksum).encode("ascii")).decode("ascii")
    shifted = "".join(_shift(char) for char in armored)
    return _UNSAFE_CHARS.sub("", shifted)
