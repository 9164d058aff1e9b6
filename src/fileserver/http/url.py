"""
=============================================================================
URL PERCENT-DECODING
=============================================================================

Browsers escape bytes that are not allowed in a URL as "%XX", where XX is
the byte value in hexadecimal:

    GET /my%20notes.txt HTTP/1.1      →   file name "my notes.txt"
    GET /caf%C3%A9.html HTTP/1.1      →   file name "café.html" (UTF-8)

=============================================================================
DECODING RULES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │  Scan left to right. At position i:                                 │
    │                                                                      │
    │   source[i] == "%"                                                  │
    │   AND i + 2 < len(source)          ← both escape bytes are in bounds│
    │   AND source[i+1] is hex           ← "%zz" is not an escape         │
    │       │                                                             │
    │       ├── yes → emit the value of the hex run in source[i+1:i+3]   │
    │       │         ("%41" → "A", "%2z" → 0x02), i += 3                 │
    │       └── no  → emit source[i] unchanged,      i += 1              │
    └─────────────────────────────────────────────────────────────────────┘

Edge cases at the end of the input are copied literally:

    "abc%"    → "abc%"
    "abc%2"   → "abc%2"
    "abc%20"  → "abc "      (i + 2 == len - 1, still in bounds)

The decoder never grows its input: every step either copies one byte or
turns three bytes into one.

=============================================================================
"""

from typing import Union


_HEX_DIGITS = frozenset(b"0123456789abcdefABCDEF")
_PERCENT = ord("%")


def percent_decode(source: Union[bytes, str]) -> Union[bytes, str]:
    """
    Decode %XX escapes.

    Args:
        source: Raw path bytes from the request line. A str is accepted
                for convenience; it is encoded as UTF-8 first and the
                result decoded back with surrogateescape, so undecodable
                bytes survive a round trip.

    Returns:
        Decoded value of the same type as ``source``.

    Examples:
        >>> percent_decode(b"a%20b")
        b'a b'

        >>> percent_decode("abc%2")
        'abc%2'
    """
    if isinstance(source, str):
        raw = source.encode("utf-8", errors="surrogateescape")
        return _decode_bytes(raw).decode("utf-8", errors="surrogateescape")
    return _decode_bytes(bytes(source))


def _decode_bytes(source: bytes) -> bytes:
    length = len(source)
    decoded = bytearray()
    i = 0

    while i < length:
        byte = source[i]
        if byte == _PERCENT and i + 2 < length and source[i + 1] in _HEX_DIGITS:
            # "%2z" reads the single digit "2"; the third byte is skipped either way
            digits = source[i + 1:i + 3] if source[i + 2] in _HEX_DIGITS else source[i + 1:i + 2]
            decoded.append(int(digits, 16))
            i += 3
        else:
            decoded.append(byte)
            i += 1

    return bytes(decoded)
