# msigvote/core/encoding.py
import base64
import binascii
import re

_HEX = re.compile(r"[0-9a-fA-F]*")
_DECIMAL = re.compile(r"[0-9]+")


def text_to_hex(text: str) -> str:
    """UTF-8 bytes of *text* as lowercase hex (no 0x prefix)."""
    return text.encode("utf-8").hex()


def hex_to_bytes(s: str) -> bytes:
    """Decode a hex string, with or without 0x prefix. Raises ValueError on odd length or non-hex digits."""
    if s.startswith(("0x", "0X")):
        s = s[2:]
    if not _HEX.fullmatch(s):
        raise ValueError(f"non-hex characters in {s!r}")
    if len(s) % 2:
        raise ValueError(f"odd-length hex string ({len(s)} digits)")
    return bytes.fromhex(s)


def b64_encode(data: bytes) -> str:
    """Standard base64 with padding (the wire form of message bodies)."""
    return base64.b64encode(data).decode("ascii")


def b64_decode(s: str) -> bytes:
    """Strict base64 decode. Raises ValueError on anything that is not base64."""
    try:
        return base64.b64decode(s, validate=True)
    except (binascii.Error, TypeError) as e:
        raise ValueError(f"invalid base64: {e}") from e


def parse_uint(value) -> int:
    """Integer from the JSON wire forms: int, decimal string or 0x hex string."""
    if isinstance(value, bool):
        raise ValueError("bool is not an integer")
    if isinstance(value, int):
        n = value
    elif isinstance(value, str):
        if value.startswith(("0x", "0X")) and value[2:] and _HEX.fullmatch(value[2:]):
            n = int(value[2:], 16)
        elif _DECIMAL.fullmatch(value):
            n = int(value)
        else:
            raise ValueError(f"not an integer: {value!r}")
    else:
        raise ValueError(f"not an integer: {value!r}")
    if n < 0:
        raise ValueError("negative value for unsigned integer")
    return n
