"""EIP-55 mixed-case checksum encoding for 20-byte addresses."""

from __future__ import annotations

import re

from eth_utils import keccak

ADDRESS_LENGTH = 20

_HEX_ADDRESS = re.compile(r"^0x[0-9a-fA-F]{40}$")


def to_checksum_address(raw: bytes) -> str:
    """Render ``raw`` as ``0x`` + hex where letters are upper-cased per the
    keccak-256 digest of the lowercase hex text (without prefix).

    A nibble value of 8 or more in the digest upper-cases the hex digit at the
    same position. Digits are unaffected.
    """
    if len(raw) != ADDRESS_LENGTH:
        raise ValueError(f"address must be {ADDRESS_LENGTH} bytes, got {len(raw)}")
    lower_hex = bytes(raw).hex()
    digest_hex = keccak(text=lower_hex).hex()
    chars: list[str] = []
    for position, char in enumerate(lower_hex):
        if position < len(digest_hex) and int(digest_hex[position], 16) >= 8:
            chars.append(_upper_ascii(char))
        else:
            chars.append(char)
    return "0x" + "".join(chars)


def checksum_hex(value: str) -> str:
    if not isinstance(value, str) or not _HEX_ADDRESS.match(value):
        raise ValueError(f"not a 0x-prefixed 20-byte hex address: {value!r}")
    return to_checksum_address(bytes.fromhex(value[2:]))


def is_hex_address(value: object) -> bool:
    return isinstance(value, str) and bool(_HEX_ADDRESS.match(value))


def _upper_ascii(char: str) -> str:
    if "a" <= char <= "z":
        return chr(ord(char) - 32)
    return char
