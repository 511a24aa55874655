"""RFC 4648 Base32, lowercase and unpadded, as used by CIDv1 multibase 'b'."""

from mint_errors import InvalidCID

ALPHABET = "abcdefghijklmnopqrstuvwxyz234567"
_INDEX = {char: i for i, char in enumerate(ALPHABET)}


def encode(data: bytes) -> str:
    """Encode bytes; output length is ceil(len(data) * 8 / 5), never padded."""
    out = []
    bits = 0
    buffer = 0

    for byte in bytes(data):
        buffer = ((buffer << 8) | byte) & 0xFFF
        bits += 8
        while bits >= 5:
            bits -= 5
            out.append(ALPHABET[(buffer >> bits) & 0x1F])

    if bits > 0:
        out.append(ALPHABET[(buffer << (5 - bits)) & 0x1F])

    return "".join(out)


def decode(text: str) -> bytes:
    """
    Decode lowercase Base32. The first '=' ends decoding (padding is not
    validated); any other unknown character raises InvalidCID.
    """
    out = bytearray()
    bits = 0
    buffer = 0

    for char in text:
        if char == "=":
            break
        value = _INDEX.get(char)
        if value is None:
            raise InvalidCID(f"Invalid Base32 character: {char!r}")

        buffer = ((buffer << 5) | value) & 0xFFF
        bits += 5
        if bits >= 8:
            bits -= 8
            out.append((buffer >> bits) & 0xFF)

    return bytes(out)
