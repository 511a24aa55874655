"""
Base58 (Bitcoin alphabet) encoder/decoder.

Used for CIDv0 strings, which are the Base58 text form of a SHA2-256
multihash (0x12 0x20 + 32 digest bytes). Leading zero bytes are carried
as literal '1' characters, the way base58 tools such as `ipfs cid` and
the `base58` package do it.
"""

from mint_errors import InvalidCID

ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
_INDEX = {char: i for i, char in enumerate(ALPHABET)}


def encode(data: bytes) -> str:
    """
    Encode bytes to a Base58 string.

    The input is treated as one big-endian number and reduced digit by
    digit inside a fixed-width buffer (log(256)/log(58) < 1.38, so
    len * 138 / 100 + 1 digits always fit).
    """
    data = bytes(data)

    leading_zeros = 0
    for byte in data:
        if byte != 0:
            break
        leading_zeros += 1

    size = len(data) * 138 // 100 + 1
    digits = [0] * size
    length = 0

    for byte in data:
        carry = byte
        i = 0
        j = size - 1
        while j >= 0 and (carry != 0 or i < length):
            carry += 256 * digits[j]
            digits[j] = carry % 58
            carry //= 58
            i += 1
            j -= 1
        length = i

    start = 0
    while start < size and digits[start] == 0:
        start += 1

    return "1" * leading_zeros + "".join(ALPHABET[d] for d in digits[start:])


def decode(text: str) -> bytes:
    """
    Decode a Base58 string to bytes.

    Raises InvalidCID on a character outside the alphabet. The empty
    string decodes to a single zero byte.
    """
    # big-endian accumulator, grown at the front when the carry overflows
    result = bytearray([0])

    for char in text:
        value = _INDEX.get(char)
        if value is None:
            raise InvalidCID(f"Invalid Base58 character: {char!r}")

        carry = value
        for i in range(len(result) - 1, -1, -1):
            carry += 58 * result[i]
            result[i] = carry % 256
            carry //= 256

        while carry > 0:
            result.insert(0, carry % 256)
            carry //= 256

    leading_ones = len(text) - len(text.lstrip("1"))
    if text and leading_ones == len(text):
        # all '1': the number itself is zero, only the zero bytes remain
        return bytes(leading_ones)
    return bytes(leading_ones) + bytes(result)
