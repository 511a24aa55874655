#!/usr/bin/env python3
"""
Convert between SHA-256 reserve digests (hex) and IPFS CIDs.

Input: 64-character SHA-256 hexadecimal string
Output: IPFS CID (CIDv0 Qm... by default, CIDv1 b... with --cid-version 1)

Process:
1. Prepend 0x12 0x20 to the digest (12 = SHA2-256, 20 = 32 bytes length)
2. CIDv0: Base58 encode the multihash
   CIDv1: prefix 0x01 + codec, Base32 encode, prepend multibase "b"

With --reverse the argument is a CID, and its reserve digest and ARC-19
template URL are printed instead.
"""

import argparse
import binascii
import sys

from ipfs_cid import CID, CODEC_TAGS, ARC19TemplateURL
from mint_errors import MintError

HEX_DIGITS = "0123456789abcdefABCDEF"


def parse_reserve_hex(hex_string: str) -> bytes:
    """
    Parse a SHA-256 hex digest into the 32 reserve bytes.

    Args:
        hex_string: 64-character SHA-256 hexadecimal string
                   (or 67-character string with prefix, will extract last 64 chars)

    Returns:
        32 raw digest bytes
    """
    # Remove ALL whitespace (spaces, newlines, tabs, carriage returns, etc.)
    hex_string = ''.join(c for c in hex_string if c not in ' \n\r\t\v\f')

    if not all(c in HEX_DIGITS for c in hex_string):
        raise ValueError("Input must be a valid hexadecimal string")

    hex_string = hex_string.lower()

    if len(hex_string) == 67:
        # "XXX" + 64-char hash, keep the hash
        hex_string = hex_string[-64:]
    elif len(hex_string) != 64:
        raise ValueError(f"Input must be 64 or 67 characters after removing whitespace (got {len(hex_string)})")

    try:
        return binascii.unhexlify(hex_string)
    except binascii.Error as e:
        raise ValueError(f"Invalid hex string: {e}")


def hex_to_cid(hex_string: str, version: int = 0, codec: str = "dag-pb") -> CID:
    """Build the CID whose digest is `hex_string`."""
    return CID.from_reserve_address(parse_reserve_hex(hex_string), version, codec)


def main(argv=None):
    """Main entry point"""
    parser = argparse.ArgumentParser(
        description="Convert SHA-256 reserve digests to IPFS CIDs and back",
        epilog="Example: python hex_to_cid.py e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855",
    )
    parser.add_argument("value", nargs="+", help="hex digest (or CID with --reverse); whitespace is ignored")
    parser.add_argument("--cid-version", type=int, choices=[0, 1], default=0, help="CID version to produce (default 0)")
    parser.add_argument("--codec", choices=sorted(CODEC_TAGS), default="dag-pb", help="CIDv1 codec (default dag-pb)")
    parser.add_argument("--template", help="ARC-19 template URL to take version and codec from")
    parser.add_argument("--reverse", action="store_true", help="treat the argument as a CID and print its reserve digest")
    parser.add_argument("--field", default="reserve", help="template field name for --reverse (default reserve)")
    args = parser.parse_args(argv)

    # Remove all whitespace from input
    raw = ''.join(''.join(args.value).split())

    try:
        if args.reverse:
            cid = CID(raw)
            print(cid.to_reserve_address().hex())
            print(cid.to_arc19_url(field=args.field))
            return 0

        if args.template:
            template = ARC19TemplateURL.parse(args.template)
            cid = CID.from_template(template, parse_reserve_hex(raw))
        else:
            cid = hex_to_cid(raw, args.cid_version, args.codec)
        print(cid.value)
    except (ValueError, MintError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
