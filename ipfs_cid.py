"""
IPFS content identifiers for ARC-19 assets.

ARC-19 stores the 32-byte SHA-256 digest of a CID in the asset's reserve
address and records how to rebuild the CID in the asset URL:

    template-ipfs://{ipfscid:VERSION:CODEC:FIELD:HASH}[suffix]

CIDv0 = Base58(0x12 0x20 + digest)                       "Qm..."
CIDv1 = "b" + Base32(0x01 + codec varint + 0x12 0x20 + digest)  "bafy..." / "bafk..."

Only SHA2-256 with 32-byte digests and the dag-pb / raw codecs are handled.
"""

from dataclasses import dataclass
from typing import Optional, Union

import base32_codec
import base58_codec
from mint_errors import InvalidCID, InvalidTemplateURL

SHA2_256 = 0x12
DIGEST_SIZE = 0x20  # 32 bytes
MULTIHASH_SIZE = 2 + DIGEST_SIZE

CIDV1_VERSION_BYTE = 0x01
MULTIBASE_BASE32 = "b"

# Single-byte multicodec varints; both codes are < 0x80.
CODEC_TAGS = {
    "dag-pb": 0x70,
    "raw": 0x55,
}

TEMPLATE_PREFIX = "template-ipfs://"
TEMPLATE_OPEN = "{ipfscid:"
TEMPLATE_HASH_TYPE = "sha2-256"
DEFAULT_FIELD = "reserve"
DEFAULT_GATEWAY = "https://ipfs.io"

# CIDv0 is 46 chars, CIDv1 with a one-byte codec is 59.
MAX_CID_LENGTH = 64


def _detect(value: str):
    """Return (version, codec) for a CID string, from its prefix alone."""
    if value.startswith("Qm"):
        # CIDv0 is always a dag-pb SHA2-256 multihash
        return 0, "dag-pb"
    if value.startswith("bafyb"):
        return 1, "dag-pb"
    if value.startswith("bafkr"):
        return 1, "raw"
    if value.startswith("bafy") or value.startswith("bafk"):
        # Heuristic: no multicodec parse, just the family prefix.
        return 1, "raw" if value.startswith("bafk") else "dag-pb"
    raise InvalidCID(f"Unknown CID format: {value}")


@dataclass(frozen=True, init=False)
class CID:
    """A validated CID string with its detected version and codec."""

    value: str
    version: int
    codec: str

    def __init__(self, value: str):
        if not isinstance(value, str):
            raise InvalidCID(f"CID must be a string, got {type(value).__name__}")
        if len(value) > MAX_CID_LENGTH:
            raise InvalidCID(f"CID too long: {len(value)} characters (max {MAX_CID_LENGTH})")
        version, codec = _detect(value)
        object.__setattr__(self, "value", value)
        object.__setattr__(self, "version", version)
        object.__setattr__(self, "codec", codec)

    def __str__(self):
        return self.value

    # ------------------------------------------------------------------
    # CID -> reserve
    # ------------------------------------------------------------------

    def to_reserve_address(self) -> bytes:
        """Return the 32-byte SHA-256 digest carried by this CID."""
        if self.version == 0:
            digest = self._decode_v0()
        else:
            digest = self._decode_v1()

        if len(digest) != DIGEST_SIZE:
            raise InvalidCID(
                f"CID hash must be 32 bytes for reserve address, got {len(digest)}"
            )
        return digest

    def _decode_v0(self) -> bytes:
        decoded = base58_codec.decode(self.value)
        if (
            len(decoded) < MULTIHASH_SIZE
            or decoded[0] != SHA2_256
            or decoded[1] != DIGEST_SIZE
        ):
            raise InvalidCID("Invalid CIDv0 multihash format")
        return decoded[2:]

    def _decode_v1(self) -> bytes:
        if not self.value.startswith(MULTIBASE_BASE32):
            raise InvalidCID("Unsupported multibase encoding for CIDv1")

        decoded = base32_codec.decode(self.value[1:].lower())

        # <version><codec varint><multihash>
        offset = 1
        while offset < len(decoded) and decoded[offset] & 0x80:
            offset += 1
        offset += 1

        if len(decoded) - offset < MULTIHASH_SIZE:
            raise InvalidCID("Invalid CIDv1 structure")
        if decoded[offset] != SHA2_256 or decoded[offset + 1] != DIGEST_SIZE:
            raise InvalidCID("CIDv1 must use SHA2-256 for ARC-19")

        return decoded[offset + 2:]

    # ------------------------------------------------------------------
    # reserve -> CID
    # ------------------------------------------------------------------

    @classmethod
    def from_reserve_address(cls, reserve: bytes, version: int, codec: str) -> "CID":
        """Rebuild a CID from a 32-byte reserve digest and its template version/codec."""
        reserve = bytes(reserve)
        if len(reserve) != DIGEST_SIZE:
            raise InvalidCID(
                f"Reserve address must contain 32 bytes, got {len(reserve)}"
            )

        multihash = bytes([SHA2_256, DIGEST_SIZE]) + reserve

        if version == 0:
            cid = cls(base58_codec.encode(multihash))
            if cid.version != 0:
                raise InvalidCID(f"Re-encoded CIDv0 has unexpected form: {cid.value}")
            return cid

        if version != 1:
            raise InvalidCID(f"Unsupported CID version: {version}")

        tag = CODEC_TAGS.get(codec)
        if tag is None:
            raise InvalidCID(f"Unsupported codec for CIDv1: {codec}")

        raw = bytes([CIDV1_VERSION_BYTE, tag]) + multihash
        return cls(MULTIBASE_BASE32 + base32_codec.encode(raw))

    @classmethod
    def from_template(
        cls, template: Union["ARC19TemplateURL", str], reserve: bytes
    ) -> "CID":
        """Rebuild a CID from an ARC-19 template (parsed or raw) and the reserve bytes."""
        if isinstance(template, str):
            template = ARC19TemplateURL.parse(template)
        if template.hash_type != TEMPLATE_HASH_TYPE:
            raise InvalidTemplateURL(f"Unsupported hash type: {template.hash_type}")
        return cls.from_reserve_address(reserve, template.version, template.codec)

    # ------------------------------------------------------------------
    # URLs
    # ------------------------------------------------------------------

    def to_arc19_url(self, field: str = DEFAULT_FIELD, suffix: Optional[str] = None) -> str:
        return ARC19TemplateURL(
            version=self.version,
            codec=self.codec,
            field=field,
            hash_type=TEMPLATE_HASH_TYPE,
            suffix=suffix,
        ).serialize()

    def gateway_url(self, gateway: str = DEFAULT_GATEWAY) -> str:
        return f"{gateway}/ipfs/{self.value}"

    @property
    def ipfs_uri(self) -> str:
        return f"ipfs://{self.value}"


@dataclass(frozen=True)
class ARC19TemplateURL:
    """Parsed `template-ipfs://{ipfscid:VERSION:CODEC:FIELD:HASH}[suffix]`."""

    version: int
    codec: str
    field: str
    hash_type: str
    suffix: Optional[str] = None

    def serialize(self) -> str:
        url = (
            f"{TEMPLATE_PREFIX}{TEMPLATE_OPEN}"
            f"{self.version}:{self.codec}:{self.field}:{self.hash_type}}}"
        )
        if self.suffix is not None:
            url += self.suffix
        return url

    def __str__(self):
        return self.serialize()

    @classmethod
    def parse(cls, url: str) -> "ARC19TemplateURL":
        if not isinstance(url, str) or not url.startswith(TEMPLATE_PREFIX):
            raise InvalidTemplateURL(f"Must start with {TEMPLATE_PREFIX}")

        rest = url[len(TEMPLATE_PREFIX):]
        if not rest.startswith(TEMPLATE_OPEN):
            raise InvalidTemplateURL("Missing {ipfscid:...} template")

        close = rest.find("}")
        if close == -1:
            raise InvalidTemplateURL("Missing closing brace")

        body = rest[len(TEMPLATE_OPEN):close]
        suffix = rest[close + 1:]

        # empty segments ("1::raw") are dropped before counting
        parts = [part for part in body.split(":") if part]
        if len(parts) != 4:
            raise InvalidTemplateURL(
                f"Expected 4 parts (version:codec:field:hash), got {len(parts)}"
            )

        version_text, codec, field, hash_type = parts
        if not version_text.isdigit():
            raise InvalidTemplateURL(f"Invalid version: {version_text}")
        if version_text not in ("0", "1"):
            raise InvalidTemplateURL(f"Version must be 0 or 1, got {version_text}")
        version = int(version_text)

        return cls(
            version=version,
            codec=codec,
            field=field,
            hash_type=hash_type,
            suffix=suffix or None,
        )


def is_template_url(url: str) -> bool:
    return isinstance(url, str) and url.startswith(TEMPLATE_PREFIX)
