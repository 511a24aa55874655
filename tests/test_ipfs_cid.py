import base64
import hashlib

import base58
import pytest

from ipfs_cid import CID, ARC19TemplateURL, is_template_url
from mint_errors import InvalidCID, InvalidTemplateURL

CID_V0 = "QmYwAPJzv5CZsnA625s3Xf2nemtYgPpHdWEz79ojWnPbdG"
CID_V1 = "bafybeigdyrzt5sfp7udm7hu76uh7y26nf3efuylqabf3oclgtqy55fbzdi"

DIGEST = hashlib.sha256(b"arc19 test metadata").digest()


def _v1_digest(cid: str) -> bytes:
    body = cid[1:].upper()
    body += "=" * (-len(body) % 8)
    return base64.b32decode(body)[4:36]


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------

def test_parse_cidv0():
    cid = CID(CID_V0)
    assert cid.version == 0
    assert cid.codec == "dag-pb"
    assert cid.value == CID_V0
    assert str(cid) == CID_V0


def test_parse_cidv1():
    cid = CID(CID_V1)
    assert cid.version == 1
    assert cid.codec == "dag-pb"


@pytest.mark.parametrize(
    "value, version, codec",
    [
        ("bafkreigh2akiscaildcqabsyg3dfr6chu3fgpregiymsck7e7aqa4s52zy", 1, "raw"),
        ("bafyaaaa", 1, "dag-pb"),
        ("bafkqaaa", 1, "raw"),
    ],
)
def test_prefix_detection(value, version, codec):
    cid = CID(value)
    assert (cid.version, cid.codec) == (version, codec)


@pytest.mark.parametrize("value", ["invalid-cid-format", "", "zdj7W", "bafa", "qmYw"])
def test_invalid_cid_raises(value):
    with pytest.raises(InvalidCID):
        CID(value)


def test_non_string_rejected():
    with pytest.raises(InvalidCID):
        CID(b"Qm")


def test_cid_is_immutable_value():
    cid = CID(CID_V0)
    assert cid == CID(CID_V0)
    assert hash(cid) == hash(CID(CID_V0))
    assert cid != CID(CID_V1)
    with pytest.raises(AttributeError):
        cid.version = 1


# ---------------------------------------------------------------------------
# CID -> reserve
# ---------------------------------------------------------------------------

def test_cidv0_reserve_is_multihash_digest():
    reserve = CID(CID_V0).to_reserve_address()
    assert len(reserve) == 32
    assert reserve == base58.b58decode(CID_V0)[2:]


def test_cidv1_reserve_is_multihash_digest():
    reserve = CID(CID_V1).to_reserve_address()
    assert len(reserve) == 32
    assert reserve == _v1_digest(CID_V1)


def test_uppercase_cidv1_is_not_recognised():
    upper = "b" + CID_V1[1:].upper()
    # the detector only knows lowercase prefixes
    with pytest.raises(InvalidCID):
        CID(upper)


def test_cidv0_bad_character():
    with pytest.raises(InvalidCID):
        CID("Qm0000").to_reserve_address()


def test_cidv0_too_short():
    with pytest.raises(InvalidCID):
        CID("QmYwAP").to_reserve_address()


def test_cidv1_too_short():
    with pytest.raises(InvalidCID):
        CID("bafybeig").to_reserve_address()


def test_cidv1_non_sha256_multihash():
    # identity multihash (0x00) instead of sha2-256
    raw = bytes([0x01, 0x55, 0x00, 0x20]) + bytes(32)
    body = base64.b32encode(raw).decode().rstrip("=").lower()
    cid = CID("b" + body)
    assert cid.codec == "raw"
    with pytest.raises(InvalidCID):
        cid.to_reserve_address()


def test_cidv1_trailing_bytes_after_digest_rejected():
    raw = bytes([0x01, 0x70, 0x12, 0x20]) + _v1_digest(CID_V1) + bytes(2)
    body = base64.b32encode(raw).decode().rstrip("=").lower()
    assert body.startswith(CID_V1[1:-1])
    cid = CID("b" + body)
    with pytest.raises(InvalidCID):
        cid.to_reserve_address()

    padded = CID(CID_V1 + "aaa")
    with pytest.raises(InvalidCID):
        padded.to_reserve_address()


def test_overlong_cid_rejected_before_decoding():
    with pytest.raises(InvalidCID) as exc:
        CID("Qm" + "z" * 8000)
    assert "too long" in exc.value.detail
    with pytest.raises(InvalidCID):
        CID(CID_V1 + "aaaaaaaa")
    # real CIDs stay under the cap
    CID(CID_V0)
    CID(CID_V1)


# ---------------------------------------------------------------------------
# reserve -> CID
# ---------------------------------------------------------------------------

def test_cidv0_round_trip_is_exact():
    cid = CID(CID_V0)
    rebuilt = CID.from_reserve_address(cid.to_reserve_address(), cid.version, cid.codec)
    assert rebuilt.value == cid.value
    assert rebuilt == cid


def test_cidv1_dag_pb_round_trip():
    cid = CID(CID_V1)
    rebuilt = CID.from_reserve_address(cid.to_reserve_address(), 1, "dag-pb")
    assert rebuilt.version == 1
    assert rebuilt.codec == "dag-pb"
    assert rebuilt.to_reserve_address() == cid.to_reserve_address()
    assert rebuilt.value == CID_V1


def test_from_reserve_raw_codec():
    cid = CID.from_reserve_address(DIGEST, 1, "raw")
    assert cid.value.startswith("bafkrei")
    assert cid.codec == "raw"
    assert cid.to_reserve_address() == DIGEST


def test_from_reserve_v0_starts_with_qm():
    cid = CID.from_reserve_address(DIGEST, 0, "dag-pb")
    assert cid.value.startswith("Qm")
    assert cid.value == base58.b58encode(bytes([0x12, 0x20]) + DIGEST).decode()
    assert cid.to_reserve_address() == DIGEST


def test_from_reserve_v0_ignores_codec():
    assert CID.from_reserve_address(DIGEST, 0, "raw").codec == "dag-pb"


@pytest.mark.parametrize("size", [0, 31, 33, 34])
def test_from_reserve_requires_32_bytes(size):
    with pytest.raises(InvalidCID):
        CID.from_reserve_address(bytes(size), 0, "dag-pb")


def test_from_reserve_unsupported_codec():
    with pytest.raises(InvalidCID):
        CID.from_reserve_address(DIGEST, 1, "dag-cbor")


def test_from_reserve_unsupported_version():
    with pytest.raises(InvalidCID):
        CID.from_reserve_address(DIGEST, 2, "raw")


def test_from_reserve_accepts_bytearray():
    assert CID.from_reserve_address(bytearray(DIGEST), 1, "raw").to_reserve_address() == DIGEST


# ---------------------------------------------------------------------------
# URLs
# ---------------------------------------------------------------------------

def test_arc19_url_default():
    assert CID(CID_V0).to_arc19_url() == "template-ipfs://{ipfscid:0:dag-pb:reserve:sha2-256}"


def test_arc19_url_with_field_and_suffix():
    url = CID.from_reserve_address(DIGEST, 1, "raw").to_arc19_url(field="manager", suffix="/arc3.json")
    assert url == "template-ipfs://{ipfscid:1:raw:manager:sha2-256}/arc3.json"


def test_arc19_url_parse_round_trip():
    url = CID(CID_V1).to_arc19_url(field="manager", suffix="/x")
    parsed = ARC19TemplateURL.parse(url)
    assert parsed.field == "manager"
    assert parsed.suffix == "/x"
    assert parsed.version == 1
    assert parsed.codec == "dag-pb"
    assert parsed.hash_type == "sha2-256"


def test_gateway_url():
    cid = CID(CID_V0)
    assert cid.gateway_url() == f"https://ipfs.io/ipfs/{CID_V0}"
    assert cid.gateway_url("https://gateway.pinata.cloud") == f"https://gateway.pinata.cloud/ipfs/{CID_V0}"
    assert cid.ipfs_uri == f"ipfs://{CID_V0}"


def test_from_template_rebuilds_cid():
    cid = CID.from_reserve_address(DIGEST, 1, "raw")
    rebuilt = CID.from_template(cid.to_arc19_url(suffix="/arc3.json"), cid.to_reserve_address())
    assert rebuilt == cid


def test_from_template_rejects_other_hash_types():
    with pytest.raises(InvalidTemplateURL):
        CID.from_template("template-ipfs://{ipfscid:0:dag-pb:reserve:sha3-256}", DIGEST)


# ---------------------------------------------------------------------------
# Template URL parser
# ---------------------------------------------------------------------------

def test_parse_template_with_suffix():
    parsed = ARC19TemplateURL.parse("template-ipfs://{ipfscid:1:raw:reserve:sha2-256}/arc3.json")
    assert parsed == ARC19TemplateURL(
        version=1, codec="raw", field="reserve", hash_type="sha2-256", suffix="/arc3.json"
    )


def test_parse_template_without_suffix():
    parsed = ARC19TemplateURL.parse("template-ipfs://{ipfscid:0:dag-pb:reserve:sha2-256}")
    assert parsed.suffix is None
    assert parsed.version == 0


def test_parse_codec_is_passthrough():
    parsed = ARC19TemplateURL.parse("template-ipfs://{ipfscid:1:dag-cbor:reserve:sha2-256}")
    assert parsed.codec == "dag-cbor"


@pytest.mark.parametrize(
    "url",
    [
        "template-ipfs://{ipfscid:0:dag-pb:reserve:sha2-256}",
        "template-ipfs://{ipfscid:1:raw:reserve:sha2-256}/arc3.json",
        "template-ipfs://{ipfscid:1:raw:manager:sha2-256}#i18n",
    ],
)
def test_parse_serialize_agree(url):
    assert ARC19TemplateURL.parse(url).serialize() == url
    assert str(ARC19TemplateURL.parse(url)) == url


def test_serialize_parse_agree():
    template = ARC19TemplateURL(version=1, codec="raw", field="reserve", hash_type="sha2-256")
    assert ARC19TemplateURL.parse(template.serialize()) == template


def test_empty_segments_are_not_counted():
    parsed = ARC19TemplateURL.parse("template-ipfs://{ipfscid:1::raw:reserve:sha2-256}")
    assert parsed.codec == "raw"


@pytest.mark.parametrize(
    "url",
    [
        "https://example.com",
        "template-ipfs://invalid",
        "template-ipfs://{ipfscid:0:dag-pb:reserve:sha2-256",
        "template-ipfs://{ipfscid:0:dag-pb:reserve}",
        "template-ipfs://{ipfscid:0:dag-pb:reserve:sha2-256:extra}",
        "template-ipfs://{ipfscid:x:dag-pb:reserve:sha2-256}",
        "template-ipfs://{ipfscid:2:dag-pb:reserve:sha2-256}",
        "template-ipfs://{ipfscid:-1:dag-pb:reserve:sha2-256}",
        "template-ipfs://{ipfscid: 1:dag-pb:reserve:sha2-256}",
        "template-ipfs://{ipfscid:+1:dag-pb:reserve:sha2-256}",
        "template-ipfs://{ipfscid:01:dag-pb:reserve:sha2-256}",
        "template-ipfs://{ipfscid:0_1:dag-pb:reserve:sha2-256}",
        "ipfs://{ipfscid:0:dag-pb:reserve:sha2-256}",
        "",
    ],
)
def test_parse_rejects_malformed(url):
    with pytest.raises(InvalidTemplateURL):
        ARC19TemplateURL.parse(url)


def test_is_template_url():
    assert is_template_url("template-ipfs://{ipfscid:0:dag-pb:reserve:sha2-256}")
    assert not is_template_url("ipfs://" + CID_V0)
    assert not is_template_url(None)


def test_error_messages_are_readable():
    with pytest.raises(InvalidCID) as exc:
        CID("invalid-cid-format")
    assert exc.value.detail == "Unknown CID format: invalid-cid-format"
    assert str(exc.value) == "Invalid CID: Unknown CID format: invalid-cid-format"
