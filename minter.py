"""
ARC-19 / ARC-69 minting on top of an on-chain transaction submitter and an
IPFS content store.

Neither collaborator is implemented here. Anything that satisfies the
protocols below can be plugged in (an algod/indexer wrapper, a Pinata
client, a local `ipfs` node, a test fake).
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Protocol, Tuple

from ipfs_cid import CID, ARC19TemplateURL, is_template_url
from mint_errors import (
    AssetNotFound,
    InvalidMetadata,
    InvalidTemplateURL,
    MetadataNotFound,
    TransactionFailed,
)

logger = logging.getLogger(__name__)

ARC69_STANDARD = "arc69"

# Transaction kinds understood by build_transaction()
ASSET_CREATE = "asset_create"
ASSET_CONFIG = "asset_config"
ASSET_TRANSFER = "asset_transfer"
ASSET_DESTROY = "asset_destroy"


class TransactionSubmitter(Protocol):
    def build_transaction(self, kind: str, sender: Any, **fields: Any) -> Any: ...

    def sign(self, transaction: Any, account: Any) -> Any: ...

    def submit(self, signed: Any) -> str: ...

    def await_confirmation(self, transaction_id: str) -> Dict[str, Any]: ...

    def query_asset(self, asset_id: int) -> Optional[Dict[str, Any]]: ...

    def query_transactions_by_address(self, address: Any, asset_id: int) -> List[Dict[str, Any]]: ...


class ContentStore(Protocol):
    def pin_json(self, record: Mapping[str, Any]) -> CID: ...

    def pin_bytes(self, data: bytes, name: str, mime_type: str) -> CID: ...

    def fetch_json(self, cid: CID) -> Dict[str, Any]: ...

    def fetch_bytes(self, cid: CID) -> bytes: ...

    def unpin(self, cid: CID) -> None: ...


@dataclass(frozen=True)
class AssetParams:
    """Asset creation parameters handed to the submitter."""

    unit_name: str
    asset_name: str
    url: str
    manager: Any
    reserve: Any
    total: int = 1
    decimals: int = 0
    default_frozen: bool = False
    metadata_hash: Optional[bytes] = None
    freeze: Any = None
    clawback: Any = None


@dataclass(frozen=True)
class MintResult:
    asset_id: int
    transaction_id: str
    # 32-byte digest for ARC-19 mints, None for ARC-69
    reserve: Optional[bytes] = None


def encode_arc69_note(metadata: Mapping[str, Any]) -> bytes:
    """Compact, key-sorted JSON note with the ARC-69 standard marker."""
    if not isinstance(metadata, Mapping):
        raise InvalidMetadata("ARC-69 metadata must be a JSON object")
    record = dict(metadata)
    record["standard"] = ARC69_STANDARD
    try:
        text = json.dumps(record, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise InvalidMetadata(f"Metadata is not JSON serializable: {e}")
    return text.encode("utf-8")


def decode_arc69_note(note: Optional[bytes]) -> Optional[Dict[str, Any]]:
    """Return the note as ARC-69 metadata, or None if it is something else."""
    if not note:
        return None
    try:
        record = json.loads(bytes(note).decode("utf-8"))
    except (UnicodeDecodeError, ValueError):
        return None
    if not isinstance(record, dict) or record.get("standard") != ARC69_STANDARD:
        return None
    return record


class Minter:
    """Creates, updates and reads ARC-19 / ARC-69 assets."""

    def __init__(self, submitter: TransactionSubmitter):
        self.submitter = submitter

    def _send(self, transaction: Any, account: Any) -> Tuple[str, Dict[str, Any]]:
        signed = self.submitter.sign(transaction, account)
        txid = self.submitter.submit(signed)
        logger.info("Submitted transaction %s", txid)
        confirmation = self.submitter.await_confirmation(txid)
        return txid, confirmation or {}

    def _create(self, account: Any, params: AssetParams, note: Optional[bytes] = None) -> Tuple[int, str]:
        txn = self.submitter.build_transaction(
            ASSET_CREATE, account.address, params=params, note=note
        )
        txid, confirmation = self._send(txn, account)
        asset_id = confirmation.get("asset-index")
        if asset_id is None:
            raise TransactionFailed("Failed to get asset ID from confirmation")
        logger.info("Created asset %s in %s", asset_id, txid)
        return int(asset_id), txid

    # ------------------------------------------------------------------
    # ARC-19
    # ------------------------------------------------------------------

    def mint_arc19(
        self,
        account: Any,
        metadata: Mapping[str, Any],
        cid: CID,
        unit_name: str,
        asset_name: str,
        freeze: Any = None,
        clawback: Any = None,
    ) -> MintResult:
        """
        Mint an ARC-19 NFT whose reserve address carries the CID digest.

        `metadata` is the ARC-3 record already pinned at `cid`; it is not
        inspected here.
        """
        reserve = cid.to_reserve_address()
        params = AssetParams(
            unit_name=unit_name,
            asset_name=asset_name,
            url=cid.to_arc19_url(),
            manager=account.address,
            reserve=reserve,
            freeze=freeze,
            clawback=clawback,
        )
        asset_id, txid = self._create(account, params)
        return MintResult(asset_id=asset_id, transaction_id=txid, reserve=reserve)

    def update_arc19(
        self,
        account: Any,
        asset_id: int,
        new_cid: CID,
        manager: Any = None,
        freeze: Any = None,
        clawback: Any = None,
    ) -> str:
        """Point an ARC-19 asset at new metadata by rewriting its reserve."""
        return self.update_asset_config(
            account,
            asset_id,
            manager=manager if manager is not None else account.address,
            reserve=new_cid.to_reserve_address(),
            freeze=freeze,
            clawback=clawback,
        )

    def mint_arc19_with_pinning(
        self,
        account: Any,
        metadata: Mapping[str, Any],
        store: ContentStore,
        unit_name: str,
        asset_name: str,
        freeze: Any = None,
        clawback: Any = None,
    ) -> MintResult:
        cid = store.pin_json(metadata)
        logger.info("Pinned metadata as %s", cid)
        return self.mint_arc19(
            account, metadata, cid, unit_name, asset_name, freeze=freeze, clawback=clawback
        )

    def update_arc19_with_pinning(
        self,
        account: Any,
        asset_id: int,
        metadata: Mapping[str, Any],
        store: ContentStore,
        manager: Any = None,
        freeze: Any = None,
        clawback: Any = None,
    ) -> str:
        cid = store.pin_json(metadata)
        logger.info("Pinned metadata as %s", cid)
        return self.update_arc19(
            account, asset_id, cid, manager=manager, freeze=freeze, clawback=clawback
        )

    def resolve_arc19_cid(self, asset_id: int) -> CID:
        """Rebuild the CID an ARC-19 asset currently points at."""
        params = self.get_asset_info(asset_id)
        url = params.get("url") or ""
        if not is_template_url(url):
            raise InvalidTemplateURL(f"Asset {asset_id} is not an ARC-19 asset: {url!r}")

        template = ARC19TemplateURL.parse(url)
        reserve = params.get(template.field)
        if reserve is None:
            raise MetadataNotFound(asset_id, f"{asset_id} has no {template.field!r} field")
        return CID.from_template(template, reserve)

    def get_arc19_metadata(self, asset_id: int, store: ContentStore) -> Dict[str, Any]:
        return store.fetch_json(self.resolve_arc19_cid(asset_id))

    # ------------------------------------------------------------------
    # ARC-69
    # ------------------------------------------------------------------

    def mint_arc69(
        self,
        account: Any,
        metadata: Mapping[str, Any],
        unit_name: str,
        asset_name: str,
        url: str,
        metadata_hash: Optional[bytes] = None,
        freeze: Any = None,
        clawback: Any = None,
    ) -> MintResult:
        """Mint an ARC-69 NFT with its metadata in the creation note."""
        note = encode_arc69_note(metadata)
        params = AssetParams(
            unit_name=unit_name,
            asset_name=asset_name,
            url=url,
            manager=account.address,
            reserve=account.address,
            metadata_hash=metadata_hash,
            freeze=freeze,
            clawback=clawback,
        )
        asset_id, txid = self._create(account, params, note=note)
        return MintResult(asset_id=asset_id, transaction_id=txid)

    def update_arc69(self, account: Any, asset_id: int, metadata: Mapping[str, Any]) -> str:
        """Publish new ARC-69 metadata with a zero-amount transfer to self."""
        txn = self.submitter.build_transaction(
            ASSET_TRANSFER,
            account.address,
            receiver=account.address,
            asset_id=asset_id,
            amount=0,
            note=encode_arc69_note(metadata),
        )
        txid, _ = self._send(txn, account)
        return txid

    def get_arc69_metadata(self, asset_id: int, address: Any) -> Dict[str, Any]:
        """Latest ARC-69 note among the address's transactions for this asset."""
        transactions = self.submitter.query_transactions_by_address(address, asset_id)
        for txn in reversed(transactions or []):
            record = decode_arc69_note(txn.get("note"))
            if record is not None:
                return record
        raise MetadataNotFound(asset_id)

    # ------------------------------------------------------------------
    # Asset configuration
    # ------------------------------------------------------------------

    def get_asset_info(self, asset_id: int) -> Dict[str, Any]:
        params = self.submitter.query_asset(asset_id)
        if params is None:
            raise AssetNotFound(asset_id)
        return params

    def update_asset_config(
        self,
        account: Any,
        asset_id: int,
        manager: Any = None,
        reserve: Any = None,
        freeze: Any = None,
        clawback: Any = None,
    ) -> str:
        txn = self.submitter.build_transaction(
            ASSET_CONFIG,
            account.address,
            asset_id=asset_id,
            manager=manager,
            reserve=reserve,
            freeze=freeze,
            clawback=clawback,
        )
        txid, _ = self._send(txn, account)
        return txid

    def destroy_asset(self, account: Any, asset_id: int) -> str:
        txn = self.submitter.build_transaction(ASSET_DESTROY, account.address, asset_id=asset_id)
        txid, _ = self._send(txn, account)
        return txid
