import hashlib
import json
from types import SimpleNamespace

import pytest

from ipfs_cid import CID


class FakeSubmitter:
    """In-memory chain: applies each submitted transaction immediately."""

    def __init__(self, fail_asset_index=False):
        self.built = []
        self.signed = []
        self.assets = {}
        self.history = []
        self.confirmations = {}
        self.next_asset_id = 1000
        self.fail_asset_index = fail_asset_index

    def build_transaction(self, kind, sender, **fields):
        txn = dict(fields, kind=kind, sender=sender)
        self.built.append(txn)
        return txn

    def sign(self, transaction, account):
        signed = {"txn": transaction, "signer": account.address}
        self.signed.append(signed)
        return signed

    def submit(self, signed):
        txn = signed["txn"]
        txid = f"TX{len(self.history)}"
        confirmation = {"confirmed-round": 1}

        if txn["kind"] == "asset_create":
            params = txn["params"]
            asset_id = self.next_asset_id
            self.next_asset_id += 1
            self.assets[asset_id] = {
                "url": params.url,
                "reserve": params.reserve,
                "manager": params.manager,
                "unit-name": params.unit_name,
                "name": params.asset_name,
            }
            if not self.fail_asset_index:
                confirmation["asset-index"] = asset_id
            txn_asset = asset_id
        elif txn["kind"] == "asset_config":
            asset = self.assets[txn["asset_id"]]
            for key in ("manager", "reserve", "freeze", "clawback"):
                if txn[key] is not None:
                    asset[key] = txn[key]
            txn_asset = txn["asset_id"]
        elif txn["kind"] == "asset_destroy":
            del self.assets[txn["asset_id"]]
            txn_asset = txn["asset_id"]
        else:
            txn_asset = txn["asset_id"]

        self.history.append({"id": txid, "sender": txn["sender"], "asset": txn_asset, "note": txn.get("note")})
        self.confirmations[txid] = confirmation
        return txid

    def await_confirmation(self, transaction_id):
        return self.confirmations[transaction_id]

    def query_asset(self, asset_id):
        return self.assets.get(asset_id)

    def query_transactions_by_address(self, address, asset_id):
        return [t for t in self.history if t["sender"] == address and t["asset"] == asset_id]


class FakeContentStore:
    """Content-addressed dict keyed by CIDv1 raw of the canonical JSON."""

    def __init__(self):
        self.blobs = {}

    def pin_bytes(self, data, name="", mime_type="application/octet-stream"):
        cid = CID.from_reserve_address(hashlib.sha256(data).digest(), 1, "raw")
        self.blobs[cid.value] = bytes(data)
        return cid

    def pin_json(self, record):
        return self.pin_bytes(json.dumps(record, sort_keys=True).encode("utf-8"), "metadata.json", "application/json")

    def fetch_bytes(self, cid):
        return self.blobs[cid.value]

    def fetch_json(self, cid):
        return json.loads(self.fetch_bytes(cid))

    def unpin(self, cid):
        self.blobs.pop(cid.value, None)


@pytest.fixture
def account():
    return SimpleNamespace(address="CREATORADDRESS")


@pytest.fixture
def submitter():
    return FakeSubmitter()


@pytest.fixture
def store():
    return FakeContentStore()
