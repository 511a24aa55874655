"""Errors raised while converting CIDs and minting ARC-19 / ARC-69 assets.

``NetworkError``, ``NotAuthorized``, ``PinningFailed`` and ``IndexerRequired``
are not raised in this package. They are for ``TransactionSubmitter`` and
``ContentStore`` implementations to raise, and ``Minter`` lets them propagate.
"""

from typing import Optional


class MintError(Exception):
    """Base class. ``detail`` is the human-readable reason."""

    label = "Mint error"

    def __init__(self, detail: str = ""):
        self.detail = detail
        super().__init__(detail)

    def __str__(self):
        if self.detail:
            return f"{self.label}: {self.detail}"
        return self.label


class InvalidCID(MintError):
    label = "Invalid CID"


class InvalidTemplateURL(MintError):
    label = "Invalid ARC-19 template URL"


class InvalidMetadata(MintError):
    label = "Invalid metadata"


class TransactionFailed(MintError):
    label = "Transaction failed"


class NetworkError(MintError):
    label = "Network error"


class NotAuthorized(MintError):
    label = "Not authorized"


class PinningFailed(MintError):
    label = "Pinning failed"


class IndexerRequired(MintError):
    label = "Indexer client is required for this operation"


class AssetNotFound(MintError):
    label = "Asset not found"

    def __init__(self, asset_id: int, detail: Optional[str] = None):
        self.asset_id = asset_id
        super().__init__(detail or str(asset_id))


class MetadataNotFound(MintError):
    label = "Metadata not found for asset"

    def __init__(self, asset_id: int, detail: Optional[str] = None):
        self.asset_id = asset_id
        super().__init__(detail or str(asset_id))
