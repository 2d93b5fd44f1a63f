"""fabvote — Asset Records.

The ledger stores a generic five-field asset. Votes reuse it: ``owner``
holds the candidate name and ``size`` the vote count as a numeric
string. ``color`` and ``appraised_value`` stay empty.
"""

from __future__ import annotations

import json
import logging
import secrets
from dataclasses import dataclass
from typing import Any, Callable, Container

from fabvote.exceptions import DecodeError, TransactionRejected
from fabvote.gateway.contract import Contract

logger = logging.getLogger("fabvote.assets")

ASSET_ID_PREFIX = "asset"
ASSET_ID_RANGE = 10_000_000_000

# (owner, size) pairs created by initialize_ledger.
SEED_ASSETS = (("Tom", "1"), ("Cat", "2"), ("Dog", "2"))


@dataclass(frozen=True)
class Asset:
    id: str
    color: str = ""
    size: str = ""
    owner: str = ""
    appraised_value: str = ""

    @classmethod
    def from_json(cls, data: Any) -> Asset:
        """Build from the chaincode's JSON form (``ID``, ``Color``, ``Size``, ...)."""
        if not isinstance(data, dict) or "ID" not in data:
            raise DecodeError(f"Not an asset record: {data!r}")

        def text(key: str) -> str:
            value = data.get(key)
            return "" if value is None else str(value)

        return cls(
            id=text("ID"),
            color=text("Color"),
            size=text("Size"),
            owner=text("Owner"),
            appraised_value=text("AppraisedValue"),
        )

    def to_json(self) -> dict[str, str]:
        return {
            "ID": self.id,
            "Color": self.color,
            "Size": self.size,
            "Owner": self.owner,
            "AppraisedValue": self.appraised_value,
        }

    def to_args(self) -> tuple[str, str, str, str, str]:
        """Positional arguments for ``CreateAsset`` / ``UpdateAsset``."""
        return (self.id, self.color, self.size, self.owner, self.appraised_value)


def _load_json(payload: bytes) -> Any:
    try:
        return json.loads(payload.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as e:
        raise DecodeError(f"Malformed contract payload: {e}") from e


def decode_assets(payload: bytes) -> dict[str, Asset]:
    """Decode a ``GetAllAssets`` result into an ordered key → asset mapping.

    A JSON array is keyed by position, a JSON object by its own keys.
    An empty payload or ``null`` means no assets.
    """
    if not payload.strip():
        return {}
    data = _load_json(payload)
    if data is None:
        return {}
    if isinstance(data, list):
        return {str(i): Asset.from_json(item) for i, item in enumerate(data)}
    if isinstance(data, dict):
        return {str(k): Asset.from_json(v) for k, v in data.items()}
    raise DecodeError(f"Expected a collection of assets, got {type(data).__name__}")


def decode_asset(payload: bytes) -> Asset:
    return Asset.from_json(_load_json(payload))


def new_asset_id(existing: Container[str] = ()) -> str:
    """Random ``asset<N>`` identifier not present in ``existing``."""
    while True:
        asset_id = f"{ASSET_ID_PREFIX}{secrets.randbelow(ASSET_ID_RANGE)}"
        if asset_id not in existing:
            return asset_id


@dataclass
class InitializeReport:
    created: list[Asset]
    skipped: list[str]


class AssetContract:
    """Typed wrapper over the asset chaincode functions."""

    def __init__(
        self,
        contract: Contract,
        id_factory: Callable[[], str] = new_asset_id,
    ):
        self.contract = contract
        self._new_id = id_factory

    async def get_all_assets(self) -> dict[str, Asset]:
        return decode_assets(await self.contract.evaluate_transaction("GetAllAssets"))

    async def read_asset(self, asset_id: str) -> Asset:
        return decode_asset(await self.contract.evaluate_transaction("ReadAsset", asset_id))

    async def create_asset(self, asset: Asset) -> Asset:
        await self.contract.submit_transaction("CreateAsset", *asset.to_args())
        return asset

    async def update_asset(self, asset: Asset) -> Asset:
        await self.contract.submit_transaction("UpdateAsset", *asset.to_args())
        return asset

    async def initialize_ledger(self) -> InitializeReport:
        """Create the seed candidates.

        Safe to re-run: a seed the contract rejects as already present
        is logged and skipped. Any other failure propagates.
        """
        report = InitializeReport(created=[], skipped=[])
        for owner, size in SEED_ASSETS:
            asset = Asset(id=self._new_id(), size=size, owner=owner)
            try:
                await self.create_asset(asset)
            except TransactionRejected as e:
                logger.warning("%s already created: %s", owner, e)
                report.skipped.append(owner)
                continue
            report.created.append(asset)
        logger.info(
            "Ledger initialized: %d created, %d skipped",
            len(report.created), len(report.skipped),
        )
        return report
