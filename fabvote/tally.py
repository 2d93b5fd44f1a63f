"""
fabvote — Vote Tally Engine.

Create-or-increment voting on top of the asset contract:

1. Scan: evaluate ``GetAllAssets`` and walk the collection in order.
   A candidate matches the first asset whose owner *contains* the name
   (case-sensitive substring, first match wins).
2. Commit: ``UpdateAsset`` with the count plus one, or ``CreateAsset``
   with a count of one when nothing matched.

Scan and commit are two separate ledger transactions. Two concurrent
votes for the same candidate can read the same count and both write
count + 1, losing one vote. Closing that gap needs a contract-side
increment or a version-checked update; this engine keeps the plain
read-then-write behaviour.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, Container, Mapping

from fabvote.assets import Asset, AssetContract, InitializeReport, new_asset_id
from fabvote.exceptions import DecodeError

logger = logging.getLogger("fabvote.tally")

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def find_candidate(assets: Mapping[str, Asset], name: str) -> Asset | None:
    """First asset (in collection order) whose owner contains ``name``."""
    for asset in assets.values():
        if name in asset.owner:
            return asset
    return None


def parse_count(size: str) -> int:
    """Leading integer of a size field: ``"3"`` → 3, ``"3 votes"`` → 3."""
    match = _LEADING_INT.match(size)
    if not match:
        raise DecodeError(f"Vote count is not numeric: {size!r}")
    return int(match.group(1))


@dataclass(frozen=True)
class VoteResult:
    action: str  # created | updated
    asset_id: str
    count: str
    candidate: str

    @property
    def created(self) -> bool:
        return self.action == "created"


class VoteTally:
    """Tallies votes for candidates stored as asset records."""

    def __init__(
        self,
        assets: AssetContract,
        id_factory: Callable[[Container[str]], str] = new_asset_id,
    ):
        self.assets = assets
        self._new_id = id_factory

    async def list_all(self) -> dict[str, Asset]:
        return await self.assets.get_all_assets()

    async def query(self, name: str) -> Asset | None:
        """Look up a candidate without changing the ledger."""
        collection = await self.assets.get_all_assets()
        for key, asset in collection.items():
            logger.debug("%s : %s", key, asset.owner)
        match = find_candidate(collection, name)
        if match is not None:
            logger.info(
                "Query Result: %s %s %s %s %s",
                match.appraised_value, match.color, match.id, match.owner, match.size,
            )
        return match

    async def vote(self, name: str) -> VoteResult:
        """Add one vote for ``name``, creating the candidate if needed."""
        collection = await self.assets.get_all_assets()
        match = find_candidate(collection, name)

        if match is not None:
            count = str(parse_count(match.size) + 1)
            await self.assets.update_asset(
                Asset(id=match.id, size=count, owner=name)
            )
            logger.info("Vote for %s recorded on %s (now %s)", name, match.id, count)
            return VoteResult("updated", match.id, count, name)

        existing_ids = {asset.id for asset in collection.values()}
        asset_id = self._new_id(existing_ids)
        await self.assets.create_asset(Asset(id=asset_id, size="1", owner=name))
        logger.info("Candidate %s created as %s", name, asset_id)
        return VoteResult("created", asset_id, "1", name)

    async def initialize(self) -> InitializeReport:
        return await self.assets.initialize_ledger()
