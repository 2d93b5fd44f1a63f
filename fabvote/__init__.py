"""
fabvote — Ledger Vote Client.

Authenticated gateway client for an asset ledger, with a
create-or-increment vote tally built on the asset contract.
"""

__version__ = "1.0.0"

from fabvote.assets import Asset, AssetContract
from fabvote.gateway import Contract, Gateway, TimeoutPolicy, connect
from fabvote.tally import VoteResult, VoteTally

__all__ = [
    "Asset",
    "AssetContract",
    "Contract",
    "Gateway",
    "TimeoutPolicy",
    "VoteResult",
    "VoteTally",
    "__version__",
    "connect",
]
