"""fabvote — Signed Gateway Messages.

Builds the proposal, envelope and commit-status messages exchanged with
the gateway, each paired with a signature over its hash.
"""

from __future__ import annotations

import base64
import os
import time
from dataclasses import dataclass
from typing import Any, Callable

from fabvote.canonical import canonical_bytes, compute_tx_id
from fabvote.crypto import Signer
from fabvote.identity import Identity

NONCE_SIZE = 24


def b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


@dataclass(frozen=True)
class SignedMessage:
    payload: bytes
    signature: bytes

    def to_wire(self) -> dict[str, str]:
        return {"payload": b64(self.payload), "signature": b64(self.signature)}


class MessageSigner:
    """Hashes and signs messages on behalf of one identity."""

    def __init__(self, identity: Identity, signer: Signer, hash_fn: Callable[[bytes], bytes]):
        self.identity = identity
        self._signer = signer
        self._hash = hash_fn

    def sign(self, payload: bytes) -> SignedMessage:
        return SignedMessage(payload, self._signer.sign(self._hash(payload)))

    def new_proposal(
        self,
        channel: str,
        chaincode: str,
        function: str,
        args: tuple[str, ...],
    ) -> tuple[str, SignedMessage]:
        """Return ``(tx_id, signed proposal)`` for one contract invocation."""
        creator = self.identity.to_creator()
        nonce = os.urandom(NONCE_SIZE)
        tx_id = compute_tx_id(nonce, creator, self._hash)
        proposal: dict[str, Any] = {
            "channel": channel,
            "chaincode": chaincode,
            "function": function,
            "args": list(args),
            "txId": tx_id,
            "nonce": b64(nonce),
            "creator": creator,
            "timestamp": int(time.time() * 1000),
        }
        return tx_id, self.sign(canonical_bytes(proposal))

    def commit_status_request(self, channel: str, tx_id: str) -> SignedMessage:
        request = {
            "channel": channel,
            "txId": tx_id,
            "identity": self.identity.to_creator(),
        }
        return self.sign(canonical_bytes(request))
