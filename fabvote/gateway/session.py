"""fabvote — Gateway Session.

Binds an identity, a signer, a hash function and a timeout policy to a
shared :class:`~fabvote.channel.Channel`. Network and contract lookups
are pure metadata; errors only appear on the first real call.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from fabvote.channel import Channel
from fabvote.crypto import Signer, sha256
from fabvote.gateway.contract import Contract
from fabvote.gateway.proposal import MessageSigner
from fabvote.gateway.timeouts import DEFAULT_TIMEOUTS, TimeoutPolicy
from fabvote.identity import Identity

logger = logging.getLogger("fabvote.gateway.session")


class Network:
    """One ledger channel as seen through a gateway session."""

    def __init__(self, gateway: Gateway, name: str):
        self._gateway = gateway
        self.name = name

    def get_contract(self, chaincode_name: str) -> Contract:
        return Contract(self._gateway, self.name, chaincode_name)


class Gateway:
    """Authenticated session on a gateway endpoint.

    Closing a gateway does not close its channel; the channel is owned
    by whoever created it and may back other sessions.
    """

    def __init__(
        self,
        channel: Channel,
        identity: Identity,
        signer: Signer,
        hash_fn: Callable[[bytes], bytes] = sha256,
        timeouts: TimeoutPolicy = DEFAULT_TIMEOUTS,
    ):
        self.channel = channel
        self.identity = identity
        self.signer = MessageSigner(identity, signer, hash_fn)
        self.timeouts = timeouts
        self._closed = False

    def get_network(self, channel_name: str) -> Network:
        if self._closed:
            raise RuntimeError("Gateway is closed")
        return Network(self, channel_name)

    def close(self) -> None:
        self._closed = True

    def __enter__(self) -> Gateway:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()


def connect(
    channel: Channel,
    identity: Identity,
    signer: Signer,
    hash_fn: Callable[[bytes], bytes] = sha256,
    timeouts: TimeoutPolicy = DEFAULT_TIMEOUTS,
) -> Gateway:
    """Open a session. Performs no network I/O."""
    logger.debug(
        "Gateway session for %s on %s (timeouts %s)",
        identity.msp_id, channel.endpoint, timeouts,
    )
    return Gateway(channel, identity, signer, hash_fn, timeouts)
