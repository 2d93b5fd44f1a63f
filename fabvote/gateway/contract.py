"""fabvote — Transaction Gateway.

``Contract`` exposes the two invocation kinds of a deployed chaincode:

* ``evaluate_transaction``: read-only, one peer, no ordering.
* ``submit_transaction``: endorse, submit to ordering, then wait for
  commit finality. Endorse, submit and commit-status each run under
  their own deadline.

Every failure surfaces synchronously as a :class:`GatewayError`
subclass naming the phase and transaction. Nothing is retried here.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import logging
from typing import TYPE_CHECKING, Any

import httpx

from fabvote.exceptions import (
    CommitError,
    CommitTimeout,
    DeadlineExceeded,
    EndorseTimeout,
    EvaluateTimeout,
    GatewayError,
    SubmitTimeout,
    TransactionRejected,
)
from fabvote.gateway.proposal import SignedMessage
from fabvote.gateway.timeouts import Phase, remaining

if TYPE_CHECKING:
    from fabvote.gateway.session import Gateway

logger = logging.getLogger("fabvote.gateway.contract")

DEADLINE_HEADER = "Fabric-Deadline"

PATHS = {
    Phase.EVALUATE: "/gateway/evaluate",
    Phase.ENDORSE: "/gateway/endorse",
    Phase.SUBMIT: "/gateway/submit",
    Phase.COMMIT_STATUS: "/gateway/commit-status",
}

TIMEOUT_ERRORS: dict[Phase, type[DeadlineExceeded]] = {
    Phase.EVALUATE: EvaluateTimeout,
    Phase.ENDORSE: EndorseTimeout,
    Phase.SUBMIT: SubmitTimeout,
    Phase.COMMIT_STATUS: CommitTimeout,
}

# Gateway status codes meaning the proposal itself was refused.
REJECTION_CODES = {"ABORTED", "FAILED_PRECONDITION", "ENDORSEMENT_FAILURE"}


def _decode_b64(phase: Phase, value: Any, tx_id: str | None) -> bytes:
    try:
        return base64.b64decode(value or "", validate=True)
    except (binascii.Error, TypeError) as e:
        raise GatewayError(phase.value, f"Malformed payload: {e}", tx_id=tx_id) from e


class Contract:
    """A chaincode deployed on one channel, reached through a gateway session."""

    def __init__(self, gateway: Gateway, channel_name: str, chaincode_name: str):
        self._gateway = gateway
        self.channel_name = channel_name
        self.chaincode_name = chaincode_name

    # ─── Public API ──────────────────────────────────────────────────

    async def evaluate_transaction(self, name: str, *args: str) -> bytes:
        """Run ``name`` on a single peer and return its result bytes."""
        tx_id, proposal = self._gateway.signer.new_proposal(
            self.channel_name, self.chaincode_name, name, args
        )
        logger.debug("Evaluate %s %s (tx %s)", name, args, tx_id)
        data = await self._call(Phase.EVALUATE, proposal.to_wire(), tx_id)
        return _decode_b64(Phase.EVALUATE, data.get("result"), tx_id)

    async def submit_transaction(self, name: str, *args: str) -> bytes:
        """Endorse, order and commit ``name``; return the endorsed result.

        Raises:
            TransactionRejected: an endorsing peer refused the proposal.
            EndorseTimeout, SubmitTimeout, CommitTimeout: a phase ran out of time.
            CommitError: the transaction committed with an invalid status.
        """
        tx_id, proposal = self._gateway.signer.new_proposal(
            self.channel_name, self.chaincode_name, name, args
        )

        endorsed = await self._call(Phase.ENDORSE, proposal.to_wire(), tx_id)
        result = _decode_b64(Phase.ENDORSE, endorsed.get("result"), tx_id)
        envelope = _decode_b64(Phase.ENDORSE, endorsed.get("envelope"), tx_id)

        signed_envelope = self._gateway.signer.sign(envelope)
        await self._call(
            Phase.SUBMIT,
            {
                "txId": tx_id,
                "channel": self.channel_name,
                **signed_envelope.to_wire(),
            },
            tx_id,
        )

        await self._wait_for_commit(tx_id)
        logger.info("Transaction %s (%s) committed", tx_id, name)
        return result

    # ─── Internal ────────────────────────────────────────────────────

    async def _wait_for_commit(self, tx_id: str) -> None:
        request: SignedMessage = self._gateway.signer.commit_status_request(
            self.channel_name, tx_id
        )
        status = await self._call(Phase.COMMIT_STATUS, request.to_wire(), tx_id)
        if not status.get("successful", False):
            raise CommitError(
                tx_id,
                str(status.get("code", "UNKNOWN")),
                block_number=status.get("blockNumber"),
            )

    async def _call(self, phase: Phase, body: dict[str, Any], tx_id: str) -> dict:
        """POST one phase request, bounded by that phase's deadline."""
        deadline = self._gateway.timeouts.deadline(phase)
        timeout_error = TIMEOUT_ERRORS[phase]
        budget = remaining(deadline)
        if budget <= 0:
            raise timeout_error(phase.value, "Deadline already expired", tx_id=tx_id)

        try:
            resp = await asyncio.wait_for(
                self._gateway.channel.post(
                    PATHS[phase],
                    body,
                    timeout=budget,
                    headers={DEADLINE_HEADER: str(int(deadline * 1000))},
                ),
                timeout=budget,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            raise timeout_error(
                phase.value, f"No response within {budget:.3f}s", tx_id=tx_id
            ) from e
        except httpx.HTTPError as e:
            raise GatewayError(phase.value, f"Transport error: {e}", tx_id=tx_id) from e

        if resp.status_code >= 400:
            raise self._error_from_response(phase, resp, tx_id)

        try:
            return resp.json()
        except ValueError as e:
            raise GatewayError(
                phase.value, f"Invalid JSON response: {e}", tx_id=tx_id,
                status_code=resp.status_code,
            ) from e

    @staticmethod
    def _error_from_response(phase: Phase, resp: httpx.Response, tx_id: str) -> GatewayError:
        try:
            payload = resp.json()
            code = str(payload.get("code", ""))
            message = payload.get("message", resp.text)
            details = payload.get("details") or []
        except (ValueError, AttributeError):
            code, message, details = "", resp.text, []

        kwargs: dict[str, Any] = {
            "tx_id": tx_id,
            "status_code": resp.status_code,
            "details": details,
        }
        if code == "DEADLINE_EXCEEDED" or resp.status_code == 504:
            return TIMEOUT_ERRORS[phase](phase.value, message, **kwargs)
        if code in REJECTION_CODES or (phase is Phase.ENDORSE and resp.status_code < 500):
            for d in details:
                logger.debug(
                    "Endorser %s (%s) rejected %s: %s",
                    d.get("address"), d.get("mspId"), tx_id, d.get("message"),
                )
            return TransactionRejected(phase.value, message, **kwargs)
        return GatewayError(phase.value, message, **kwargs)


__all__ = ["Contract", "DEADLINE_HEADER", "PATHS"]
