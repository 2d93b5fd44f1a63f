"""
fabvote — Custom Exceptions.

Typed error hierarchy so callers can tell apart startup failures
(credentials, channel setup) from per-transaction failures, and know
which transaction and which phase failed.
"""

from __future__ import annotations


class FabVoteError(Exception):
    """Base exception for all fabvote errors."""


# ─── Startup ─────────────────────────────────────────────────────────


class CredentialError(FabVoteError):
    """Identity or key material is missing or unusable."""


class CredentialNotFound(CredentialError):
    """Raised when a credential directory holds no file."""


class AmbiguousCredential(CredentialError):
    """Raised when a credential directory holds more than one file."""


class InvalidKey(CredentialError):
    """Raised when private key bytes cannot be parsed into a signer."""


class ConnectionSetupError(FabVoteError):
    """Raised when the trusted root certificate cannot be parsed."""


# ─── Transactions ────────────────────────────────────────────────────


class GatewayError(FabVoteError):
    """Failure reported while talking to the gateway endpoint.

    Carries the phase (evaluate, endorse, submit, commit_status) and,
    when one was assigned, the transaction id.
    """

    def __init__(
        self,
        phase: str,
        detail: str,
        *,
        tx_id: str | None = None,
        status_code: int | None = None,
        details: list[dict] | None = None,
    ):
        self.phase = phase
        self.detail = detail
        self.tx_id = tx_id
        self.status_code = status_code
        self.details = details or []
        msg = f"{phase} failed"
        if tx_id:
            msg += f" for transaction {tx_id}"
        super().__init__(f"{msg}: {detail}")


class TransactionRejected(GatewayError):
    """The contract or an endorsing peer rejected the proposal."""


class CommitError(GatewayError):
    """The transaction was ordered but did not commit successfully."""

    def __init__(self, tx_id: str, code: str, *, block_number: int | None = None):
        self.code = code
        self.block_number = block_number
        super().__init__(
            "commit_status",
            f"committed with status code {code}",
            tx_id=tx_id,
        )


class DeadlineExceeded(GatewayError):
    """A phase did not complete before its deadline."""


class EvaluateTimeout(DeadlineExceeded):
    pass


class EndorseTimeout(DeadlineExceeded):
    pass


class SubmitTimeout(DeadlineExceeded):
    pass


class CommitTimeout(DeadlineExceeded):
    pass


class DecodeError(FabVoteError):
    """Raised when a contract payload is not the expected UTF-8 JSON."""


class ConfigurationError(FabVoteError):
    """Raised when a configuration value cannot be interpreted."""
