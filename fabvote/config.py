"""
fabvote — Configuration.

Connection settings resolved from the environment, with defaults that
point at the Org1 user of a local test network.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from fabvote.exceptions import ConfigurationError


def env_or_default(key: str, default: str) -> str:
    """Return the environment value for ``key``, or ``default`` when unset or empty."""
    return os.environ.get(key) or default


def env_seconds(key: str, default: str) -> float:
    """Numeric seconds from the environment, raising ConfigurationError when malformed."""
    value = env_or_default(key, default)
    try:
        seconds = float(value)
    except ValueError as e:
        raise ConfigurationError(f"{key} must be a number of seconds, got {value!r}") from e
    if seconds <= 0:
        raise ConfigurationError(f"{key} must be positive, got {value!r}")
    return seconds


def _default_crypto_path() -> Path:
    return (
        Path.cwd().parent
        / "test-network"
        / "organizations"
        / "peerOrganizations"
        / "org1.example.com"
    )


@dataclass(frozen=True)
class GatewaySettings:
    """Snapshot of everything needed to open a gateway session."""

    channel_name: str
    chaincode_name: str
    msp_id: str
    crypto_path: Path
    key_directory_path: Path
    cert_directory_path: Path
    tls_cert_path: Path
    peer_endpoint: str
    peer_host_alias: str
    evaluate_timeout: float = 5.0
    endorse_timeout: float = 15.0
    submit_timeout: float = 5.0
    commit_status_timeout: float = 60.0

    @classmethod
    def from_env(cls) -> GatewaySettings:
        crypto_path = Path(env_or_default("CRYPTO_PATH", str(_default_crypto_path())))
        user_msp = crypto_path / "users" / "User1@org1.example.com" / "msp"
        return cls(
            channel_name=env_or_default("CHANNEL_NAME", "mychannel"),
            chaincode_name=env_or_default("CHAINCODE_NAME", "basic"),
            msp_id=env_or_default("MSP_ID", "Org1MSP"),
            crypto_path=crypto_path,
            key_directory_path=Path(
                env_or_default("KEY_DIRECTORY_PATH", str(user_msp / "keystore"))
            ),
            cert_directory_path=Path(
                env_or_default("CERT_DIRECTORY_PATH", str(user_msp / "signcerts"))
            ),
            tls_cert_path=Path(
                env_or_default(
                    "TLS_CERT_PATH",
                    str(crypto_path / "peers" / "peer0.org1.example.com" / "tls" / "ca.crt"),
                )
            ),
            peer_endpoint=env_or_default("PEER_ENDPOINT", "localhost:7051"),
            peer_host_alias=env_or_default("PEER_HOST_ALIAS", "peer0.org1.example.com"),
            evaluate_timeout=env_seconds("FABVOTE_EVALUATE_TIMEOUT", "5"),
            endorse_timeout=env_seconds("FABVOTE_ENDORSE_TIMEOUT", "15"),
            submit_timeout=env_seconds("FABVOTE_SUBMIT_TIMEOUT", "5"),
            commit_status_timeout=env_seconds("FABVOTE_COMMIT_STATUS_TIMEOUT", "60"),
        )

    def describe(self) -> list[tuple[str, str]]:
        """Label/value pairs shown before connecting."""
        return [
            ("channelName", self.channel_name),
            ("chaincodeName", self.chaincode_name),
            ("mspId", self.msp_id),
            ("cryptoPath", str(self.crypto_path)),
            ("keyDirectoryPath", str(self.key_directory_path)),
            ("certDirectoryPath", str(self.cert_directory_path)),
            ("tlsCertPath", str(self.tls_cert_path)),
            ("peerEndpoint", self.peer_endpoint),
            ("peerHostAlias", self.peer_host_alias),
        ]
