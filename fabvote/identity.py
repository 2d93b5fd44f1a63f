"""fabvote — Credential Loader.

Reads the client identity (MSP id + certificate) and the signing key
from the standard MSP directory layout. Each credential directory must
hold exactly one file.
"""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from pathlib import Path

from fabvote.crypto import Signer
from fabvote.exceptions import AmbiguousCredential, CredentialNotFound

logger = logging.getLogger("fabvote.identity")


@dataclass(frozen=True)
class Identity:
    """Organization id plus the raw certificate bytes presented to the gateway."""

    msp_id: str
    credentials: bytes

    def to_creator(self) -> dict[str, str]:
        """Creator form embedded in signed proposals; credentials are base64."""
        return {
            "mspId": self.msp_id,
            "credentials": base64.b64encode(self.credentials).decode("ascii"),
        }


def read_single_file(directory: str | Path) -> bytes:
    """Return the contents of the only file in ``directory``.

    Raises:
        CredentialNotFound: the directory is missing, unreadable or empty.
        AmbiguousCredential: more than one file is present.
    """
    path = Path(directory)
    try:
        files = sorted(p for p in path.iterdir() if p.is_file())
    except OSError as e:
        raise CredentialNotFound(f"Cannot list credential directory {path}: {e}") from e

    if not files:
        raise CredentialNotFound(f"No files in directory: {path}")
    if len(files) > 1:
        names = ", ".join(p.name for p in files)
        raise AmbiguousCredential(f"Expected one file in {path}, found {len(files)}: {names}")

    try:
        data = files[0].read_bytes()
    except OSError as e:
        raise CredentialNotFound(f"Cannot read {files[0]}: {e}") from e
    logger.debug("Loaded credential file %s (%d bytes)", files[0], len(data))
    return data


def new_identity(msp_id: str, cert_directory: str | Path) -> Identity:
    return Identity(msp_id=msp_id, credentials=read_single_file(cert_directory))


def new_signer(key_directory: str | Path) -> Signer:
    return Signer.from_pem(read_single_file(key_directory))
