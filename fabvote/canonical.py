"""fabvote — Canonical Message Construction.

Deterministic JSON serialization for every message that gets hashed
and signed, so the gateway can recompute the exact bytes.
"""

from __future__ import annotations

import json
from typing import Any, Callable

# ─── Canonical JSON ───────────────────────────────────────────────


def canonical_json(obj: Any) -> str:
    """Deterministic JSON: sorted keys, no whitespace, ASCII-safe.

    Guarantees identical output for semantically identical input
    regardless of Python dict insertion order.
    """
    return json.dumps(
        obj, sort_keys=True, separators=(",", ":"),
        ensure_ascii=True, default=str,
    )


def canonical_bytes(obj: Any) -> bytes:
    """UTF-8 encoded :func:`canonical_json`; the form that gets signed."""
    return canonical_json(obj).encode("utf-8")


# ─── Transaction ID ──────────────────────────────────────────────


def compute_tx_id(
    nonce: bytes,
    creator: dict[str, str],
    hash_fn: Callable[[bytes], bytes],
) -> str:
    """Derive a transaction id from the nonce and the serialized creator.

    The id is bound to the submitting identity, so replaying a nonce
    under a different identity yields a different id.
    """
    return hash_fn(nonce + canonical_bytes(creator)).hex()
