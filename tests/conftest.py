"""Shared fixtures: throwaway credentials and an in-memory gateway endpoint."""

from __future__ import annotations

import asyncio
import base64
import datetime
import json
from pathlib import Path

import httpx
import pytest
import pytest_asyncio
from cryptography import x509
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import Prehashed
from cryptography.x509.oid import NameOID

from fabvote.channel import new_channel
from fabvote.crypto import Signer, sha256
from fabvote.gateway import TimeoutPolicy, connect
from fabvote.identity import Identity

# ─── Credentials ─────────────────────────────────────────────────────


def make_key() -> ec.EllipticCurvePrivateKey:
    return ec.generate_private_key(ec.SECP256R1())


def key_pem(key) -> bytes:
    return key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    )


def cert_pem(key, common_name: str = "User1@org1.example.com") -> bytes:
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    now = datetime.datetime.now(datetime.timezone.utc)
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(days=1))
        .not_valid_after(now + datetime.timedelta(days=30))
        .sign(key, hashes.SHA256())
    )
    return cert.public_bytes(serialization.Encoding.PEM)


@pytest.fixture
def private_key():
    return make_key()


@pytest.fixture
def msp_dir(tmp_path: Path, private_key) -> Path:
    """MSP-style layout: keystore/, signcerts/ and tls/ca.crt."""
    (tmp_path / "keystore").mkdir()
    (tmp_path / "signcerts").mkdir()
    (tmp_path / "tls").mkdir()
    (tmp_path / "keystore" / "priv_sk").write_bytes(key_pem(private_key))
    (tmp_path / "signcerts" / "cert.pem").write_bytes(cert_pem(private_key))
    (tmp_path / "tls" / "ca.crt").write_bytes(cert_pem(make_key(), "tlsca.org1.example.com"))
    return tmp_path


@pytest.fixture
def identity(private_key) -> Identity:
    return Identity("Org1MSP", cert_pem(private_key))


@pytest.fixture
def signer(private_key) -> Signer:
    return Signer(private_key)


# ─── Fake gateway endpoint ───────────────────────────────────────────


def _error(status: int, code: str, message: str, details=None) -> httpx.Response:
    return httpx.Response(
        status, json={"code": code, "message": message, "details": details or []}
    )


class FakeLedger(httpx.AsyncBaseTransport):
    """Gateway endpoint backed by an in-memory asset chaincode.

    Writes are simulated at endorse time and applied at commit-status
    time, like a real ledger. Signatures are checked against
    ``public_key`` when one is given.
    """

    def __init__(self, public_key=None):
        self.public_key = public_key
        self.state: dict[str, dict] = {}
        self.requests: list[tuple[str, dict]] = []
        self.delays: dict[str, float] = {}
        self.commit_successful = True
        self._pending: dict[str, tuple[str, dict]] = {}
        self._block = 0
        self._read_barrier: asyncio.Event | None = None
        self._reads_needed = 0

    # Helpers for tests

    def seed(self, asset_id: str, owner: str, size: int) -> None:
        self.state[asset_id] = {
            "ID": asset_id, "Color": "", "Size": size, "Owner": owner, "AppraisedValue": 0,
        }

    def hold_reads(self, count: int) -> None:
        """Make GetAllAssets wait until ``count`` reads are in flight."""
        self._reads_needed = count
        self._read_barrier = asyncio.Event()

    def paths(self) -> list[str]:
        return [path for path, _ in self.requests]

    def calls(self, function: str) -> list[list[str]]:
        found = []
        for path, body in self.requests:
            if path in ("/gateway/evaluate", "/gateway/endorse"):
                proposal = json.loads(base64.b64decode(body["payload"]))
                if proposal["function"] == function:
                    found.append(proposal["args"])
        return found

    # Transport

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        body = json.loads(request.content)
        self.requests.append((path, body))

        phase = path.rsplit("/", 1)[-1].replace("-", "_")
        if self.delays.get(phase):
            await asyncio.sleep(self.delays[phase])

        if not self._verify(body):
            return _error(403, "PERMISSION_DENIED", "bad signature")

        payload = json.loads(base64.b64decode(body["payload"]))
        if path == "/gateway/evaluate":
            return await self._evaluate(payload)
        if path == "/gateway/endorse":
            return self._endorse(payload)
        if path == "/gateway/submit":
            return self._submit(body, payload)
        if path == "/gateway/commit-status":
            return self._commit_status(payload)
        return _error(404, "NOT_FOUND", path)

    def _verify(self, body: dict) -> bool:
        if self.public_key is None:
            return True
        payload = base64.b64decode(body["payload"])
        signature = base64.b64decode(body["signature"])
        try:
            self.public_key.verify(
                signature, sha256(payload), ec.ECDSA(Prehashed(hashes.SHA256()))
            )
        except InvalidSignature:
            return False
        return True

    async def _evaluate(self, proposal: dict) -> httpx.Response:
        fn, args = proposal["function"], proposal["args"]
        if fn == "GetAllAssets":
            if self._read_barrier is not None:
                self._reads_needed -= 1
                if self._reads_needed <= 0:
                    self._read_barrier.set()
                await self._read_barrier.wait()
            result = json.dumps(list(self.state.values())).encode()
        elif fn == "ReadAsset":
            if args[0] not in self.state:
                return _error(500, "UNKNOWN", f"the asset {args[0]} does not exist")
            result = json.dumps(self.state[args[0]]).encode()
        else:
            return _error(500, "UNKNOWN", f"unknown function {fn}")
        return httpx.Response(200, json={"result": base64.b64encode(result).decode()})

    def _endorse(self, proposal: dict) -> httpx.Response:
        fn, args = proposal["function"], proposal["args"]
        asset_id = args[0]
        details = [{"mspId": "Org1MSP", "address": "peer0.org1.example.com:7051"}]
        if fn == "CreateAsset" and asset_id in self.state:
            details[0]["message"] = f"the asset {asset_id} already exists"
            return _error(409, "ABORTED", "failed to endorse transaction", details)
        if fn == "UpdateAsset" and asset_id not in self.state:
            details[0]["message"] = f"the asset {asset_id} does not exist"
            return _error(409, "ABORTED", "failed to endorse transaction", details)
        if fn not in ("CreateAsset", "UpdateAsset"):
            return _error(409, "ABORTED", f"unknown function {fn}")

        record = {
            "ID": asset_id,
            "Color": args[1],
            "Size": int(args[2]),
            "Owner": args[3],
            "AppraisedValue": int(args[4] or 0),
        }
        tx_id = proposal["txId"]
        self._pending[tx_id] = (fn, record)
        envelope = json.dumps({"txId": tx_id, "write": record}).encode()
        return httpx.Response(
            200,
            json={
                "txId": tx_id,
                "result": "",
                "envelope": base64.b64encode(envelope).decode(),
            },
        )

    def _submit(self, body: dict, envelope: dict) -> httpx.Response:
        if envelope["txId"] != body["txId"] or body["txId"] not in self._pending:
            return _error(400, "INVALID_ARGUMENT", "unknown transaction")
        return httpx.Response(200, json={})

    def _commit_status(self, request: dict) -> httpx.Response:
        tx_id = request["txId"]
        fn, record = self._pending.pop(tx_id)
        self._block += 1
        if self.commit_successful:
            self.state[record["ID"]] = record
            code = "VALID"
        else:
            code = "MVCC_READ_CONFLICT"
        return httpx.Response(
            200,
            json={
                "txId": tx_id,
                "blockNumber": self._block,
                "code": code,
                "successful": self.commit_successful,
            },
        )


@pytest.fixture
def ledger(private_key) -> FakeLedger:
    return FakeLedger(private_key.public_key())


@pytest.fixture
def timeouts() -> TimeoutPolicy:
    return TimeoutPolicy()


@pytest_asyncio.fixture
async def channel(ledger):
    ch = new_channel(
        cert_pem(make_key(), "tlsca.org1.example.com"),
        "localhost:7051",
        "peer0.org1.example.com",
        transport=ledger,
    )
    yield ch
    await ch.close()


@pytest.fixture
def contract(channel, identity, signer, timeouts):
    gateway = connect(channel, identity, signer, sha256, timeouts)
    return gateway.get_network("mychannel").get_contract("basic")
