from __future__ import annotations

import hashlib
import hmac
import sys
from pathlib import Path
from typing import Optional

import pytest

ROOT = Path(__file__).resolve().parents[1]
for rel in (
    "libs/core/src",
    "libs/adapters/liboqs/src",
    "libs/adapters/pyspx/src",
    "libs/adapters/dilithium_py/src",
    "apps/cli/src",
):
    candidate_str = str(ROOT / rel)
    if candidate_str not in sys.path:
        sys.path.insert(0, candidate_str)

from pqcinterop import registry  # noqa: E402
from pqcinterop.channel import MemoryBlobChannel  # noqa: E402
from pqcinterop.params import get_params  # noqa: E402
from pqcinterop_cli import common as cli_common  # noqa: E402


class DummySignature:
    """Deterministic stand-in for a signature implementation.

    Anyone holding the public key can compute a tag, which is all the exchange
    logic needs: any flipped byte of key, message, context or signature makes
    verification fail. ``prefix`` models a layout that prepends an identifier
    to the public key; the tag only covers the key body, so an OID-less and an
    OID-prefixed instance agree on signatures.
    """

    def __init__(
        self,
        pk_bytes: int,
        sig_bytes: int,
        prefix: bytes = b"",
        salt: bytes = b"",
    ) -> None:
        self.pk_bytes = pk_bytes
        self.sig_bytes = sig_bytes
        self.prefix = prefix
        self.salt = salt
        self._counter = 0
        self.calls: list[str] = []

    def _pk(self, secret: bytes) -> bytes:
        body = hashlib.shake_256(b"pk" + self.salt + secret).digest(self.pk_bytes - len(self.prefix))
        return self.prefix + body

    def _tag(self, pk: bytes, message: bytes, context: Optional[bytes]) -> bytes:
        data = pk[len(self.prefix):]
        if context is not None:
            data += b"ctx" + len(context).to_bytes(1, "big") + context
        return hashlib.shake_256(data + b"msg" + message).digest(self.sig_bytes)

    def keygen(self) -> tuple[bytes, bytes]:
        self.calls.append("keygen")
        secret = self._counter.to_bytes(32, "big")
        self._counter += 1
        return self._pk(secret), secret

    def keygen_from_seed(self, seed: bytes) -> tuple[bytes, bytes]:
        self.calls.append("keygen_from_seed")
        return self._pk(seed), seed

    def sign(self, secret_key: bytes, message: bytes, context: Optional[bytes] = None) -> bytes:
        self.calls.append("sign")
        return self._tag(self._pk(secret_key), message, context)

    def verify(self, public_key: bytes, message: bytes, signature: bytes, context: Optional[bytes] = None) -> bool:
        self.calls.append("verify")
        if len(public_key) != self.pk_bytes or not public_key.startswith(self.prefix):
            return False
        return hmac.compare_digest(signature, self._tag(public_key, message, context))


class DummyOpener(DummySignature):
    """Signed-message style verifier: ``open(pk, sig | msg)``."""

    def open(self, public_key: bytes, signed_message: bytes) -> Optional[bytes]:
        self.calls.append("open")
        sig, msg = signed_message[:self.sig_bytes], signed_message[self.sig_bytes:]
        if self.verify(public_key, msg, sig):
            return msg
        return None


class RejectingSignature(DummySignature):
    def verify(self, public_key, message, signature, context=None) -> bool:
        return False


class SphincsDummy(DummySignature):
    """Seed-derived keys with ``pk = pub_seed | root`` and ``seed = sk_seed | sk_prf | pub_seed``."""

    def __init__(self, salt: bytes = b"") -> None:
        super().__init__(64, 29792, salt=salt)

    def _pk(self, secret: bytes) -> bytes:
        root = hashlib.shake_256(b"root" + self.salt + secret).digest(32)
        return secret[64:96].ljust(32, b"\x00") + root


class XmssSubjectDummy(DummySignature):
    """Subject XMSS whose secret key is ``idx | sk_seed | sk_prf | pub_seed | root``."""

    def __init__(self, n: int, sig_bytes: int) -> None:
        super().__init__(2 * n, sig_bytes)
        self.n = n

    def _secret(self, seed: bytes) -> bytes:
        parts = hashlib.shake_256(b"xmss" + seed).digest(3 * self.n)
        root = hashlib.shake_256(b"root" + parts).digest(self.n)
        return bytes(4) + parts + root

    def _pk(self, secret: bytes) -> bytes:
        n = self.n
        return secret[4 + 3 * n:4 + 4 * n] + secret[4 + 2 * n:4 + 3 * n]

    def keygen(self) -> tuple[bytes, bytes]:
        self.calls.append("keygen")
        secret = self._secret(self._counter.to_bytes(48, "big"))
        self._counter += 1
        return self._pk(secret), secret

    def keygen_from_seed(self, seed: bytes) -> tuple[bytes, bytes]:
        self.calls.append("keygen_from_seed")
        secret = self._secret(seed)
        return self._pk(secret), secret


def make_pair(family: str, xmss_params: Optional[str] = None) -> tuple[DummySignature, DummySignature]:
    """Subject and reference dummies laid out like the family's real formats."""
    params = get_params(family, xmss_params)
    sub, ref = params.subject, params.reference
    if params.xmss is not None:
        oid = params.xmss.oid.to_bytes(4, "big")
        return (
            XmssSubjectDummy(params.xmss.n, sub.signature_bytes),
            DummyOpener(ref.public_key_bytes, ref.signature_bytes, prefix=oid),
        )
    if params.seed_components:
        return SphincsDummy(), SphincsDummy()
    return (
        DummySignature(sub.public_key_bytes, sub.signature_bytes),
        DummySignature(ref.public_key_bytes, ref.signature_bytes),
    )


@pytest.fixture
def channel() -> MemoryBlobChannel:
    return MemoryBlobChannel()


@pytest.fixture
def registry_snapshot():
    """Restore both registries after a test imports real adapter packages."""
    saved = {
        reg: dict(reg._items)  # type: ignore[attr-defined]
        for reg in (registry.subjects, registry.references)
    }
    try:
        yield
    finally:
        for reg, items in saved.items():
            reg._items.clear()  # type: ignore[attr-defined]
            reg._items.update(items)  # type: ignore[attr-defined]


@pytest.fixture
def dummy_registry(monkeypatch: pytest.MonkeyPatch):
    originals = {
        reg: dict(reg._items)  # type: ignore[attr-defined]
        for reg in (registry.subjects, registry.references)
    }
    for reg in originals:
        reg._items.clear()  # type: ignore[attr-defined]
    for family in ("dilithium", "mldsa87", "sphincs", "xmss"):
        subject, reference = make_pair(family)
        registry.subjects._items[family] = lambda *args, s=subject: s  # type: ignore[attr-defined]
        registry.references._items[family] = lambda *args, r=reference: r  # type: ignore[attr-defined]
    monkeypatch.setattr(cli_common, "_ADAPTERS_LOADED", True)
    cli_common.reset_adapter_cache()
    try:
        yield
    finally:
        for reg, items in originals.items():
            reg._items.clear()  # type: ignore[attr-defined]
            reg._items.update(items)  # type: ignore[attr-defined]
        cli_common.reset_adapter_cache()
