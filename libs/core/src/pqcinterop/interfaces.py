from __future__ import annotations
from typing import Optional, Protocol, Tuple

"""Capability contracts used by adapters.

Adapters implement these Protocols and register themselves into the
``subjects`` or ``references`` registry; registered classes are constructed
with the resolved ``FamilyParams``. The exchange driver interacts only with
these interfaces, never with vendor libraries directly.
"""

class Signature(Protocol):
    """Digital signature capability for one family."""
    name: str
    def keygen(self) -> Tuple[bytes, bytes]: ...
    def sign(self, secret_key: bytes, message: bytes, context: Optional[bytes] = None) -> bytes: ...
    def verify(self, public_key: bytes, message: bytes, signature: bytes, context: Optional[bytes] = None) -> bool: ...

class SeededSignature(Signature, Protocol):
    """Families whose key pair is a deterministic function of a seed."""
    def keygen_from_seed(self, seed: bytes) -> Tuple[bytes, bytes]: ...

class SignedMessageOpener(Protocol):
    """Verify entry points that take one ``signature | message`` buffer.

    Returns the recovered message, or None when the signature is rejected.
    """
    def open(self, public_key: bytes, signed_message: bytes) -> Optional[bytes]: ...

class BlobChannel(Protocol):
    """Named byte-blob store shared by producer and consumer."""
    def put(self, name: str, data: bytes) -> None: ...
    def get(self, name: str, max_len: int) -> bytes: ...
