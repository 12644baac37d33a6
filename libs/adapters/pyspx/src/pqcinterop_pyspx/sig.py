from __future__ import annotations

from typing import Optional, Tuple

from pqcinterop import references, subjects
from pqcinterop.errors import TranslationUnsupported
from pqcinterop.params import FamilyParams, get_params

from ._core import SPHINCS_ROBUST_MODULES, SPHINCS_SIMPLE_MODULES, resolve_module, short_name


@references.register("sphincs")
@subjects.register("sphincs")
class SphincsPlus:
    """SPHINCS+-SHAKE-256s-robust with keys derived from a 96-byte seed.

    The same class serves both sides; the interesting pairing is against an
    external program that publishes its artifacts to a file channel. Simple
    instantiations produce signatures of the same size that never verify
    against robust ones, so they are refused outright.
    """
    name = "sphincs"

    def __init__(self, params: Optional[FamilyParams] = None) -> None:
        self.params = params or get_params(self.name)
        self.spx = resolve_module("PQCINTEROP_SPHINCS_MODULE", SPHINCS_ROBUST_MODULES)
        if self.spx is None:
            raise RuntimeError(f"No {self.params.mechanism} module found in PySPX (needs PySPX < 0.5)")
        if short_name(self.spx) in SPHINCS_SIMPLE_MODULES:
            raise TranslationUnsupported(
                f"pyspx.{short_name(self.spx)} is the simple variant, expected {self.params.mechanism}"
            )

    def keygen(self) -> Tuple[bytes, bytes]:
        raise TranslationUnsupported("sphincs keys are derived from a seed; use keygen_from_seed")

    def keygen_from_seed(self, seed: bytes) -> Tuple[bytes, bytes]:
        pk, sk = self.spx.generate_keypair(seed)
        return bytes(pk), bytes(sk)

    def sign(self, secret_key: bytes, message: bytes, context: Optional[bytes] = None) -> bytes:
        if context is not None:
            raise TranslationUnsupported("SPHINCS+ does not accept a context")
        return bytes(self.spx.sign(message, secret_key))

    def verify(self, public_key: bytes, message: bytes, signature: bytes, context: Optional[bytes] = None) -> bool:
        if context is not None:
            raise TranslationUnsupported("SPHINCS+ does not accept a context")
        return bool(self.spx.verify(message, signature, public_key))
