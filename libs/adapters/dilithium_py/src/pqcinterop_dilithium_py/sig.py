from __future__ import annotations
"""Pure-Python subject implementations from dilithium-py.

Key, secret-key and signature layouts match the pq-crystals reference byte for
byte, so these pair with the liboqs references through identity translation.
Both subjects derive their key pair from a 32-byte seed.
"""
import copy
from typing import Optional, Tuple

from dilithium_py.dilithium import Dilithium5
from dilithium_py.ml_dsa import ML_DSA_87

from pqcinterop import subjects
from pqcinterop.errors import TranslationUnsupported
from pqcinterop.params import FamilyParams, get_params
from pqcinterop.translate import check_exact


@subjects.register("dilithium")
class Dilithium:
    name = "dilithium"

    def __init__(self, params: Optional[FamilyParams] = None) -> None:
        self.params = params or get_params(self.name)

    def keygen(self) -> Tuple[bytes, bytes]:
        return Dilithium5.keygen()

    def keygen_from_seed(self, seed: bytes) -> Tuple[bytes, bytes]:
        seed = check_exact("seed", seed, self.params.seed_bytes, self.params.mechanism)
        # keygen draws zeta once; answer that draw with the seed
        seeded = copy.copy(Dilithium5)
        seeded.random_bytes = lambda n: seed[:n]
        return seeded.keygen()

    def sign(self, secret_key: bytes, message: bytes, context: Optional[bytes] = None) -> bytes:
        if context is not None:
            raise TranslationUnsupported("Dilithium5 does not accept a context")
        return Dilithium5.sign(secret_key, message)

    def verify(self, public_key: bytes, message: bytes, signature: bytes, context: Optional[bytes] = None) -> bool:
        if context is not None:
            raise TranslationUnsupported("Dilithium5 does not accept a context")
        return Dilithium5.verify(public_key, message, signature)


@subjects.register("mldsa87")
class MLDSA87:
    name = "mldsa87"

    def __init__(self, params: Optional[FamilyParams] = None) -> None:
        self.params = params or get_params(self.name)

    def keygen(self) -> Tuple[bytes, bytes]:
        return ML_DSA_87.keygen()

    def keygen_from_seed(self, seed: bytes) -> Tuple[bytes, bytes]:
        seed = check_exact("seed", seed, self.params.seed_bytes, self.params.mechanism)
        return ML_DSA_87.key_derive(seed)

    def sign(self, secret_key: bytes, message: bytes, context: Optional[bytes] = None) -> bytes:
        return ML_DSA_87.sign(secret_key, message, ctx=context or b"")

    def verify(self, public_key: bytes, message: bytes, signature: bytes, context: Optional[bytes] = None) -> bool:
        return ML_DSA_87.verify(public_key, message, signature, ctx=context or b"")
