from __future__ import annotations
from typing import Optional, Tuple

from pqcinterop import references, subjects
from pqcinterop.errors import TranslationUnsupported
from pqcinterop.params import FamilyParams, get_params
from pqcinterop.translate import XmssTranslator
from ._util import try_import_oqs, pick_sig_algorithm, pick_stateful_sig_algorithm

_oqs = try_import_oqs()


def _no_context(name: str, context: Optional[bytes]) -> None:
    if context is not None:
        raise TranslationUnsupported(f"{name} does not accept a context")


@references.register("dilithium")
class Dilithium:
    name = "dilithium"

    def __init__(self, params: Optional[FamilyParams] = None) -> None:
        self.params = params or get_params(self.name)
        self.alg = pick_sig_algorithm(_oqs, "PQCINTEROP_DILITHIUM_ALG", [self.params.mechanism])
        if not self.alg:
            raise RuntimeError("Dilithium5 is not enabled in liboqs")

    def keygen(self) -> Tuple[bytes, bytes]:
        with _oqs.Signature(self.alg) as s:
            pk = s.generate_keypair()
            sk = s.export_secret_key()
            return pk, sk

    def sign(self, secret_key: bytes, message: bytes, context: Optional[bytes] = None) -> bytes:
        _no_context(self.alg, context)
        with _oqs.Signature(self.alg, secret_key=secret_key) as s:
            return s.sign(message)

    def verify(self, public_key: bytes, message: bytes, signature: bytes, context: Optional[bytes] = None) -> bool:
        _no_context(self.alg, context)
        with _oqs.Signature(self.alg) as v:
            return v.verify(message, signature, public_key)


@references.register("mldsa87")
class MLDSA87:
    name = "mldsa87"

    def __init__(self, params: Optional[FamilyParams] = None) -> None:
        self.params = params or get_params(self.name)
        self.alg = pick_sig_algorithm(_oqs, "PQCINTEROP_MLDSA87_ALG", [self.params.mechanism])
        if not self.alg:
            raise RuntimeError("ML-DSA-87 is not enabled in liboqs")

    def keygen(self) -> Tuple[bytes, bytes]:
        with _oqs.Signature(self.alg) as s:
            pk = s.generate_keypair()
            sk = s.export_secret_key()
            return pk, sk

    def sign(self, secret_key: bytes, message: bytes, context: Optional[bytes] = None) -> bytes:
        # An absent context is the explicit empty context.
        with _oqs.Signature(self.alg, secret_key=secret_key) as s:
            return s.sign_with_ctx_str(message, context or b"")

    def verify(self, public_key: bytes, message: bytes, signature: bytes, context: Optional[bytes] = None) -> bool:
        with _oqs.Signature(self.alg) as v:
            return v.verify_with_ctx_str(message, signature, context or b"", public_key)


class _XmssBase:
    def __init__(self, params: Optional[FamilyParams] = None) -> None:
        params = params or get_params("xmss")
        self.params = params
        self.translator = XmssTranslator(params)
        self.alg = pick_stateful_sig_algorithm(_oqs, "PQCINTEROP_XMSS_ALG", [params.mechanism])
        if not self.alg:
            raise RuntimeError(f"{params.mechanism} is not enabled in liboqs")
        if self.alg != params.mechanism:
            raise TranslationUnsupported(
                f"liboqs mechanism {self.alg} does not match XMSS parameter set {params.mechanism}"
            )

    def _keygen(self) -> Tuple[bytes, bytes]:
        with _oqs.StatefulSignature(self.alg) as s:
            pk = s.generate_keypair()
            sk = s.export_secret_key()
            return pk, sk

    def sign(self, secret_key: bytes, message: bytes, context: Optional[bytes] = None) -> bytes:
        _no_context(self.alg, context)
        with _oqs.StatefulSignature(self.alg, secret_key=secret_key) as s:
            return s.sign(message)

    def _verify(self, reference_pk: bytes, message: bytes, signature: bytes) -> bool:
        with _oqs.StatefulSignature(self.alg) as v:
            return v.verify(message, signature, reference_pk)


@references.register("xmss")
class Xmss(_XmssBase):
    """liboqs XMSS in the reference layout (OID-prefixed public key).

    Verification goes through ``open`` with one ``signature | message``
    buffer, split at the declared signature length.
    """
    name = "xmss"

    def keygen(self) -> Tuple[bytes, bytes]:
        return self._keygen()

    def verify(self, public_key: bytes, message: bytes, signature: bytes, context: Optional[bytes] = None) -> bool:
        _no_context(self.alg, context)
        return self._verify(public_key, message, signature)

    def open(self, public_key: bytes, signed_message: bytes) -> Optional[bytes]:
        signature, message = self.translator.split_signed_message(signed_message)
        if self._verify(public_key, message, signature):
            return message
        return None


@subjects.register("xmss")
class XmssSubjectLayout(_XmssBase):
    """liboqs XMSS re-encoded in the subject layout (public key = root | pub_seed).

    liboqs exposes no seeded key generation, so the exchange driver falls
    back to a fresh key pair and publishes no seed for this provider.
    """
    name = "xmss"

    def keygen(self) -> Tuple[bytes, bytes]:
        pk, sk = self._keygen()
        return self.translator.to_subject_public_key(pk), sk

    def verify(self, public_key: bytes, message: bytes, signature: bytes, context: Optional[bytes] = None) -> bool:
        _no_context(self.alg, context)
        return self._verify(self.translator.to_reference_public_key(public_key), message, signature)
