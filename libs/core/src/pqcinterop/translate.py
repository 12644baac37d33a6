from __future__ import annotations
"""Subject <-> reference wire-format translation.

Translators are pure: they take bytes, assert lengths against the family's
declared layouts and return new bytes. Malformed input is rejected, never
reinterpreted.
"""
from typing import Dict, Optional, Tuple, Type

from .errors import LengthMismatch, TranslationUnsupported
from .params import (
    MAX_CONTEXT_BYTES,
    MAX_MESSAGE_BYTES,
    REFERENCE,
    SIDES,
    SUBJECT,
    XMSS_INDEX_BYTES,
    XMSS_OID_BYTES,
    FamilyParams,
    FormatLayout,
    xmss_parameter_set_by_oid,
)


def check_exact(artifact: str, data: bytes, expected: int, layout: Optional[str] = None) -> bytes:
    if len(data) != expected:
        raise LengthMismatch(artifact, expected, len(data), layout=layout)
    return bytes(data)


def check_at_most(artifact: str, data: bytes, capacity: int, layout: Optional[str] = None) -> bytes:
    if len(data) > capacity:
        raise LengthMismatch(artifact, capacity, len(data), at_most=True, layout=layout)
    return bytes(data)


def _check_side(side: str) -> str:
    if side not in SIDES:
        raise TranslationUnsupported(f"unknown format side {side!r}")
    return side


class FormatTranslator:
    """Identity translation for families whose layouts agree byte for byte."""

    def __init__(self, params: FamilyParams) -> None:
        self.params = params

    def _layout(self, side: str) -> FormatLayout:
        return self.params.layout(_check_side(side))

    def _label(self, side: str) -> str:
        return f"{self.params.mechanism} {side}"

    # -- assertions -------------------------------------------------------

    def check_public_key(self, pk: bytes, side: str) -> bytes:
        return check_exact("public key", pk, self._layout(side).public_key_bytes, self._label(side))

    def check_signature(self, sig: bytes, side: str) -> bytes:
        layout = self._layout(side)
        if layout.signature_fixed:
            return check_exact("signature", sig, layout.signature_bytes, self._label(side))
        if not sig:
            raise LengthMismatch("signature", layout.signature_bytes, 0, at_most=True, layout=self._label(side))
        return check_at_most("signature", sig, layout.signature_bytes, self._label(side))

    def check_message(self, msg: bytes) -> bytes:
        # Zero-length messages are valid.
        return check_at_most("message", msg, MAX_MESSAGE_BYTES)

    def check_seed(self, seed: bytes) -> bytes:
        if self.params.seed_bytes is None:
            raise TranslationUnsupported(f"{self.params.family} does not derive keys from a seed")
        return check_exact("seed", seed, self.params.seed_bytes, self.params.mechanism)

    def context(self, ctx: Optional[bytes]) -> Optional[bytes]:
        """Normalise a context for the verify/sign call.

        Families with domain separation always get explicit bytes (``None``
        becomes ``b""``). Families without it only accept ``None``.
        """
        if not self.params.supports_context:
            if ctx is not None:
                raise TranslationUnsupported(f"{self.params.mechanism} does not accept a context")
            return None
        if ctx is None:
            return b""
        return check_at_most("context", ctx, MAX_CONTEXT_BYTES, self.params.mechanism)

    def public_seed(self, pk: bytes, side: str) -> bytes:
        raise TranslationUnsupported(f"{self.params.mechanism} public key carries no public seed")

    def split_seed(self, seed: bytes) -> Dict[str, bytes]:
        raise TranslationUnsupported(f"{self.params.mechanism} seed has no components")

    def seed_components(self, sk: bytes) -> Dict[str, bytes]:
        raise TranslationUnsupported(f"{self.params.mechanism} secret key has no published components")

    # -- translation ------------------------------------------------------

    def public_key(self, pk: bytes, source: str, target: str) -> bytes:
        pk = self.check_public_key(pk, source)
        _check_side(target)
        return pk

    def signature(self, sig: bytes, source: str, target: str) -> bytes:
        sig = self.check_signature(sig, source)
        return self.check_signature(sig, target)

    def signed_message(self, sig: bytes, msg: bytes, side: str = REFERENCE) -> bytes:
        """Concatenate ``sig | msg`` for entry points that take one buffer."""
        sig = self.check_signature(sig, side)
        msg = self.check_message(msg)
        return sig + msg

    def split_signed_message(self, sm: bytes, side: str = REFERENCE) -> Tuple[bytes, bytes]:
        layout = self._layout(side)
        if not layout.signature_fixed:
            raise TranslationUnsupported(
                f"{self.params.mechanism}: cannot split a variable-length signature from its message"
            )
        siglen = layout.signature_bytes
        if len(sm) < siglen:
            raise LengthMismatch("signed message", siglen, len(sm), layout=self._label(side))
        return sm[:siglen], self.check_message(sm[siglen:])


class SeedTranslator(FormatTranslator):
    """Seed-deterministic families: keys translate by identity, the seed is split
    into its declared components."""

    def split_seed(self, seed: bytes) -> Dict[str, bytes]:
        seed = self.check_seed(seed)
        parts: Dict[str, bytes] = {}
        offset = 0
        for name, size in self.params.seed_components:
            parts[name] = seed[offset:offset + size]
            offset += size
        return parts

    def public_seed(self, pk: bytes, side: str) -> bytes:
        # pk = pub_seed | root
        size = dict(self.params.seed_components)["pub_seed"]
        return self.check_public_key(pk, side)[:size]


class XmssTranslator(FormatTranslator):
    """Subject keys omit the 4-byte OID that the reference layout requires."""

    def __init__(self, params: FamilyParams) -> None:
        if params.xmss is None:
            raise TranslationUnsupported(f"{params.family} has no XMSS parameter set")
        super().__init__(params)
        self.xmss = params.xmss

    @property
    def oid_prefix(self) -> bytes:
        return self.xmss.oid.to_bytes(XMSS_OID_BYTES, "big")

    def to_reference_public_key(self, pk: bytes) -> bytes:
        pk = self.check_public_key(pk, SUBJECT)
        return self.oid_prefix + pk

    def to_subject_public_key(self, pk: bytes) -> bytes:
        pk = self.check_public_key(pk, REFERENCE)
        oid = int.from_bytes(pk[:XMSS_OID_BYTES], "big")
        declared = xmss_parameter_set_by_oid(oid)
        if declared.oid != self.xmss.oid:
            raise TranslationUnsupported(
                f"public key is for {declared.name}, expected {self.xmss.name}"
            )
        return pk[XMSS_OID_BYTES:]

    def public_key(self, pk: bytes, source: str, target: str) -> bytes:
        _check_side(target)
        if source == target:
            return self.check_public_key(pk, source)
        if target == REFERENCE:
            return self.to_reference_public_key(pk)
        return self.to_subject_public_key(pk)

    def public_seed(self, pk: bytes, side: str) -> bytes:
        pk = self.check_public_key(pk, side)
        if side == REFERENCE:
            pk = pk[XMSS_OID_BYTES:]
        n = self.xmss.n
        return pk[n:2 * n]

    def seed_components(self, sk: bytes) -> Dict[str, bytes]:
        """Extract ``sk_seed``, ``sk_prf`` and ``pub_seed`` from a subject secret key
        laid out as ``idx | sk_seed | sk_prf | pub_seed | root``."""
        n = self.xmss.n
        sk = check_exact("secret key", sk, self.xmss.subject_secret_key_bytes, self._label(SUBJECT))
        off = XMSS_INDEX_BYTES
        return {
            "sk_seed": sk[off:off + n],
            "sk_prf": sk[off + n:off + 2 * n],
            "pub_seed": sk[off + 2 * n:off + 3 * n],
        }


_TRANSLATORS: Dict[str, Type[FormatTranslator]] = {
    "lattice": FormatTranslator,
    "hash-stateless": SeedTranslator,
    "hash-stateful": XmssTranslator,
}


def get_translator(params: FamilyParams) -> FormatTranslator:
    try:
        cls = _TRANSLATORS[params.kind]
    except KeyError:
        raise TranslationUnsupported(f"no translator for family kind {params.kind!r}") from None
    return cls(params)
