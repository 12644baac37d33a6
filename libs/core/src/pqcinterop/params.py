from __future__ import annotations
"""Artifact sizes and layouts for every supported family.

Each family carries one ``FormatLayout`` per side (subject and reference).
The translator and the exchange driver assert every artifact against these
constants; nothing is padded or truncated to fit.

XMSS sizes follow RFC 8391: a signature is ``idx(4) | r(n) | WOTS(len*n) |
auth(h*n)`` and the reference public key is ``OID(4) | root(n) | pub_seed(n)``.
"""
import os
from dataclasses import dataclass, asdict
from typing import Dict, Optional, Tuple, Any

from .errors import TranslationUnsupported

SUBJECT = "subject"
REFERENCE = "reference"
SIDES = (SUBJECT, REFERENCE)

# Transport capacities, not protocol limits.
MAX_MESSAGE_BYTES = 256
MAX_CONTEXT_BYTES = 255

XMSS_OID_BYTES = 4
XMSS_INDEX_BYTES = 4
XMSS_SEED_BYTES = 48
DEFAULT_XMSS_PARAMS = "XMSS-SHA2_10_256"


@dataclass(frozen=True)
class FormatLayout:
    public_key_bytes: int
    signature_bytes: int           # exact length, or maximum when not fixed
    secret_key_bytes: Optional[int] = None
    signature_fixed: bool = True
    signed_message: bool = False   # verify entry point takes sig | msg
    seeded_keygen: bool = False    # key pair derived from a seed on this side


@dataclass(frozen=True)
class XmssParams:
    name: str
    oid: int
    n: int
    height: int
    wots_len: int

    @property
    def signature_bytes(self) -> int:
        return XMSS_INDEX_BYTES + self.n + self.wots_len * self.n + self.height * self.n

    @property
    def subject_public_key_bytes(self) -> int:
        return 2 * self.n

    @property
    def reference_public_key_bytes(self) -> int:
        return XMSS_OID_BYTES + 2 * self.n

    @property
    def subject_secret_key_bytes(self) -> int:
        # idx | sk_seed | sk_prf | pub_seed | root
        return XMSS_INDEX_BYTES + 4 * self.n


@dataclass(frozen=True)
class FamilyParams:
    family: str                    # blob namespace, e.g. "mldsa87"
    kind: str                      # lattice | hash-stateless | hash-stateful
    mechanism: str                 # canonical parameter set name
    subject: FormatLayout
    reference: FormatLayout
    supports_context: bool = False
    seed_bytes: Optional[int] = None
    seed_published: bool = False   # producer writes {family}_seed
    seed_components: Tuple[Tuple[str, int], ...] = ()
    # parts of the subject secret key published next to the seed
    secret_key_components: Tuple[Tuple[str, int], ...] = ()
    default_message: bytes = b""
    default_context: Optional[bytes] = None
    xmss: Optional[XmssParams] = None
    notes: str = ""

    def seeded_on(self, side: str) -> bool:
        return self.layout(side).seeded_keygen

    @property
    def seeded_sides(self) -> Tuple[str, ...]:
        return tuple(s for s in SIDES if self.seeded_on(s))

    def layout(self, side: str) -> FormatLayout:
        if side == SUBJECT:
            return self.subject
        if side == REFERENCE:
            return self.reference
        raise TranslationUnsupported(f"unknown format side {side!r}")

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["seeded_sides"] = list(self.seeded_sides)
        return d


def _xmss_set(hash_name: str, height: int, bits: int, oid: int) -> XmssParams:
    n = bits // 8
    wots_len = 67 if n == 32 else 131
    return XmssParams(
        name=f"XMSS-{hash_name}_{height}_{bits}",
        oid=oid,
        n=n,
        height=height,
        wots_len=wots_len,
    )


# RFC 8391 single-tree parameter sets, keyed by upper-cased name.
XMSS_PARAMETER_SETS: Dict[str, XmssParams] = {
    p.name.upper(): p
    for p in (
        _xmss_set("SHA2", 10, 256, 0x00000001),
        _xmss_set("SHA2", 16, 256, 0x00000002),
        _xmss_set("SHA2", 20, 256, 0x00000003),
        _xmss_set("SHA2", 10, 512, 0x00000004),
        _xmss_set("SHA2", 16, 512, 0x00000005),
        _xmss_set("SHA2", 20, 512, 0x00000006),
        _xmss_set("SHAKE", 10, 256, 0x00000007),
        _xmss_set("SHAKE", 16, 256, 0x00000008),
        _xmss_set("SHAKE", 20, 256, 0x00000009),
        _xmss_set("SHAKE", 10, 512, 0x0000000A),
        _xmss_set("SHAKE", 16, 512, 0x0000000B),
        _xmss_set("SHAKE", 20, 512, 0x0000000C),
    )
}


def xmss_parameter_set(name: str) -> XmssParams:
    try:
        return XMSS_PARAMETER_SETS[name.upper()]
    except KeyError:
        raise TranslationUnsupported(f"unknown XMSS parameter set {name!r}") from None


def xmss_parameter_set_by_oid(oid: int) -> XmssParams:
    for p in XMSS_PARAMETER_SETS.values():
        if p.oid == oid:
            return p
    raise TranslationUnsupported(f"unknown XMSS algorithm identifier 0x{oid:08x}")


def xmss_family(parameter_set: str = DEFAULT_XMSS_PARAMS) -> FamilyParams:
    p = xmss_parameter_set(parameter_set)
    return FamilyParams(
        family="xmss",
        kind="hash-stateful",
        mechanism=p.name,
        subject=FormatLayout(
            public_key_bytes=p.subject_public_key_bytes,
            signature_bytes=p.signature_bytes,
            secret_key_bytes=p.subject_secret_key_bytes,
            seeded_keygen=True,
        ),
        reference=FormatLayout(
            public_key_bytes=p.reference_public_key_bytes,
            signature_bytes=p.signature_bytes,
            signed_message=True,
        ),
        seed_bytes=XMSS_SEED_BYTES,
        seed_published=True,
        secret_key_components=(("sk_seed", p.n), ("sk_prf", p.n), ("pub_seed", p.n)),
        default_message=b"XMSS cross-implementation verification",
        xmss=p,
        notes="subject pk = root|pub_seed; reference pk = OID|root|pub_seed",
    )


_FAMILIES: Dict[str, FamilyParams] = {}


def _add(params: FamilyParams) -> None:
    _FAMILIES[params.family] = params


def _identical(
    pk: int,
    sig: int,
    sk: Optional[int] = None,
    seeded: Tuple[str, ...] = (),
) -> Tuple[FormatLayout, FormatLayout]:
    sub = FormatLayout(public_key_bytes=pk, signature_bytes=sig, secret_key_bytes=sk,
                       seeded_keygen=SUBJECT in seeded)
    ref = FormatLayout(public_key_bytes=pk, signature_bytes=sig, secret_key_bytes=sk,
                       seeded_keygen=REFERENCE in seeded)
    return sub, ref


# Lattice subjects derive keys from a 32-byte seed; the references generate
# fresh keys, so the seed never crosses the channel.
_sub, _ref = _identical(pk=2592, sig=4595, seeded=(SUBJECT,))
_add(FamilyParams(
    family="dilithium",
    kind="lattice",
    mechanism="Dilithium5",
    subject=_sub,
    reference=_ref,
    seed_bytes=32,
    default_message=b"Dilithium cross-implementation verification",
    notes="round 3 Dilithium, mode 5; no context",
))

_sub, _ref = _identical(pk=2592, sig=4627, sk=4896, seeded=(SUBJECT,))
_add(FamilyParams(
    family="mldsa87",
    kind="lattice",
    mechanism="ML-DSA-87",
    subject=_sub,
    reference=_ref,
    supports_context=True,
    seed_bytes=32,
    default_message=b"ML-DSA-87 cross-implementation verification",
    default_context=b"test",
    notes="FIPS 204; absent context is the empty context",
))

_sub, _ref = _identical(pk=64, sig=29792, sk=128, seeded=SIDES)
_add(FamilyParams(
    family="sphincs",
    kind="hash-stateless",
    mechanism="SPHINCS+-SHAKE-256s-robust",
    subject=_sub,
    reference=_ref,
    seed_bytes=96,
    seed_published=True,
    seed_components=(("sk_seed", 32), ("sk_prf", 32), ("pub_seed", 32)),
    default_message=b"SPHINCS+ cross-implementation verification",
    notes="robust tweakable hash; keys derived from a 3*n seed; pk = pub_seed|root",
))


def get_params(family: str, xmss_params: Optional[str] = None) -> FamilyParams:
    """Look up a family by name.

    The XMSS parameter set comes from ``xmss_params`` or the
    ``PQCINTEROP_XMSS_PARAMS`` environment variable.
    """
    key = (family or "").lower()
    if key == "xmss":
        return xmss_family(xmss_params or os.getenv("PQCINTEROP_XMSS_PARAMS") or DEFAULT_XMSS_PARAMS)
    try:
        return _FAMILIES[key]
    except KeyError:
        raise TranslationUnsupported(f"unknown signature family {family!r}") from None


def list_families() -> Tuple[str, ...]:
    return tuple(sorted([*_FAMILIES, "xmss"]))
