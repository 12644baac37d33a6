from __future__ import annotations
"""Exchange driver: one produce/consume round per family.

A round walks ``INIT -> GENERATE|RECEIVE -> SELF_VERIFY (producer) ->
PUBLISH|TRANSLATE -> VERIFY -> PASS|FAIL``. The same driver serves every
family; the capability provider and the format translator are injected.

Producers on the subject side publish ``{family}_pk``, ``{family}_sig``,
``{family}_msg`` (plus ``_ctx``, ``_seed`` and secret key components where
the family has them);
reference-side producers publish the same names under a ``ref_`` prefix.
A consumer always reads the namespace of the opposite side.
"""
import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .errors import (
    ArtifactUnavailable,
    CrossVerificationFailed,
    InteropError,
    LengthMismatch,
    SelfVerificationFailed,
    TranslationUnsupported,
)
from .params import (
    MAX_CONTEXT_BYTES,
    MAX_MESSAGE_BYTES,
    REFERENCE,
    SUBJECT,
    FamilyParams,
    get_params,
)
from .translate import FormatTranslator, get_translator

log = logging.getLogger(__name__)

ARTIFACTS = ("pk", "sig", "msg", "ctx", "seed", "sk_seed", "sk_prf", "pub_seed")


class RoundState(str, Enum):
    INIT = "INIT"
    GENERATE = "GENERATE"
    RECEIVE = "RECEIVE"
    SELF_VERIFY = "SELF_VERIFY"
    PUBLISH = "PUBLISH"
    TRANSLATE = "TRANSLATE"
    VERIFY = "VERIFY"
    PASS = "PASS"
    FAIL = "FAIL"


def peer_of(side: str) -> str:
    if side == SUBJECT:
        return REFERENCE
    if side == REFERENCE:
        return SUBJECT
    raise TranslationUnsupported(f"unknown format side {side!r}")


def default_seed(size: int) -> bytes:
    # 0x00, 0x01, ... as the subject's CI programs use
    return bytes(i & 0xFF for i in range(size))


@dataclass
class ExchangeConfig:
    """Per-round settings.

    ``message``/``context`` left as None fall back to the family defaults; pass
    ``b""`` to force an empty value. ``namespace`` overrides the family part of
    blob names and ``reference_prefix`` the prefix of reference-side blobs.
    """
    message: Optional[bytes] = None
    context: Optional[bytes] = None
    seed: Optional[bytes] = None
    seed_from_peer: bool = False
    namespace: Optional[str] = None
    reference_prefix: str = "ref_"

    def blob_names(self, params: FamilyParams, side: str) -> Dict[str, str]:
        ns = self.namespace or params.family
        prefix = self.reference_prefix if side == REFERENCE else ""
        if side not in (SUBJECT, REFERENCE):
            raise TranslationUnsupported(f"unknown format side {side!r}")
        return {artifact: f"{prefix}{ns}_{artifact}" for artifact in ARTIFACTS}


@dataclass
class ArtifactReport:
    name: str
    size: int
    expected: Optional[int] = None
    at_most: bool = False

    def line(self) -> str:
        text = f"  {self.name}: {self.size} bytes"
        if self.expected is not None:
            bound = "<= " if self.at_most else ""
            text += f" (expected {bound}{self.expected})"
        return text


@dataclass
class RoundResult:
    """Outcome of one round; PASS only when every step succeeded."""
    family: str
    mechanism: str
    role: str
    side: str
    state: RoundState = RoundState.INIT
    trail: List[RoundState] = field(default_factory=lambda: [RoundState.INIT])
    artifacts: List[ArtifactReport] = field(default_factory=list)
    notes: List[str] = field(default_factory=list)
    error: Optional[InteropError] = None

    @property
    def passed(self) -> bool:
        return self.state is RoundState.PASS and self.error is None

    @property
    def error_kind(self) -> Optional[str]:
        return self.error.kind if self.error is not None else None

    def status_line(self) -> str:
        head = f"[{self.family}] {self.side} {self.role} ({self.mechanism}): "
        if self.passed:
            return head + "PASS"
        failed_in = self.trail[-2].value if len(self.trail) > 1 else RoundState.INIT.value
        return head + f"FAIL during {failed_in}: {self.error_kind}: {self.error}"

    def lines(self) -> List[str]:
        out = [a.line() for a in self.artifacts]
        out.extend(f"  note: {n}" for n in self.notes)
        out.append(self.status_line())
        return out

    def to_dict(self) -> Dict[str, Any]:
        return {
            "family": self.family,
            "mechanism": self.mechanism,
            "role": self.role,
            "side": self.side,
            "state": self.state.value,
            "trail": [s.value for s in self.trail],
            "artifacts": [
                {"name": a.name, "size": a.size, "expected": a.expected} for a in self.artifacts
            ],
            "notes": list(self.notes),
            "error": None if self.error is None else {"kind": self.error.kind, "message": str(self.error)},
        }


class ExchangeDriver:
    """Runs producer and consumer rounds for one family on one side."""

    def __init__(
        self,
        provider: Any,
        channel: Any,
        side: str,
        params: FamilyParams,
        translator: Optional[FormatTranslator] = None,
    ) -> None:
        self.provider = provider
        self.channel = channel
        self.side = side
        self.peer = peer_of(side)
        self.params = params
        self.translator = translator or get_translator(params)

    @classmethod
    def from_registry(
        cls,
        family: str,
        side: str,
        channel: Any,
        xmss_params: Optional[str] = None,
    ) -> "ExchangeDriver":
        from .registry import for_side

        params = get_params(family, xmss_params)
        provider = for_side(side).get(params.family)(params)
        return cls(provider, channel, side, params)

    # -- bookkeeping ------------------------------------------------------

    def _new_result(self, role: str) -> RoundResult:
        return RoundResult(
            family=self.params.family,
            mechanism=self.params.mechanism,
            role=role,
            side=self.side,
        )

    @staticmethod
    def _enter(result: RoundResult, state: RoundState) -> None:
        result.trail.append(state)
        result.state = state
        log.debug("%s %s %s -> %s", result.family, result.side, result.role, state.value)

    def _finish(self, result: RoundResult, error: Optional[InteropError] = None) -> RoundResult:
        result.error = error
        self._enter(result, RoundState.PASS if error is None else RoundState.FAIL)
        if error is None:
            log.info("%s %s %s passed", result.family, result.side, result.role)
        else:
            log.error("%s %s %s failed: %s: %s", result.family, result.side, result.role, error.kind, error)
        return result

    # -- channel access ---------------------------------------------------

    def _receive(
        self,
        result: RoundResult,
        name: str,
        capacity: int,
        exact: bool,
    ) -> bytes:
        # Read one byte past capacity so oversized blobs are caught, not truncated.
        data = self.channel.get(name, capacity + 1)
        result.artifacts.append(ArtifactReport(name, len(data), capacity, at_most=not exact))
        if exact and len(data) != capacity:
            raise LengthMismatch(name, capacity, len(data), layout=f"{self.params.mechanism} {self.peer}")
        if len(data) > capacity:
            raise LengthMismatch(name, capacity, len(data), at_most=True)
        return data

    # -- verification -----------------------------------------------------

    def _verify(self, pk: bytes, msg: bytes, sig: bytes, ctx: Optional[bytes]) -> bool:
        layout = self.params.layout(self.side)
        if layout.signed_message:
            opener = getattr(self.provider, "open", None)
            if opener is None:
                raise TranslationUnsupported(
                    f"{self.params.mechanism} {self.side} provider has no signed-message entry point"
                )
            sm = self.translator.signed_message(sig, msg, self.side)
            recovered = opener(pk, sm)
            return recovered is not None and bytes(recovered) == msg
        return self.provider.verify(pk, msg, sig, ctx) is True

    def _keygen(self, seed: Optional[bytes]) -> Tuple[bytes, bytes]:
        if seed is None:
            return self.provider.keygen()
        derive = getattr(self.provider, "keygen_from_seed", None)
        if derive is None:
            raise TranslationUnsupported(
                f"{self.params.mechanism} {self.side} provider cannot derive keys from a seed"
            )
        return derive(seed)

    # -- producer ---------------------------------------------------------

    def produce(self, config: Optional[ExchangeConfig] = None) -> RoundResult:
        config = config or ExchangeConfig()
        result = self._new_result("producer")
        try:
            self._produce(config, result)
        except InteropError as exc:
            return self._finish(result, exc)
        return self._finish(result)

    def _resolve_seed(self, config: ExchangeConfig, result: RoundResult) -> Tuple[Optional[bytes], bool]:
        """Return the keygen seed and whether the caller asked for it explicitly."""
        p, t = self.params, self.translator
        requested = config.seed is not None or config.seed_from_peer
        if not p.seeded_on(self.side):
            if requested:
                raise TranslationUnsupported(f"{p.mechanism} {self.side} does not derive keys from a seed")
            return None, False
        if config.seed is not None:
            return t.check_seed(config.seed), True
        if config.seed_from_peer:
            name = config.blob_names(p, self.peer)["seed"]
            data = self._receive(result, name, p.seed_bytes, exact=True)
            return t.check_seed(data), True
        return default_seed(p.seed_bytes), False

    def _produce(self, config: ExchangeConfig, result: RoundResult) -> None:
        p, t, side = self.params, self.translator, self.side
        msg = t.check_message(config.message if config.message is not None else p.default_message)
        ctx = t.context(config.context if config.context is not None else p.default_context)

        self._enter(result, RoundState.GENERATE)
        seed, requested = self._resolve_seed(config, result)
        if seed is not None and not requested and not hasattr(self.provider, "keygen_from_seed"):
            result.notes.append(f"{p.mechanism} {side} provider cannot derive keys from a seed; fresh key pair")
            seed = None
        pk, sk = self._keygen(seed)
        pk = t.check_public_key(pk, side)
        sig = t.check_signature(self.provider.sign(sk, msg, ctx), side)

        self._enter(result, RoundState.SELF_VERIFY)
        if not self._verify(pk, msg, sig, ctx):
            raise SelfVerificationFailed(
                f"{p.mechanism} {side} implementation rejected its own signature; nothing published"
            )

        self._enter(result, RoundState.PUBLISH)
        names = config.blob_names(p, side)
        blobs = {"pk": pk, "sig": sig, "msg": msg}
        if p.supports_context:
            blobs["ctx"] = ctx
        if seed is not None and p.seed_published:
            blobs["seed"] = seed
            if side == SUBJECT and p.secret_key_components:
                blobs.update(t.seed_components(sk))
        for artifact, data in blobs.items():
            self.channel.put(names[artifact], data)
            result.artifacts.append(ArtifactReport(names[artifact], len(data)))

        self._enter(result, RoundState.VERIFY)
        for artifact, data in blobs.items():
            echoed = self.channel.get(names[artifact], len(data) + 1)
            if echoed != data:
                raise ArtifactUnavailable(names[artifact], "read-back differs from published bytes")

    # -- consumer ---------------------------------------------------------

    def consume(self, config: Optional[ExchangeConfig] = None) -> RoundResult:
        config = config or ExchangeConfig()
        result = self._new_result("consumer")
        try:
            self._consume(config, result)
        except InteropError as exc:
            return self._finish(result, exc)
        return self._finish(result)

    def _consume(self, config: ExchangeConfig, result: RoundResult) -> None:
        p, t, side, peer = self.params, self.translator, self.side, self.peer
        names = config.blob_names(p, peer)
        peer_layout = p.layout(peer)

        self._enter(result, RoundState.RECEIVE)
        pk = self._receive(result, names["pk"], peer_layout.public_key_bytes, exact=True)
        sig = self._receive(result, names["sig"], peer_layout.signature_bytes, exact=peer_layout.signature_fixed)
        msg = self._receive(result, names["msg"], MAX_MESSAGE_BYTES, exact=False)
        ctx = None
        if p.supports_context:
            ctx = self._receive(result, names["ctx"], MAX_CONTEXT_BYTES, exact=False)
        seed = None
        components: Dict[str, bytes] = {}
        if p.seed_published and p.seeded_on(peer):
            try:
                seed = self._receive(result, names["seed"], p.seed_bytes, exact=True)
            except ArtifactUnavailable:
                result.notes.append(f"{names['seed']} absent; key derivation not compared")
            if peer == SUBJECT:
                for name, size in p.secret_key_components:
                    try:
                        components[name] = self._receive(result, names[name], size, exact=True)
                    except ArtifactUnavailable:
                        result.notes.append(f"{names[name]} absent; not compared")

        self._enter(result, RoundState.TRANSLATE)
        msg = t.check_message(msg)
        local_pk = t.public_key(pk, peer, side)
        local_sig = t.signature(sig, peer, side)
        local_ctx = t.context(ctx)
        if seed is not None:
            seed = t.check_seed(seed)
            if p.seed_components:
                self._compare_pub_seed(t.split_seed(seed)["pub_seed"], pk, names["seed"], names["pk"])
            if p.seeded_on(side):
                self._compare_derived(seed, local_pk, names["seed"], names["pk"], result)
        if "pub_seed" in components:
            self._compare_pub_seed(components["pub_seed"], pk, names["pub_seed"], names["pk"])
            result.notes.append(f"{names['pub_seed']} matches {names['pk']}")

        self._enter(result, RoundState.VERIFY)
        if not self._verify(local_pk, msg, local_sig, local_ctx):
            raise CrossVerificationFailed(
                f"{p.mechanism} {side} implementation rejected the {peer} signature"
            )

    def _compare_pub_seed(self, pub_seed: bytes, pk: bytes, source: str, pk_name: str) -> None:
        if self.translator.public_seed(pk, self.peer) != pub_seed:
            raise CrossVerificationFailed(f"{self.params.mechanism}: pub_seed in {pk_name} differs from {source}")

    def _compare_derived(
        self,
        seed: bytes,
        local_pk: bytes,
        seed_name: str,
        pk_name: str,
        result: RoundResult,
    ) -> None:
        if not hasattr(self.provider, "keygen_from_seed"):
            result.notes.append(
                f"{self.params.mechanism} {self.side} provider cannot derive keys from a seed; not compared"
            )
            return
        derived_pk, _ = self._keygen(seed)
        if self.translator.check_public_key(derived_pk, self.side) != local_pk:
            raise CrossVerificationFailed(
                f"{self.params.mechanism}: public key derived from {seed_name} differs from {pk_name}"
            )
        result.notes.append(f"public key derived from {seed_name} matches {pk_name}")


def exchange(
    family: str,
    subject_provider: Any,
    reference_provider: Any,
    channel: Any,
    config: Optional[ExchangeConfig] = None,
    xmss_params: Optional[str] = None,
) -> List[RoundResult]:
    """Run both directions: subject -> reference, then reference -> subject.

    A consumer round only runs when its producer passed. When both sides
    derive keys from a seed, the reference producer re-uses the subject's
    published seed; a reference that generates fresh keys never sees one.
    """
    params = get_params(family, xmss_params)
    translator = get_translator(params)
    config = config or ExchangeConfig()
    subject = ExchangeDriver(subject_provider, channel, SUBJECT, params, translator)
    reference = ExchangeDriver(reference_provider, channel, REFERENCE, params, translator)

    results = [subject.produce(config)]
    if results[-1].passed:
        results.append(reference.consume(config))

    ref_config = config
    if not params.seeded_on(REFERENCE):
        ref_config = replace(config, seed=None, seed_from_peer=False)
    elif config.seed is None and _published(results[0], config.blob_names(params, SUBJECT)["seed"]):
        ref_config = replace(config, seed_from_peer=True)
    results.append(reference.produce(ref_config))
    if results[-1].passed:
        results.append(subject.consume(config))
    return results


def _published(result: RoundResult, name: str) -> bool:
    return result.passed and any(a.name == name for a in result.artifacts)
