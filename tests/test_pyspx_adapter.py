from __future__ import annotations

import importlib
import sys
import types

import pytest

pytest.importorskip("pyspx")

from pqcinterop.channel import MemoryBlobChannel  # noqa: E402
from pqcinterop.errors import TranslationUnsupported  # noqa: E402
from pqcinterop.exchange import ExchangeConfig, exchange  # noqa: E402


@pytest.fixture
def sig_module(registry_snapshot):
    sys.modules.pop("pqcinterop_pyspx.sig", None)
    return importlib.import_module("pqcinterop_pyspx.sig")


@pytest.fixture
def sphincs(sig_module):
    pytest.importorskip("pyspx.shake256_256s")
    return sig_module.SphincsPlus()


def test_keys_are_a_function_of_the_seed(sphincs) -> None:
    seed = bytes(range(96))
    pk, sk = sphincs.keygen_from_seed(seed)
    assert len(pk) == 64
    assert len(sk) == 128
    assert sphincs.keygen_from_seed(seed) == (pk, sk)
    # pk = pub_seed | root, pub_seed being the last seed component
    assert pk[:32] == seed[64:]
    assert sk[:64] == seed[:64]


def test_robust_module_is_selected(sphincs) -> None:
    assert sphincs.spx.__name__ == "pyspx.shake256_256s"
    assert sphincs.params.mechanism == "SPHINCS+-SHAKE-256s-robust"


def test_sign_and_verify(sphincs) -> None:
    pk, sk = sphincs.keygen_from_seed(bytes(96))
    sig = sphincs.sign(sk, b"test")
    assert len(sig) == 29792
    assert sphincs.verify(pk, b"test", sig)
    assert not sphincs.verify(pk, b"tesT", sig)


def test_unseeded_keygen_and_context_are_unsupported(sphincs) -> None:
    with pytest.raises(TranslationUnsupported):
        sphincs.keygen()
    with pytest.raises(TranslationUnsupported):
        sphincs.sign(bytes(128), b"test", b"ctx")


def test_simple_variant_is_refused(sig_module, monkeypatch: pytest.MonkeyPatch) -> None:
    simple = types.ModuleType("pyspx.shake_256s")
    monkeypatch.setattr(sig_module, "resolve_module", lambda env_var, candidates: simple)
    with pytest.raises(TranslationUnsupported, match="simple variant"):
        sig_module.SphincsPlus()


def test_missing_robust_module_is_reported(sig_module, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(sig_module, "resolve_module", lambda env_var, candidates: None)
    with pytest.raises(RuntimeError, match="SPHINCS\\+-SHAKE-256s-robust"):
        sig_module.SphincsPlus()


def test_module_override_from_environment(registry_snapshot, monkeypatch: pytest.MonkeyPatch) -> None:
    from pqcinterop_pyspx import _core

    pytest.importorskip("pyspx.shake256_256s")
    monkeypatch.setenv("PQCINTEROP_SPHINCS_MODULE", "does_not_exist")
    module = _core.resolve_module("PQCINTEROP_SPHINCS_MODULE", _core.SPHINCS_ROBUST_MODULES)
    assert module is not None
    assert _core.short_name(module) in _core.SPHINCS_ROBUST_MODULES
    assert _core.resolve_module("PQCINTEROP_SPHINCS_MODULE", ()) is None


def test_sphincs_exchange_with_pyspx_on_both_sides(sphincs) -> None:
    channel = MemoryBlobChannel()
    results = exchange("sphincs", sphincs, sphincs, channel, ExchangeConfig(message=b"test"))
    assert all(r.passed for r in results), [r.lines() for r in results]
    assert channel.blobs["ref_sphincs_pk"] == channel.blobs["sphincs_pk"]
