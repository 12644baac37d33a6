from __future__ import annotations

import os

import pytest

from pqcinterop.errors import LengthMismatch, TranslationUnsupported
from pqcinterop.params import (
    MAX_MESSAGE_BYTES,
    REFERENCE,
    SUBJECT,
    FamilyParams,
    FormatLayout,
    get_params,
)
from pqcinterop.translate import (
    FormatTranslator,
    SeedTranslator,
    XmssTranslator,
    get_translator,
)


def test_get_translator_dispatches_by_family_kind() -> None:
    assert type(get_translator(get_params("dilithium"))) is FormatTranslator
    assert type(get_translator(get_params("mldsa87"))) is FormatTranslator
    assert isinstance(get_translator(get_params("sphincs")), SeedTranslator)
    assert isinstance(get_translator(get_params("xmss")), XmssTranslator)


@pytest.mark.parametrize("family", ["dilithium", "mldsa87", "sphincs", "xmss"])
def test_public_key_round_trip(family: str) -> None:
    params = get_params(family)
    t = get_translator(params)
    pk = os.urandom(params.subject.public_key_bytes)
    there = t.public_key(pk, SUBJECT, REFERENCE)
    assert len(there) == params.reference.public_key_bytes
    assert t.public_key(there, REFERENCE, SUBJECT) == pk


@pytest.mark.parametrize("family", ["dilithium", "mldsa87", "sphincs", "xmss"])
def test_signature_round_trip_is_exact(family: str) -> None:
    params = get_params(family)
    t = get_translator(params)
    sig = os.urandom(params.subject.signature_bytes)
    assert t.signature(t.signature(sig, SUBJECT, REFERENCE), REFERENCE, SUBJECT) == sig


def test_lattice_translation_is_identity() -> None:
    t = get_translator(get_params("mldsa87"))
    pk = bytes(range(256)) * 10 + bytes(32)
    assert t.public_key(pk, SUBJECT, REFERENCE) == pk


def test_xmss_public_key_gets_big_endian_oid_prefix() -> None:
    t = get_translator(get_params("xmss", "XMSS-SHA2_10_256"))
    pk = os.urandom(64)
    assert t.public_key(pk, SUBJECT, REFERENCE) == bytes([0x00, 0x00, 0x00, 0x01]) + pk


def test_xmss_prefix_follows_parameter_set() -> None:
    t = get_translator(get_params("xmss", "XMSS-SHAKE_16_256"))
    assert t.to_reference_public_key(bytes(64))[:4] == b"\x00\x00\x00\x08"


def test_xmss_short_public_key_is_rejected_not_padded() -> None:
    t = get_translator(get_params("xmss"))
    with pytest.raises(LengthMismatch) as info:
        t.public_key(bytes(63), SUBJECT, REFERENCE)
    assert info.value.expected == 64
    assert info.value.actual == 63


def test_xmss_reference_key_with_other_oid_is_unsupported() -> None:
    t = get_translator(get_params("xmss", "XMSS-SHA2_10_256"))
    other = (2).to_bytes(4, "big") + bytes(64)
    with pytest.raises(TranslationUnsupported, match="XMSS-SHA2_16_256"):
        t.public_key(other, REFERENCE, SUBJECT)


def test_xmss_unknown_oid_is_unsupported() -> None:
    t = get_translator(get_params("xmss"))
    with pytest.raises(TranslationUnsupported, match="0x000000ff"):
        t.to_subject_public_key((0xFF).to_bytes(4, "big") + bytes(64))


def test_signed_message_concatenates_without_separator() -> None:
    t = get_translator(get_params("xmss"))
    sig = os.urandom(2500)
    msg = b"test"
    sm = t.signed_message(sig, msg)
    assert len(sm) == len(sig) + len(msg)
    assert sm == sig + msg
    assert t.split_signed_message(sm) == (sig, msg)


def test_signed_message_keeps_empty_message() -> None:
    t = get_translator(get_params("xmss"))
    sig = os.urandom(2500)
    assert t.split_signed_message(t.signed_message(sig, b"")) == (sig, b"")


def test_split_rejects_buffer_shorter_than_signature() -> None:
    t = get_translator(get_params("xmss"))
    with pytest.raises(LengthMismatch):
        t.split_signed_message(bytes(2499))


def test_signature_length_mismatch_reports_expected_and_actual() -> None:
    t = get_translator(get_params("dilithium"))
    with pytest.raises(LengthMismatch, match="expected 4595 bytes, got 4594"):
        t.signature(bytes(4594), SUBJECT, REFERENCE)


def test_message_capacity() -> None:
    t = get_translator(get_params("dilithium"))
    assert t.check_message(b"") == b""
    assert t.check_message(bytes(MAX_MESSAGE_BYTES)) == bytes(MAX_MESSAGE_BYTES)
    with pytest.raises(LengthMismatch):
        t.check_message(bytes(MAX_MESSAGE_BYTES + 1))


def test_context_rules() -> None:
    mldsa = get_translator(get_params("mldsa87"))
    assert mldsa.context(None) == b""
    assert mldsa.context(b"ctx") == b"ctx"
    with pytest.raises(LengthMismatch):
        mldsa.context(bytes(256))

    dilithium = get_translator(get_params("dilithium"))
    assert dilithium.context(None) is None
    with pytest.raises(TranslationUnsupported):
        dilithium.context(b"")


def test_sphincs_seed_components_in_declared_order() -> None:
    t = get_translator(get_params("sphincs"))
    seed = bytes(range(96))
    parts = t.split_seed(seed)
    assert list(parts) == ["sk_seed", "sk_prf", "pub_seed"]
    assert parts["sk_seed"] == bytes(range(32))
    assert parts["pub_seed"] == bytes(range(64, 96))
    assert b"".join(parts.values()) == seed


def test_sphincs_seed_length_is_checked() -> None:
    t = get_translator(get_params("sphincs"))
    with pytest.raises(LengthMismatch):
        t.split_seed(bytes(95))


def test_public_seed_location_per_layout() -> None:
    sphincs = get_translator(get_params("sphincs"))
    assert sphincs.public_seed(bytes(range(64)), REFERENCE) == bytes(range(32))
    with pytest.raises(LengthMismatch):
        sphincs.public_seed(bytes(63), SUBJECT)

    xmss = get_translator(get_params("xmss"))
    root, pub_seed = bytes([1]) * 32, bytes([2]) * 32
    assert xmss.public_seed(root + pub_seed, SUBJECT) == pub_seed
    assert xmss.public_seed(xmss.oid_prefix + root + pub_seed, REFERENCE) == pub_seed


def test_lattice_seed_has_no_components() -> None:
    t = get_translator(get_params("mldsa87"))
    assert t.check_seed(bytes(32)) == bytes(32)
    with pytest.raises(LengthMismatch):
        t.check_seed(bytes(48))
    with pytest.raises(TranslationUnsupported):
        t.split_seed(bytes(32))
    with pytest.raises(TranslationUnsupported):
        t.public_seed(bytes(2592), SUBJECT)
    with pytest.raises(TranslationUnsupported):
        t.seed_components(bytes(4896))


def test_seed_is_unsupported_without_seed_size() -> None:
    layout = FormatLayout(public_key_bytes=1793, signature_bytes=1462, signature_fixed=False)
    params = FamilyParams("falcon", "lattice", "Falcon-1024", layout, layout)
    with pytest.raises(TranslationUnsupported):
        get_translator(params).check_seed(bytes(48))


def test_short_variable_length_signature_is_preserved() -> None:
    layout = FormatLayout(public_key_bytes=1793, signature_bytes=1462, signature_fixed=False)
    t = get_translator(FamilyParams("falcon", "lattice", "Falcon-1024", layout, layout))
    sig = bytes(range(200)) * 6
    assert t.signature(sig, SUBJECT, REFERENCE) == sig
    assert t.check_signature(bytes(1462), REFERENCE) == bytes(1462)
    with pytest.raises(LengthMismatch) as info:
        t.check_signature(b"", SUBJECT)
    assert info.value.actual == 0
    with pytest.raises(LengthMismatch):
        t.signature(bytes(1463), SUBJECT, REFERENCE)


def test_xmss_seed_components_from_subject_secret_key() -> None:
    t = get_translator(get_params("xmss"))
    idx = (7).to_bytes(4, "big")
    sk_seed, sk_prf, pub_seed, root = (bytes([i]) * 32 for i in (1, 2, 3, 4))
    parts = t.seed_components(idx + sk_seed + sk_prf + pub_seed + root)
    assert parts == {"sk_seed": sk_seed, "sk_prf": sk_prf, "pub_seed": pub_seed}
    with pytest.raises(LengthMismatch):
        t.seed_components(bytes(131))


def test_unknown_side_is_unsupported() -> None:
    t = get_translator(get_params("dilithium"))
    with pytest.raises(TranslationUnsupported):
        t.public_key(bytes(2592), "peer", SUBJECT)
