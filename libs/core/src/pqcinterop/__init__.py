from .interfaces import Signature, SeededSignature, SignedMessageOpener, BlobChannel
from .registry import subjects, references
from .errors import (
    InteropError,
    ArtifactUnavailable,
    LengthMismatch,
    TranslationUnsupported,
    SelfVerificationFailed,
    CrossVerificationFailed,
)
from .params import SUBJECT, REFERENCE, FamilyParams, get_params, list_families
from .translate import get_translator
from .channel import FileBlobChannel, MemoryBlobChannel
from .exchange import ExchangeConfig, ExchangeDriver, RoundResult, RoundState, exchange

__all__ = [
    "Signature",
    "SeededSignature",
    "SignedMessageOpener",
    "BlobChannel",
    "subjects",
    "references",
    "InteropError",
    "ArtifactUnavailable",
    "LengthMismatch",
    "TranslationUnsupported",
    "SelfVerificationFailed",
    "CrossVerificationFailed",
    "SUBJECT",
    "REFERENCE",
    "FamilyParams",
    "get_params",
    "list_families",
    "get_translator",
    "FileBlobChannel",
    "MemoryBlobChannel",
    "ExchangeConfig",
    "ExchangeDriver",
    "RoundResult",
    "RoundState",
    "exchange",
]
