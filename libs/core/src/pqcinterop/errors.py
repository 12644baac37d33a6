"""Error kinds raised while exchanging and verifying artifacts.

Every error is terminal for the round that raised it. The exchange driver turns
an ``InteropError`` into a FAIL result and keeps the instance so callers can
report it; nothing here is retried.
"""

from __future__ import annotations

from typing import Optional


class InteropError(Exception):
    """Base exception for all interoperability failures."""

    kind = "InteropError"


class ArtifactUnavailable(InteropError):
    """A named blob is missing or the channel could not read/write it."""

    kind = "ArtifactUnavailable"

    def __init__(self, name: str, reason: str = "not found") -> None:
        self.name = name
        self.reason = reason
        super().__init__(f"artifact {name!r} unavailable: {reason}")


class LengthMismatch(InteropError):
    """Artifact length differs from the declared constant for its format.

    Attributes:
        artifact: Blob or artifact name.
        expected: Declared length (or capacity, when ``at_most`` is set).
        actual: Observed length.
    """

    kind = "LengthMismatch"

    def __init__(
        self,
        artifact: str,
        expected: int,
        actual: int,
        *,
        at_most: bool = False,
        layout: Optional[str] = None,
    ) -> None:
        self.artifact = artifact
        self.expected = expected
        self.actual = actual
        self.at_most = at_most
        self.layout = layout
        bound = "at most " if at_most else ""
        where = f" ({layout})" if layout else ""
        super().__init__(
            f"{artifact}{where}: expected {bound}{expected} bytes, got {actual}"
        )


class TranslationUnsupported(InteropError):
    """Unknown family, parameter set or algorithm identifier."""

    kind = "TranslationUnsupported"


class SelfVerificationFailed(InteropError):
    """Producer's own signature was rejected by its own verify call."""

    kind = "SelfVerificationFailed"


class CrossVerificationFailed(InteropError):
    """Translated artifacts were rejected by the peer implementation."""

    kind = "CrossVerificationFailed"


__all__ = [
    "InteropError",
    "ArtifactUnavailable",
    "LengthMismatch",
    "TranslationUnsupported",
    "SelfVerificationFailed",
    "CrossVerificationFailed",
]
