from __future__ import annotations

import warnings

_available = False

try:
    import dilithium_py  # noqa: F401
except Exception as exc:  # pragma: no cover - best effort message
    warnings.warn(f"pqcinterop_dilithium_py disabled: {exc}")
else:
    from . import sig as _sig  # noqa: F401
    _available = True

__all__ = ["_available"]
