from __future__ import annotations

import warnings

_available = False

try:
    from . import _core  # noqa: F401
except Exception as exc:  # pragma: no cover - best effort message
    warnings.warn(f"pqcinterop_pyspx disabled: {exc}")
else:
    from . import sig as _sig  # noqa: F401
    _available = True

__all__ = ["_available"]
