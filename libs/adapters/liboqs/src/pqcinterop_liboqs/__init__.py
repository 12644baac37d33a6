"""Adapter package for liboqs-backed reference implementations.

Importing the package registers the adapters. When python-oqs/liboqs cannot
be imported nothing is registered: a verifier must never stand in a provider
that accepts everything.
"""

import warnings

from ._util import try_import_oqs

_available = try_import_oqs() is not None

if _available:
    from . import sig_adapters as _sig_adapters  # noqa: F401
else:  # pragma: no cover - depends on the local liboqs build
    warnings.warn("pqcinterop_liboqs disabled: python-oqs/liboqs is not importable")

__all__ = ["_available"]
