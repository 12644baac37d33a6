from __future__ import annotations
"""PySPX (SPHINCS+ reference code) module selection."""
import importlib
import os
from types import ModuleType
from typing import Optional, Sequence

import pyspx  # noqa: F401  # fail at import when PySPX is missing

# PySPX < 0.5 builds the robust parameter sets as ``shake256_256s``; 0.5 and
# later only ship the simple variants, named ``shake_256s``.
SPHINCS_ROBUST_MODULES = ("shake256_256s",)
SPHINCS_SIMPLE_MODULES = ("shake_256s",)


def resolve_module(env_var: str, candidates: Sequence[str]) -> Optional[ModuleType]:
    order: list[str] = []
    env_val = os.getenv(env_var)
    if env_val:
        order.append(env_val)
    order += [c for c in candidates if c != env_val]
    for name in order:
        try:
            return importlib.import_module(f"pyspx.{name}")
        except ImportError:
            continue
    return None


def short_name(module: ModuleType) -> str:
    return module.__name__.rsplit(".", 1)[-1]
