from __future__ import annotations
"""Shared CLI utilities.

Includes adapter bootstrap, provider caching, channel construction and result
rendering for the exchange commands.
"""

import importlib
import importlib.util
import json
import logging
import pathlib
import sys
import traceback
from typing import Any, Dict, Iterable, List, Optional

import typer

from pqcinterop import registry
from pqcinterop.channel import FileBlobChannel
from pqcinterop.exchange import ExchangeDriver, RoundResult
from pqcinterop.params import get_params

log = logging.getLogger(__name__)

_HERE = pathlib.Path(__file__).resolve()

try:
    _PROJECT_ROOT = next(p for p in _HERE.parents if (p / "libs").exists())
except StopIteration:
    _PROJECT_ROOT = _HERE.parents[0]

_ADAPTER_PATHS = {
    "pqcinterop_liboqs": _PROJECT_ROOT / "libs" / "adapters" / "liboqs" / "src",
    "pqcinterop_pyspx": _PROJECT_ROOT / "libs" / "adapters" / "pyspx" / "src",
    "pqcinterop_dilithium_py": _PROJECT_ROOT / "libs" / "adapters" / "dilithium_py" / "src",
}

_ADAPTER_INSTANCE_CACHE: Dict[str, Any] = {}
_ADAPTERS_LOADED = False


def _load_adapters() -> None:
    global _ADAPTERS_LOADED
    if _ADAPTERS_LOADED:
        return
    for mod, candidate in _ADAPTER_PATHS.items():
        spec = importlib.util.find_spec(mod)
        if spec is None and candidate.exists():
            if str(candidate) not in sys.path:
                sys.path.append(str(candidate))
            spec = importlib.util.find_spec(mod)
        if spec is None:
            log.debug("adapter package %s not installed", mod)
            continue
        try:
            importlib.import_module(mod)
        except Exception as e:
            typer.echo(f"[adapter import error] {mod}: {e}", err=True)
            traceback.print_exc()
    _ADAPTERS_LOADED = True


def get_provider(family: str, side: str, xmss_params: Optional[str] = None) -> Any:
    params = get_params(family, xmss_params)
    # keyed by parameter set so XMSS providers never mix heights
    key = f"{side}:{params.family}:{params.mechanism}"
    provider = _ADAPTER_INSTANCE_CACHE.get(key)
    if provider is not None:
        return provider
    cls = registry.for_side(side).get(params.family)
    provider = cls(params)
    _ADAPTER_INSTANCE_CACHE[key] = provider
    return provider


def reset_adapter_cache(key: Optional[str] = None) -> None:
    """Drop cached provider instances so env-driven overrides take effect."""
    if key is None:
        _ADAPTER_INSTANCE_CACHE.clear()
        return
    _ADAPTER_INSTANCE_CACHE.pop(key, None)


def open_channel(channel_dir: Optional[pathlib.Path]) -> FileBlobChannel:
    return FileBlobChannel(channel_dir)


def build_driver(family: str, side: str, channel: Any, xmss_params: Optional[str] = None) -> ExchangeDriver:
    params = get_params(family, xmss_params)
    return ExchangeDriver(get_provider(params.family, side, xmss_params), channel, side, params)


def to_bytes(text: Optional[str], hex_value: Optional[str], label: str) -> Optional[bytes]:
    if text is not None and hex_value is not None:
        raise typer.BadParameter(f"give either --{label} or --{label}-hex, not both")
    if hex_value is not None:
        try:
            return bytes.fromhex(hex_value)
        except ValueError as exc:
            raise typer.BadParameter(f"--{label}-hex: {exc}") from exc
    if text is not None:
        return text.encode("utf-8")
    return None


def report(results: Iterable[RoundResult], as_json: bool = False) -> bool:
    """Echo per-artifact sizes then one PASS/FAIL line per round."""
    results = list(results)
    if as_json:
        typer.echo(json.dumps([r.to_dict() for r in results], indent=2))
    else:
        for r in results:
            for line in r.lines():
                typer.echo(line)
    return bool(results) and all(r.passed for r in results)


def describe_families() -> List[Dict[str, Any]]:
    from pqcinterop.params import list_families

    rows = []
    for family in list_families():
        params = get_params(family)
        rows.append({
            "family": family,
            "mechanism": params.mechanism,
            "kind": params.kind,
            "context": params.supports_context,
            "seeded": list(params.seeded_sides),
            "subject": family in registry.subjects.list(),
            "reference": family in registry.references.list(),
        })
    return rows
