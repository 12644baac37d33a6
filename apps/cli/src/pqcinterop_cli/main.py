from __future__ import annotations
import logging
from pathlib import Path
from typing import List, Optional

import typer

from pqcinterop.errors import InteropError
from pqcinterop.exchange import ExchangeConfig, RoundResult, exchange as run_exchange
from pqcinterop.params import REFERENCE, SIDES, SUBJECT, get_params
from .common import (
    _load_adapters,
    build_driver,
    describe_families,
    get_provider,
    open_channel,
    report,
    to_bytes,
)

app = typer.Typer(add_completion=False, help="PQC signature interoperability verifier")

ChannelDir = typer.Option(
    None,
    "--channel-dir",
    envvar="PQCINTEROP_CHANNEL_DIR",
    help="Directory holding <name>.bin blobs (defaults to the system temp dir).",
)
XmssParams = typer.Option(
    None,
    "--xmss-params",
    envvar="PQCINTEROP_XMSS_PARAMS",
    help="XMSS parameter set, e.g. XMSS-SHA2_10_256.",
)


@app.callback()
def _main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging.")) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _check_side(side: str) -> str:
    if side not in SIDES:
        raise typer.BadParameter(f"side must be one of {', '.join(SIDES)}")
    return side


def _config(
    message: Optional[str],
    message_hex: Optional[str],
    context: Optional[str],
    context_hex: Optional[str],
    seed_hex: Optional[str] = None,
    seed_from_peer: bool = False,
) -> ExchangeConfig:
    return ExchangeConfig(
        message=to_bytes(message, message_hex, "message"),
        context=to_bytes(context, context_hex, "context"),
        seed=to_bytes(None, seed_hex, "seed"),
        seed_from_peer=seed_from_peer,
    )


def _finish(results: List[RoundResult], as_json: bool) -> None:
    ok = report(results, as_json=as_json)
    raise typer.Exit(0 if ok else 1)


def _setup_failed(exc: Exception) -> None:
    kind = getattr(exc, "kind", type(exc).__name__)
    typer.echo(f"FAIL: {kind}: {exc}", err=True)
    raise typer.Exit(1)


@app.command("list-families")
def list_families() -> None:
    """List families with their parameter set and registered providers."""
    _load_adapters()
    for row in describe_families():
        flags = []
        if row["context"]:
            flags.append("context")
        if row["seeded"]:
            flags.append("seeded: " + "+".join(row["seeded"]))
        sides = [s for s in SIDES if row[s]]
        typer.echo(
            f"- {row['family']}: {row['mechanism']} [{row['kind']}]"
            f"{' (' + ', '.join(flags) + ')' if flags else ''}"
            f" providers: {', '.join(sides) if sides else 'none'}"
        )


@app.command()
def produce(
    family: str,
    side: str = typer.Option(SUBJECT, help="Which implementation produces: subject or reference."),
    message: Optional[str] = typer.Option(None, help="Message text (default: family message)."),
    message_hex: Optional[str] = typer.Option(None, help="Message as hex."),
    context: Optional[str] = typer.Option(None, help="Context text for families that support one."),
    context_hex: Optional[str] = typer.Option(None, help="Context as hex."),
    seed_hex: Optional[str] = typer.Option(None, help="Key-generation seed as hex (seeded families)."),
    seed_from_peer: bool = typer.Option(False, help="Derive keys from the seed the other side published."),
    channel_dir: Optional[Path] = ChannelDir,
    xmss_params: Optional[str] = XmssParams,
    as_json: bool = typer.Option(False, "--json", help="Print the round result as JSON."),
) -> None:
    """Generate keys, sign, self-verify and publish artifacts."""
    _load_adapters()
    try:
        driver = build_driver(family, _check_side(side), open_channel(channel_dir), xmss_params)
        config = _config(message, message_hex, context, context_hex, seed_hex, seed_from_peer)
    except (InteropError, RuntimeError) as exc:
        _setup_failed(exc)
    _finish([driver.produce(config)], as_json)


@app.command()
def consume(
    family: str,
    side: str = typer.Option(REFERENCE, help="Which implementation verifies: subject or reference."),
    channel_dir: Optional[Path] = ChannelDir,
    xmss_params: Optional[str] = XmssParams,
    as_json: bool = typer.Option(False, "--json", help="Print the round result as JSON."),
) -> None:
    """Read the other side's artifacts, translate them and verify."""
    _load_adapters()
    try:
        driver = build_driver(family, _check_side(side), open_channel(channel_dir), xmss_params)
    except (InteropError, RuntimeError) as exc:
        _setup_failed(exc)
    _finish([driver.consume(ExchangeConfig())], as_json)


@app.command()
def exchange(
    family: str,
    message: Optional[str] = typer.Option(None, help="Message text (default: family message)."),
    message_hex: Optional[str] = typer.Option(None, help="Message as hex."),
    context: Optional[str] = typer.Option(None, help="Context text for families that support one."),
    context_hex: Optional[str] = typer.Option(None, help="Context as hex."),
    seed_hex: Optional[str] = typer.Option(None, help="Key-generation seed as hex (seeded families)."),
    channel_dir: Optional[Path] = ChannelDir,
    xmss_params: Optional[str] = XmssParams,
    as_json: bool = typer.Option(False, "--json", help="Print the round results as JSON."),
) -> None:
    """Run both directions: subject -> reference, then reference -> subject."""
    _load_adapters()
    try:
        params = get_params(family, xmss_params)
        subject = get_provider(params.family, SUBJECT, xmss_params)
        reference = get_provider(params.family, REFERENCE, xmss_params)
        config = _config(message, message_hex, context, context_hex, seed_hex)
    except (InteropError, RuntimeError) as exc:
        _setup_failed(exc)
    results = run_exchange(
        params.family, subject, reference, open_channel(channel_dir), config, xmss_params=xmss_params
    )
    _finish(results, as_json)


@app.command(name="probe-oqs")
def probe_oqs() -> None:
    """Probe the liboqs signature mechanisms used as references."""
    try:
        import oqs  # type: ignore
    except Exception as e:
        typer.echo(f"oqs import failed: {e}")
        raise typer.Exit(code=1)
    from pqcinterop.params import XMSS_PARAMETER_SETS

    sig_candidates = ["Dilithium5", "ML-DSA-87"]
    found_sig = []
    for name in sig_candidates:
        try:
            with oqs.Signature(name):
                found_sig.append(name)
        except Exception:
            pass
    found_st_sig = []
    for p in XMSS_PARAMETER_SETS.values():
        try:
            with oqs.StatefulSignature(p.name):
                found_st_sig.append(p.name)
        except Exception:
            pass
    typer.echo("SIG mechanisms:")
    for n in found_sig:
        typer.echo(f"- {n}")
    typer.echo("Stateful SIG mechanisms:")
    for n in found_st_sig:
        typer.echo(f"- {n}")


def app_main():
    app()

if __name__ == "__main__":
    app_main()
