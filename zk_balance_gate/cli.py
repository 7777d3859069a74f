"""
Command-Line Interface for zk-balance-gate

Verify token-balance proofs from the shell, inspect proof files, and run the
verification HTTP service.
"""

import click
import json
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any, Optional

from zk_balance_gate import __version__, print_disclaimer
from zk_balance_gate.service import build_engine, configure_logging
from zk_balance_gate.verification.exceptions import (
    ConfigurationError,
    InternalVerificationError,
    InvalidInputError,
)
from zk_balance_gate.verification.settings import load_settings
from zk_balance_gate.verification.types import ErrorKind, Proof, PublicSignals

EXIT_VERIFIED = 0
EXIT_NOT_VERIFIED = 1
EXIT_INVALID_INPUT = 2

DISPLAY_WIDTH = 20


def _load_json(path: str) -> Any:
    try:
        return json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        click.echo(click.style(f"✗ Cannot read {path}: {e}", fg="red"), err=True)
        sys.exit(EXIT_INVALID_INPUT)


def _truncate(value: Any) -> Any:
    if isinstance(value, list):
        return [_truncate(v) for v in value]
    text = str(value)
    if len(text) > DISPLAY_WIDTH:
        return text[:DISPLAY_WIDTH] + "..."
    return text


def format_proof_for_display(proof: Proof) -> dict:
    """Proof JSON with every coordinate cut to 20 characters."""
    raw = proof.to_json()
    return {
        "pi_a": _truncate(raw["pi_a"]),
        "pi_b": _truncate(raw["pi_b"]),
        "pi_c": _truncate(raw["pi_c"]),
        "protocol": raw["protocol"],
        "curve": raw["curve"],
    }


def _request_payload(
    document: Any, public: Optional[str], vkey: Optional[str]
) -> dict:
    # A bare snarkjs proof.json has pi_a at the top level.
    if isinstance(document, dict) and "pi_a" in document:
        payload: dict = {"proof": document}
    elif isinstance(document, dict):
        payload = dict(document)
    else:
        click.echo(click.style("✗ Proof file must hold a JSON object", fg="red"), err=True)
        sys.exit(EXIT_INVALID_INPUT)
    if public is not None:
        payload["publicSignals"] = _load_json(public)
    if vkey is not None:
        payload["vkey"] = _load_json(vkey)
    return payload


@click.group()
@click.version_option(version=__version__)
def main():
    """
    zk-balance-gate - Groth16 token-balance proof verification

    Decides whether a proof that a committed balance meets a public
    threshold is accepted, cryptographically or on structure alone.

    ⚠️  DRAFT - REVIEW THE ACCEPTANCE POLICY BEFORE PRODUCTION USE
    """
    pass


@main.command()
@click.argument("proof_json", type=click.Path(exists=True, dir_okay=False))
@click.option(
    '--public',
    type=click.Path(exists=True, dir_okay=False),
    help='public.json with the signals (when PROOF_JSON is a bare proof)'
)
@click.option(
    '--vkey',
    type=click.Path(exists=True, dir_okay=False),
    help='verification_key.json to check against locally'
)
@click.option(
    '--verifier-url',
    type=str,
    help='Delegate verifier endpoint (overrides VERCEL_ZK_VERIFIER_URL)'
)
@click.option(
    '--policy',
    type=click.Choice(['strict', 'lenient'], case_sensitive=False),
    help='Acceptance policy when the delegate rejects a proof'
)
@click.option(
    '--config',
    type=click.Path(exists=True, dir_okay=False),
    help='YAML settings file'
)
@click.option('--json', 'as_json', is_flag=True, help='Print the outcome as JSON')
@click.option('--verbose', is_flag=True, help='Enable verbose output')
def verify(proof_json, public, vkey, verifier_url, policy, config, as_json, verbose):
    """
    Verify a proof once and exit 0 (verified), 1 (not verified) or 2 (invalid input).

    Examples:

        # Full request file {proof, publicSignals, vkey?}
        zk-balance-gate verify request.json

        # snarkjs output files
        zk-balance-gate verify proof.json --public public.json --vkey verification_key.json
    """
    import trio

    if verbose:
        configure_logging(verbose=True)

    payload = _request_payload(_load_json(proof_json), public, vkey)

    try:
        settings = load_settings(config)
    except ConfigurationError as e:
        click.echo(click.style(f"✗ Configuration error: {e}", fg="red"), err=True)
        sys.exit(EXIT_INVALID_INPUT)
    if verifier_url:
        settings = replace(settings, verifier_url=verifier_url)
    if policy:
        settings = replace(settings, policy=policy.lower())

    engine = build_engine(settings)

    try:
        outcome = trio.run(engine.verify_payload, payload)
    except InternalVerificationError as e:
        click.echo(click.style(f"✗ Internal error: {e}", fg="red"), err=True)
        sys.exit(EXIT_NOT_VERIFIED)

    if as_json:
        click.echo(json.dumps(outcome.to_json(), indent=2))
    elif outcome.verified and not outcome.degraded:
        click.echo(click.style("✓ Proof verified cryptographically", fg="green"))
    elif outcome.verified:
        click.echo(click.style(f"⚠️  Accepted on structure only: {outcome.note}", fg="yellow"))
    else:
        click.echo(click.style(f"✗ {outcome.error}", fg="red"))

    if not as_json and outcome.public_signals:
        for name, value in outcome.public_signals.items():
            click.echo(f"  • {name}: {value}")

    if outcome.verified:
        sys.exit(EXIT_VERIFIED)
    if outcome.error_kind is ErrorKind.INVALID_INPUT:
        sys.exit(EXIT_INVALID_INPUT)
    sys.exit(EXIT_NOT_VERIFIED)


@main.command()
@click.argument("proof_json", type=click.Path(exists=True, dir_okay=False))
@click.option(
    '--public',
    type=click.Path(exists=True, dir_okay=False),
    help='public.json with the signals (when PROOF_JSON is a bare proof)'
)
def inspect(proof_json, public):
    """Show a proof with truncated coordinates and its labelled public signals."""
    payload = _request_payload(_load_json(proof_json), public, None)
    try:
        proof = Proof.parse(payload.get("proof"))
    except InvalidInputError as e:
        click.echo(click.style(f"✗ {e}: {e.detail}", fg="red"), err=True)
        sys.exit(EXIT_INVALID_INPUT)

    click.echo(click.style("Groth16 proof", fg="cyan", bold=True))
    click.echo(json.dumps(format_proof_for_display(proof), indent=2))

    if payload.get("publicSignals") is not None:
        try:
            signals = PublicSignals.parse(payload["publicSignals"])
        except InvalidInputError as e:
            click.echo(click.style(f"✗ {e}: {e.detail}", fg="red"), err=True)
            sys.exit(EXIT_INVALID_INPUT)
        click.echo(click.style("\nPublic signals", fg="cyan", bold=True))
        for name, value in signals.labelled().items():
            click.echo(f"  • {name}: {value}")
        extra = len(signals) - signals.circuit.min_signal_count
        if extra > 0:
            click.echo(f"  • ({extra} additional signal(s) ignored)")


@main.command()
@click.option('--host', type=str, help='Bind address (default: settings or 127.0.0.1)')
@click.option('--port', type=int, help='Bind port (default: settings or 8000)')
@click.option(
    '--config',
    type=click.Path(exists=True, dir_okay=False),
    help='YAML settings file'
)
@click.option('--verbose', is_flag=True, help='Enable verbose output')
def serve(host, port, config, verbose):
    """
    Run the verification HTTP service on trio (Hypercorn).

    Examples:

        SUPABASE_URL=https://example.supabase.co zk-balance-gate serve --port 8080
    """
    import trio
    from hypercorn.config import Config
    from hypercorn.trio import serve as hypercorn_serve

    from zk_balance_gate.network.verifyhttp.app import create_app

    configure_logging(verbose=verbose)

    try:
        settings = load_settings(config)
    except ConfigurationError as e:
        click.echo(click.style(f"✗ Configuration error: {e}", fg="red"), err=True)
        sys.exit(EXIT_INVALID_INPUT)

    hypercorn_config = Config()
    hypercorn_config.bind = [f"{host or settings.host}:{port or settings.port}"]

    click.echo(click.style("zk-balance-gate verification service", fg="cyan", bold=True))
    click.echo(f"Listening on http://{hypercorn_config.bind[0]}")

    app = create_app(build_engine(settings))
    trio.run(hypercorn_serve, app, hypercorn_config)


@main.command()
def version():
    """Show version and disclaimer information."""
    click.echo(f"\nzk-balance-gate v{__version__}")
    click.echo("Draft - review the acceptance policy before production use\n")
    print_disclaimer()


if __name__ == "__main__":
    main()
