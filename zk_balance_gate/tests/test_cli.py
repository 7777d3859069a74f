"""CLI tests for zk-balance-gate commands."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from zk_balance_gate import cli
from zk_balance_gate.verification.settings import ENV_VARS
from zk_balance_gate.verification.tests.groth16_fixtures import (
    COMMITMENT,
    THRESHOLD,
    valid_triple,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)


def _write(tmp_path: Path, name: str, payload) -> str:
    path = tmp_path / name
    path.write_text(json.dumps(payload), encoding="utf-8")
    return str(path)


def test_help_lists_commands() -> None:
    result = CliRunner().invoke(cli.main, ["--help"])
    assert result.exit_code == 0
    for command in ("verify", "inspect", "serve", "version"):
        assert command in result.output


def test_serve_help() -> None:
    result = CliRunner().invoke(cli.main, ["serve", "--help"])
    assert result.exit_code == 0


def test_version_command() -> None:
    result = CliRunner().invoke(cli.main, ["version"])
    assert result.exit_code == 0
    assert "zk-balance-gate v0.1.0" in result.output


def test_verify_structural_only_exit_zero(tmp_path: Path) -> None:
    _, proof, signals = valid_triple()
    path = _write(tmp_path, "request.json", {"proof": proof, "publicSignals": signals})

    result = CliRunner().invoke(cli.main, ["verify", path, "--json"])

    assert result.exit_code == 0
    body = json.loads(result.output[result.output.index("{"):])
    assert body["mode"] == "structural_only"
    assert body["publicSignals"] == {"threshold": THRESHOLD, "commitment": COMMITMENT}


def test_verify_bare_proof_with_public_file(tmp_path: Path) -> None:
    _, proof, signals = valid_triple()
    proof_path = _write(tmp_path, "proof.json", proof)
    public_path = _write(tmp_path, "public.json", signals)

    result = CliRunner().invoke(cli.main, ["verify", proof_path, "--public", public_path])

    assert result.exit_code == 0
    assert "Accepted on structure only" in result.output
    assert f"threshold: {THRESHOLD}" in result.output


def test_verify_invalid_structure_exit_two(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        "request.json",
        {"proof": {"pi_a": [], "pi_b": [], "pi_c": []}, "publicSignals": ["1", "2"]},
    )
    result = CliRunner().invoke(cli.main, ["verify", path])
    assert result.exit_code == 2
    assert "Invalid proof structure" in result.output


def test_verify_unreadable_json_exit_two(tmp_path: Path) -> None:
    path = tmp_path / "broken.json"
    path.write_text("{", encoding="utf-8")
    result = CliRunner().invoke(cli.main, ["verify", str(path)])
    assert result.exit_code == 2


def test_verify_bad_policy_env_exit_two(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _, proof, signals = valid_triple()
    path = _write(tmp_path, "request.json", {"proof": proof, "publicSignals": signals})
    monkeypatch.setenv("ZK_VERIFY_POLICY", "permissive")

    result = CliRunner().invoke(cli.main, ["verify", path])

    assert result.exit_code == 2


@pytest.mark.slow
def test_verify_with_vkey_exit_zero(tmp_path: Path) -> None:
    vkey, proof, signals = valid_triple()
    proof_path = _write(tmp_path, "proof.json", proof)
    public_path = _write(tmp_path, "public.json", signals)
    vkey_path = _write(tmp_path, "verification_key.json", vkey)

    result = CliRunner().invoke(
        cli.main, ["verify", proof_path, "--public", public_path, "--vkey", vkey_path]
    )

    assert result.exit_code == 0
    assert "verified cryptographically" in result.output


@pytest.mark.slow
def test_verify_tampered_signals_exit_one(tmp_path: Path) -> None:
    vkey, proof, _ = valid_triple()
    path = _write(
        tmp_path,
        "request.json",
        {"proof": proof, "publicSignals": ["1", COMMITMENT], "vkey": vkey},
    )
    result = CliRunner().invoke(cli.main, ["verify", path])
    assert result.exit_code == 1
    assert "Invalid zero-knowledge proof" in result.output


def test_inspect_truncates_coordinates(tmp_path: Path) -> None:
    _, proof, signals = valid_triple()
    path = _write(tmp_path, "request.json", {"proof": proof, "publicSignals": signals})

    result = CliRunner().invoke(cli.main, ["inspect", path])

    assert result.exit_code == 0
    assert proof["pi_a"][0][:20] + "..." in result.output
    assert proof["pi_a"][0] not in result.output
    assert f"commitment: {COMMITMENT}" in result.output


def test_format_proof_for_display_keeps_short_values() -> None:
    _, proof, _ = valid_triple()
    shown = cli.format_proof_for_display(cli.Proof.parse(proof))
    assert shown["pi_a"][2] == "1"
    assert shown["pi_b"][2] == ["1", "0"]
    assert all(len(v) <= 23 for v in shown["pi_a"])
