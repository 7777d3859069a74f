"""Unit tests for the tokenBalance circuit contract."""

from __future__ import annotations

import pytest

from zk_balance_gate.verification.circuit import (
    CIRCUIT_REGISTRY,
    TOKEN_BALANCE_CIRCUIT,
    get_circuit,
)
from zk_balance_gate.verification.exceptions import InvalidInputError


def test_layout_is_threshold_then_commitment() -> None:
    assert TOKEN_BALANCE_CIRCUIT.public_signals == ("threshold", "commitment")
    assert TOKEN_BALANCE_CIRCUIT.signal_index("threshold") == 0
    assert TOKEN_BALANCE_CIRCUIT.signal_index("commitment") == 1
    assert TOKEN_BALANCE_CIRCUIT.min_signal_count == 2
    assert TOKEN_BALANCE_CIRCUIT.comparator_bits == 64


def test_key_id_includes_version() -> None:
    assert TOKEN_BALANCE_CIRCUIT.key_id == "tokenBalance@v1"
    assert CIRCUIT_REGISTRY["tokenBalance@v1"] is TOKEN_BALANCE_CIRCUIT


def test_label_ignores_extra_signals() -> None:
    labelled = TOKEN_BALANCE_CIRCUIT.label(["10000", "42", "7", "8"])
    assert labelled == {"threshold": "10000", "commitment": "42"}


def test_label_rejects_short_signals() -> None:
    with pytest.raises(ValueError, match="at least 2"):
        TOKEN_BALANCE_CIRCUIT.label(["10000"])


def test_unknown_signal_name_raises_key_error() -> None:
    with pytest.raises(KeyError):
        TOKEN_BALANCE_CIRCUIT.signal_index("balance")


@pytest.mark.parametrize("circuit_id", [None, "", "tokenBalance", "tokenBalance@v1"])
def test_get_circuit_resolves_known_ids(circuit_id) -> None:
    assert get_circuit(circuit_id) is TOKEN_BALANCE_CIRCUIT


@pytest.mark.parametrize("circuit_id", ["tokenBalance@v9", "membership", 3])
def test_get_circuit_rejects_unknown_ids(circuit_id) -> None:
    with pytest.raises(InvalidInputError, match="Unknown circuit"):
        get_circuit(circuit_id)
