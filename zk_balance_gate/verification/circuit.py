"""
Circuit contract for the tokenBalance threshold circuit.

The circuit takes a private ``actualBalance`` and private ``salt`` and the
public ``threshold`` and ``commitment``. It enforces

    commitment == Poseidon(actualBalance, salt)
    actualBalance >= threshold        (64-bit comparator)

and asserts ``valid == 1``. Only threshold and commitment are public, in that
order. Every other module reads the signal layout from here.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Mapping, Sequence

from .exceptions import InvalidInputError


@dataclass(frozen=True)
class CircuitContract:
    """
    Fixed public-signal layout of one circuit version.

    Attributes:
        circuit_id: Circuit name (matches the compiled .circom artifact)
        version: Layout version, bumped on any change to public signals
        public_signals: Public signal names in circuit order
        comparator_bits: Bit width of the range comparator
        description: Human-readable statement description
    """

    circuit_id: str
    version: int
    public_signals: tuple[str, ...]
    comparator_bits: int
    description: str

    @property
    def key_id(self) -> str:
        """Identifier the key store caches verification keys under."""
        return f"{self.circuit_id}@v{self.version}"

    @property
    def min_signal_count(self) -> int:
        return len(self.public_signals)

    def signal_index(self, name: str) -> int:
        try:
            return self.public_signals.index(name)
        except ValueError:
            raise KeyError(f"{self.key_id} has no public signal {name!r}") from None

    def label(self, signals: Sequence[str]) -> Dict[str, str]:
        """
        Label the leading public signals by name.

        Signals past the declared layout are ignored so newer provers can
        append outputs without breaking older verifiers.

        Raises:
            ValueError: If fewer signals than the layout declares are given
        """
        if len(signals) < self.min_signal_count:
            raise ValueError(
                f"{self.key_id} expects at least {self.min_signal_count} "
                f"public signals, got {len(signals)}"
            )
        return {
            name: str(signals[idx]) for idx, name in enumerate(self.public_signals)
        }


TOKEN_BALANCE_CIRCUIT = CircuitContract(
    circuit_id="tokenBalance",
    version=1,
    public_signals=("threshold", "commitment"),
    comparator_bits=64,
    description="Prove a committed private balance is at least a public threshold",
)

DEFAULT_CIRCUIT = TOKEN_BALANCE_CIRCUIT

CIRCUIT_REGISTRY: Mapping[str, CircuitContract] = {
    TOKEN_BALANCE_CIRCUIT.key_id: TOKEN_BALANCE_CIRCUIT,
}


def get_circuit(circuit_id: str | None = None) -> CircuitContract:
    """
    Resolve a circuit by key id (``tokenBalance@v1``) or bare name.

    Bare names resolve to the highest registered version.

    Raises:
        InvalidInputError: If the circuit is not registered
    """
    if circuit_id is None or circuit_id == "":
        return DEFAULT_CIRCUIT
    if not isinstance(circuit_id, str):
        raise InvalidInputError("Unknown circuit", f"circuit id {circuit_id!r}")

    contract = CIRCUIT_REGISTRY.get(circuit_id)
    if contract is not None:
        return contract

    matches = [c for c in CIRCUIT_REGISTRY.values() if c.circuit_id == circuit_id]
    if not matches:
        raise InvalidInputError("Unknown circuit", f"circuit id {circuit_id!r}")
    return max(matches, key=lambda c: c.version)
