"""
Groth16 verification over BN254, compatible with snarkjs artifacts.

Verification equation:

    e(A, B) == e(alpha_1, beta_2) * e(vk_x, gamma_2) * e(C, delta_2)
    vk_x     = IC[0] + sum_i signal_i * IC[i + 1]

checked as a single product in GT:

    e(-A, B) * e(alpha_1, beta_2) * e(vk_x, gamma_2) * e(C, delta_2) == 1
"""

from __future__ import annotations

import logging

from ..config import SCALAR_FIELD_ORDER
from ..types import Proof, PublicSignals, VerificationKey
from . import pairing

logger = logging.getLogger(__name__)


class Groth16Backend:
    """Pairing check for snarkjs Groth16 proofs."""

    @staticmethod
    def verify(vk: VerificationKey, signals: PublicSignals, proof: Proof) -> bool:
        """
        Check a proof against a key and public signals.

        Returns False for any proof that cannot satisfy the equation: wrong
        signal count for the key, signals outside the scalar field (snarkjs
        rejects these too), or proof points off the curve. The key is
        trusted to be well-formed; VerificationKey.parse checked it.

        Returns:
            True if the pairing equation holds
        """
        if len(signals) != vk.n_public:
            logger.debug(
                "signal count %d does not match key (%d public inputs)",
                len(signals),
                vk.n_public,
            )
            return False

        scalars = signals.as_ints()
        if any(s >= SCALAR_FIELD_ORDER for s in scalars):
            logger.debug("public signal outside the scalar field")
            return False

        try:
            a = pairing.decode_g1(proof.a, "pi_a")
            b = pairing.decode_g2(proof.b, "pi_b", check_subgroup=True)
            c = pairing.decode_g1(proof.c, "pi_c")
        except ValueError as exc:
            logger.debug("proof rejected: %s", exc)
            return False

        alpha_1 = pairing.decode_g1(vk.alpha_1, "vk_alpha_1")
        beta_2 = pairing.decode_g2(vk.beta_2, "vk_beta_2")
        gamma_2 = pairing.decode_g2(vk.gamma_2, "vk_gamma_2")
        delta_2 = pairing.decode_g2(vk.delta_2, "vk_delta_2")
        ic = [pairing.decode_g1(p, f"IC[{i}]") for i, p in enumerate(vk.ic)]

        vk_x = pairing.linear_combination(ic, [1, *scalars])

        return pairing.check_pairing_product(
            [
                (pairing.negate(a), b),
                (alpha_1, beta_2),
                (vk_x, gamma_2),
                (c, delta_2),
            ]
        )
