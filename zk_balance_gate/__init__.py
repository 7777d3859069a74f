"""
zk-balance-gate: verification service for Groth16 token-balance proofs.

⚠️  DRAFT - the lenient delegate policy trades cryptographic certainty for
availability. Review it before relying on verification results.
"""

__version__ = "0.1.0"


def print_disclaimer() -> None:
    print(
        "⚠️  zk-balance-gate is draft software.\n"
        "   Structural-only acceptances are NOT cryptographic proof of balance.\n"
        "   Set ZK_VERIFY_POLICY=strict to reject proofs an external verifier refuses."
    )
