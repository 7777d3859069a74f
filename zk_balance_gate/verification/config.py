"""
⚠️ DRAFT — requires crypto review before production use

Verification configuration for the tokenBalance Groth16 circuit.

Curve parameters, timeouts and size limits shared by the proof parser, the
pairing backend, the key store and the HTTP transport.
"""

# ============================================================================
# CURVE SELECTION
# ============================================================================

# Groth16 over BN254 (snarkjs calls it "bn128")
PROTOCOL = "groth16"
CURVE_NAME = "bn128"
CURVE_LIBRARY = "py_ecc"

# Base field modulus p (coordinates of G1/G2 points live in F_p / F_p^2)
FIELD_MODULUS = 0x30644E72E131A029B85045B68181585D97816A916871CA8D3C208C16D87CFD47

# Scalar field order r (public signals must be < r)
SCALAR_FIELD_ORDER = 0x30644E72E131A029B85045B68181585D2833E84879B9709143E1F593F0000001

FIELD_ELEMENT_BITS = 254

# ============================================================================
# TIMEOUTS (seconds)
# ============================================================================

# Delegate verifier round trip
DELEGATE_TIMEOUT = 10.0

# Verification key fetch from the backing blob store
KEY_FETCH_TIMEOUT = 10.0

# Reading a request body off the wire
REQUEST_READ_TIMEOUT = 10.0

# ============================================================================
# SIZE LIMITS
# ============================================================================

MAX_REQUEST_BYTES = 2 * 1024 * 1024  # matches the original 2mb JSON body limit
MAX_VK_BYTES = 1024 * 1024
MAX_PUBLIC_SIGNALS = 64

# ============================================================================
# VALIDATION
# ============================================================================


def validate_config() -> bool:
    """
    Validate configuration parameters.

    Returns:
        True if configuration is valid

    Raises:
        AssertionError: If configuration is invalid
    """
    assert PROTOCOL == "groth16", "Only Groth16 proofs are supported"
    assert CURVE_NAME == "bn128", "Only the BN254 curve is supported"
    assert CURVE_LIBRARY in ["py_ecc"], "Invalid library"
    assert FIELD_MODULUS.bit_length() == FIELD_ELEMENT_BITS
    assert SCALAR_FIELD_ORDER.bit_length() == FIELD_ELEMENT_BITS
    assert SCALAR_FIELD_ORDER < FIELD_MODULUS
    assert DELEGATE_TIMEOUT > 0, "Delegate calls must be bounded"
    assert KEY_FETCH_TIMEOUT > 0, "Key fetches must be bounded"
    assert MAX_PUBLIC_SIGNALS >= 2, "Circuit exposes two public signals"

    return True


# Auto-validate on import
validate_config()
