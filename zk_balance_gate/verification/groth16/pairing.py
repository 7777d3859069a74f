"""
BN254 point decoding and pairing-product checks on top of py_ecc.

Points come in as affine integer coordinates (``None`` for the point at
infinity) and are lifted into py_ecc's projective representation. py_ecc's
``pairing`` takes ``(Q, P)`` with Q in G2; this module always takes ``(P, Q)``.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional, Tuple

from py_ecc.optimized_bn128 import (
    FQ,
    FQ2,
    FQ12,
    Z1,
    Z2,
    add,
    b,
    b2,
    curve_order,
    is_inf,
    is_on_curve,
    multiply,
    neg,
    normalize,
    pairing,
)

G1Affine = Tuple[int, int]
G2Affine = Tuple[Tuple[int, int], Tuple[int, int]]

# py_ecc projective points; opaque outside this module
G1Point = Any
G2Point = Any


def g1_from_affine(point: Optional[G1Affine]) -> G1Point:
    if point is None:
        return Z1
    x, y = point
    return (FQ(x), FQ(y), FQ.one())


def g2_from_affine(point: Optional[G2Affine]) -> G2Point:
    if point is None:
        return Z2
    (x0, x1), (y0, y1) = point
    return (FQ2([x0, x1]), FQ2([y0, y1]), FQ2.one())


def g1_to_affine(point: G1Point) -> Optional[G1Affine]:
    if is_inf(point):
        return None
    x, y = normalize(point)
    return _fq_int(x), _fq_int(y)


def g2_to_affine(point: G2Point) -> Optional[G2Affine]:
    if is_inf(point):
        return None
    x, y = normalize(point)
    return (
        (_fq_int(x.coeffs[0]), _fq_int(x.coeffs[1])),
        (_fq_int(y.coeffs[0]), _fq_int(y.coeffs[1])),
    )


def is_on_curve_g1(point: Optional[G1Affine]) -> bool:
    return bool(is_on_curve(g1_from_affine(point), b))


def is_on_curve_g2(point: Optional[G2Affine]) -> bool:
    return bool(is_on_curve(g2_from_affine(point), b2))


def decode_g1(point: Optional[G1Affine], label: str) -> G1Point:
    """
    Lift an affine G1 point, checking the curve equation.

    Raises:
        ValueError: If the point is not on the curve
    """
    lifted = g1_from_affine(point)
    if not is_on_curve(lifted, b):
        raise ValueError(f"{label} is not on the G1 curve")
    return lifted


def decode_g2(point: Optional[G2Affine], label: str, *, check_subgroup: bool = False) -> G2Point:
    """
    Lift an affine G2 point, checking the twist curve equation.

    Raises:
        ValueError: If the point is not on the curve or outside the subgroup
    """
    lifted = g2_from_affine(point)
    if not is_on_curve(lifted, b2):
        raise ValueError(f"{label} is not on the G2 curve")
    if check_subgroup and not is_inf(multiply(lifted, curve_order)):
        raise ValueError(f"{label} is not in the G2 subgroup")
    return lifted


def linear_combination(bases: Iterable[G1Point], scalars: Iterable[int]) -> G1Point:
    """Return sum(s_i * P_i) over G1."""
    acc = Z1
    for point, scalar in zip(bases, scalars):
        if scalar % curve_order == 0:
            continue
        acc = add(acc, multiply(point, scalar % curve_order))
    return acc


def negate(point: G1Point) -> G1Point:
    return neg(point)


def check_pairing_product(pairs: Iterable[Tuple[G1Point, G2Point]]) -> bool:
    """Return True iff prod e(P_i, Q_i) == 1 in GT."""
    acc = FQ12.one()
    for p, q in pairs:
        if is_inf(p) or is_inf(q):
            continue
        acc = acc * pairing(q, p)
    return acc == FQ12.one()


def _fq_int(value: Any) -> int:
    return int(getattr(value, "n", value))
