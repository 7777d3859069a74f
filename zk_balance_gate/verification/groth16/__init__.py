"""Groth16 pairing backend for BN254 (see ``backend.Groth16Backend``)."""
