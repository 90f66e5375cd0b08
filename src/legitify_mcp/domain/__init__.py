"""Attestation domain types."""
