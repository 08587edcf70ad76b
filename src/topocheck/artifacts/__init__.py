"""Deterministic artifact helpers."""
