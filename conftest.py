"""Keeps the repository root importable for the test suite (cpb, builder, cpbundle)."""
