"""Test helpers shared across the gpr test suite."""
