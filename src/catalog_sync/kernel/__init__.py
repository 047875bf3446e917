"""Kernel – domain types, errors and ports with no framework dependencies."""
