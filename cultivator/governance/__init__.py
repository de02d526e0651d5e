"""Maturity progression policy."""
