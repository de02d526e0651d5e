"""Judgment provider boundary."""
