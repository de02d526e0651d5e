"""Evergreen Note Cultivator.

Quality scoring, maturity progression, assessment history, and the
markdown callout codec for free-form notes.
"""
