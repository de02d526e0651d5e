"""Bounded per-note assessment history with score deltas."""
