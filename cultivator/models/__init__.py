"""Shared types and base models."""
