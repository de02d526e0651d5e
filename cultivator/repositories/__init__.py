"""Persistence and document-store boundaries."""
