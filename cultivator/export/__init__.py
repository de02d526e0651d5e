"""Markdown encodings of assessments."""
