"""Application settings and logging configuration."""
