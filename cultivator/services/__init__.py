"""Orchestration services: assessment, maturity update, growth guide,
connection suggestions, dimension improvement.
"""
