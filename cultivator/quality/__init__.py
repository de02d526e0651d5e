"""Note quality scoring and maturity progression.

Five weighted dimensions roll up into a composite score and letter
grade; the score decides the recommended maturity stage.

Deterministic -- the judgment provider's raw scores are taken as given.
"""
