"""
Matching, transform estimation and per-feature classification.
"""
