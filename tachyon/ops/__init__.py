"""
Validation, geometry and pipeline operations.
"""
