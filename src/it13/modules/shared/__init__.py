"""
Shared persistence helpers used by more than one module.
"""
