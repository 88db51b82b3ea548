"""
Utility helpers for moviemath.
"""
