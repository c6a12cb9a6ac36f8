"""
Utility helpers for columnml.
"""
