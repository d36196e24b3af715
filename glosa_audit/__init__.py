"""
Glosa audit engine: deterministic audit of medical claims against tariffs and audit rules.
"""

__version__ = "1.0.0"
