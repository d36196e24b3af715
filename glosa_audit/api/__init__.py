"""
HTTP API for the glosa audit engine.
"""
