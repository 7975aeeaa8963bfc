"""
Services used around the comparison engine.

Provides:
- JSON-backed application settings
- Dataset name to directory lookup
"""
