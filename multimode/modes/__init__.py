"""Chat mode package.

This package maps mode keys to system instructions (`prompts`) and to result
shaping functions (`registry`). It does not perform transport or persistence.
"""
