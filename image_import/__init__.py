"""
.. include:: ../README.md
"""

__all__ = [
    "manifest",
    "cloud",
    "store",
    "events",
    "scope",
    "controller",
    "config",
    "exceptions",
]
