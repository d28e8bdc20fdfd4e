"""
Blank Wars battle resolution and character-psychology engine.
"""

__version__ = "0.1.0"
