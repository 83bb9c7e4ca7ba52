"""
shade-memory: conversation memory and session persistence for the Shade overlay.
"""

__version__ = "0.1.0"
