"""
Price-survey administration API: actor authentication and session lifecycle.
"""

__version__ = "1.0.0"
