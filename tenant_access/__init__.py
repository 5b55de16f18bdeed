"""
Tenant Access Engine - decides whether a business tenant may use the application.

This package resolves subscription and trial state into a single access status,
manages the trial lifecycle, and enforces the decision on active sessions.
"""

__version__ = "1.0.0"
