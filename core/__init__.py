"""
Core package: configuration, security, access gates, pagination, errors and middleware.
Kept apart from routes and services so each piece can be tested without the app.
"""

from core.config import get_settings

__all__ = ["get_settings"]
