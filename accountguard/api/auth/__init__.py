"""
Auth API package.

Contains the account lifecycle routes mounted under /auth.
"""

from accountguard.api.auth.routes import router

__all__ = ["router"]
