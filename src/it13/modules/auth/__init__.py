"""
Authentication module.

Technician and admin login, temporary password redemption, and the
password reset flow.
"""

from it13.modules.auth.router import router

__all__ = ["router"]
