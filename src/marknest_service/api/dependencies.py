"""Shared API dependencies."""

from typing import Optional
from fastapi import Depends, Header
from ..core.user_manager import UserManager

# Set by main.py after the database is up
user_manager: UserManager = None


def set_user_manager(user_mgr: UserManager):
    """Set the user manager instance (called from main.py)."""
    globals()['user_manager'] = user_mgr


def get_user_email(x_user_email: Optional[str] = Header(None, alias="X-User-Email")) -> Optional[str]:
    """Extract user email from gateway headers, if forwarded."""
    return x_user_email


async def get_user_id(
    x_user_id: str = Header(..., alias="X-User-ID"),
    email: Optional[str] = Depends(get_user_email),
) -> str:
    """Extract user ID from gateway headers, provisioning the local user row on first sight."""
    if user_manager is not None:
        await user_manager.ensure_user(x_user_id, email)
    return x_user_id
