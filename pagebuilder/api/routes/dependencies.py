"""Caller identity for routes that mutate the section registry.

The identity collaborator in front of this service sets ``X-User-Role``;
only ``admin`` may register, patch or unregister section types.
"""

from typing import Optional

from fastapi import Depends, Header, HTTPException

ADMIN_ROLE = "admin"


async def current_user_role(x_user_role: Optional[str] = Header(None)) -> Optional[str]:
    return x_user_role


async def require_admin(role: Optional[str] = Depends(current_user_role)) -> str:
    if role != ADMIN_ROLE:
        raise HTTPException(
            status_code=403,
            detail="Only administrators can modify section definitions",
        )
    return role
