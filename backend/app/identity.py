"""
Caller identity.

Authentication happens upstream; the identity provider's opaque user id reaches us in
the X-User-Id header. It is only ever compared for ownership checks.
"""
from typing import Optional

from fastapi import Depends, Header, HTTPException, status


def get_current_user_id(x_user_id: Optional[str] = Header(default=None)) -> Optional[str]:
    """Caller id, or None for anonymous callers"""
    if x_user_id is None:
        return None
    return x_user_id.strip() or None


def require_current_user_id(user_id: Optional[str] = Depends(get_current_user_id)) -> str:
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="X-User-Id header required",
        )
    return user_id
