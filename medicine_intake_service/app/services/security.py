from typing import Optional
from fastapi import Header, HTTPException

def current_owner(x_owner_id: Optional[str] = Header(None)) -> str:
    """
    Owner identity is established upstream (gateway/session layer) and
    forwarded in X-Owner-Id. Anything without it is unauthenticated.
    """
    owner = (x_owner_id or "").strip()
    if not owner:
        raise HTTPException(
            status_code=401,
            detail="Unauthorized"
        )
    return owner
