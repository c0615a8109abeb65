from fastapi import Header, HTTPException

from repairconnect.domain.entities.caller import Caller

ROLES = {"customer", "workshop"}


def get_caller(
    x_user_id: str | None = Header(None),
    x_user_role: str | None = Header(None),
) -> Caller:
    """Identity forwarded by the authenticating gateway."""
    if not x_user_id or not x_user_role:
        raise HTTPException(status_code=401, detail="Authentication required")
    role = x_user_role.strip().lower()
    if role not in ROLES:
        raise HTTPException(status_code=403, detail=f"Unsupported user role: {x_user_role}")
    return Caller(user_id=x_user_id, role=role)
