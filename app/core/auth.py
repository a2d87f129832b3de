# app/core/auth.py
import uuid
from dataclasses import dataclass

from fastapi import Depends, Header, HTTPException, status


@dataclass(frozen=True)
class Principal:
    """
    Authenticated caller as forwarded by the upstream auth gateway.

    Token issuance and verification happen outside this service; we only
    trust the gateway headers:
      - X-User-Id: the user's UUID
      - X-User-Role: "user" | "admin"
    """

    user_id: uuid.UUID
    role: str = "user"


def get_current_principal(
    x_user_id: str | None = Header(default=None),
    x_user_role: str = Header(default="user"),
) -> Principal:
    """
    Resolve the current principal from gateway headers.

    Raises:
        HTTPException(401): if the user id header is missing or not a UUID.
    """
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )

    try:
        user_id = uuid.UUID(x_user_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid user id",
        )

    return Principal(user_id=user_id, role=x_user_role.strip().lower() or "user")


def require_user(principal: Principal = Depends(get_current_principal)) -> Principal:
    """
    Enforce that only normal customers (role='user') can access a route.

    Use this for:
      - cart endpoints
      - checkout endpoints
    Admins will be rejected with 403.
    """
    if principal.role != "user":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Customer access required",
        )
    return principal
