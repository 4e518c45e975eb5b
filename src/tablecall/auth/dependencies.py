"""FastAPI auth dependencies.

Used as Depends() in route handlers to extract and validate the
restaurant owner making the request from the Bearer token.
"""

from typing import Optional

from fastapi import Depends, HTTPException, Header

from tablecall.auth.jwt import TokenError, verify_token


class CurrentIdentity:
    """The authenticated owner. Services scope restaurants by user_id."""

    def __init__(self, user_id: str, email: Optional[str] = None):
        self.user_id = user_id
        self.email = email

    def __repr__(self) -> str:
        return f"<CurrentIdentity user_id={self.user_id}>"


def identity_from_token(token: str) -> CurrentIdentity:
    """Decode an access token into an identity. Raises TokenError."""
    payload = verify_token(token, expected_type="access")
    return CurrentIdentity(user_id=payload["sub"], email=payload.get("email"))


async def get_current_user_optional(
    authorization: Optional[str] = Header(None),
) -> Optional[CurrentIdentity]:
    """Soft auth: None when no Bearer token is present."""
    if not authorization or not authorization.startswith("Bearer "):
        return None
    try:
        return identity_from_token(authorization[7:])
    except TokenError as e:
        raise HTTPException(
            status_code=401,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )


async def get_current_user(
    identity: Optional[CurrentIdentity] = Depends(get_current_user_optional),
) -> CurrentIdentity:
    """Hard auth: 401 if no valid Bearer token."""
    if not identity:
        raise HTTPException(
            status_code=401,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return identity
