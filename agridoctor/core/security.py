from datetime import datetime, timedelta
from typing import NamedTuple, Optional

import bcrypt
from fastapi import Depends, HTTPException, status
from fastapi.security import APIKeyHeader
from jose import JWTError, jwt

from agridoctor.core import config

token_header = APIKeyHeader(name=config.TOKEN_HEADER, auto_error=False)


class Principal(NamedTuple):
    """Identity decoded from a valid access token."""
    id: int
    role: str


class AccessCheck(NamedTuple):
    allowed: bool
    status_code: int = status.HTTP_200_OK
    detail: Optional[str] = None


def get_password_hash(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, config.SECRET_KEY, algorithm=config.ALGORITHM)


def token_for_user(user) -> str:
    return create_access_token(data={"user": {"id": user.id, "role": user.role}})


def decode_access_token(token: str) -> Optional[Principal]:
    """Return the principal carried by ``token``, or None if it does not verify."""
    try:
        payload = jwt.decode(token, config.SECRET_KEY, algorithms=[config.ALGORITHM])
    except JWTError:
        return None
    user = payload.get("user") or {}
    if "id" not in user or "role" not in user:
        return None
    return Principal(id=int(user["id"]), role=user["role"])


def check_capability(principal: Optional[Principal], required_role: Optional[str] = None) -> AccessCheck:
    """Decide whether ``principal`` may perform an operation gated on ``required_role``.

    ``required_role=None`` only asks for an authenticated principal.
    """
    if principal is None:
        return AccessCheck(False, status.HTTP_401_UNAUTHORIZED, "No token, authorization denied")
    if required_role is not None and principal.role != required_role:
        return AccessCheck(False, status.HTTP_403_FORBIDDEN, f"Access denied. {required_role.capitalize()} role required.")
    return AccessCheck(True)


def get_optional_user(token: Optional[str] = Depends(token_header)) -> Optional[Principal]:
    if not token:
        return None
    return decode_access_token(token)


def get_current_user(token: Optional[str] = Depends(token_header)) -> Principal:
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="No token, authorization denied")
    principal = decode_access_token(token)
    if principal is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token is not valid")
    return principal


def require_role(required_role: str):
    """Build a dependency that lets through only principals holding ``required_role``."""
    def dependency(principal: Principal = Depends(get_current_user)) -> Principal:
        check = check_capability(principal, required_role)
        if not check.allowed:
            raise HTTPException(status_code=check.status_code, detail=check.detail)
        return principal
    return dependency


get_admin_user = require_role("admin")
