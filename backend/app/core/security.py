"""
Authentication and authorization for the NetMap API.

Bearer JWTs are issued by the platform identity service and verified here
with the shared SECRET_KEY. A token carries a role, an optional explicit
scope list (otherwise the role's default scopes apply) and the tenant it is
bound to.
"""

from datetime import datetime, timedelta, timezone
from typing import List, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer, SecurityScopes
from jose import JWTError, jwt
from pydantic import BaseModel

from backend.app.core.config import get_settings

settings = get_settings()

NETWORK_READ = "network:read"
COVERAGE_READ = "coverage:read"

oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl="api/v1/auth/token",
    scopes={
        NETWORK_READ: "Read network topology and compute paths",
        COVERAGE_READ: "Resolve service zones and check coverage offers",
    },
)


class Role:
    ADMIN = "admin"
    OPERATOR = "operator"
    SALES = "sales"
    VIEWER = "viewer"


ROLE_SCOPES = {
    Role.ADMIN: [NETWORK_READ, COVERAGE_READ],
    Role.OPERATOR: [NETWORK_READ, COVERAGE_READ],
    Role.SALES: [COVERAGE_READ],
    Role.VIEWER: [NETWORK_READ],
}


class User(BaseModel):
    username: str
    role: str
    scopes: List[str] = []
    tenant_id: Optional[str] = None


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Sign a token. Used by tests and local tooling; production tokens come from identity."""
    expires_delta = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    claims = {**data, "exp": datetime.now(timezone.utc) + expires_delta}
    return jwt.encode(claims, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str) -> User:
    """Verify signature and expiry and map claims to a User. Raises JWTError."""
    payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    username = payload.get("sub")
    if not username:
        raise JWTError("token has no subject")
    role = payload.get("role", Role.VIEWER)
    scopes = payload.get("scopes")
    if scopes is None:
        scopes = ROLE_SCOPES.get(role, [])
    return User(username=username, role=role, scopes=list(scopes), tenant_id=payload.get("tenant_id"))


async def get_current_user(
    security_scopes: SecurityScopes,
    token: str = Depends(oauth2_scheme),
) -> User:
    """Resolve the caller and enforce the scopes the endpoint declares."""
    authenticate_value = f'Bearer scope="{security_scopes.scope_str}"' if security_scopes.scopes else "Bearer"

    try:
        user = decode_access_token(token)
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": authenticate_value},
        )

    missing = [scope for scope in security_scopes.scopes if scope not in user.scopes]
    if missing:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Not enough permissions. Required scope: {missing[0]}",
            headers={"WWW-Authenticate": authenticate_value},
        )
    return user


def ensure_tenant_access(user: User, tenant_id: str) -> None:
    """Reject callers whose token is bound to a different tenant (admins excepted)."""
    if user.role == Role.ADMIN:
        return
    if user.tenant_id and user.tenant_id != tenant_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Token is not valid for this tenant",
        )
