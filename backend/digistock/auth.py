"""
DigiStock - Officer Authentication
JWT tokens and the acting-officer dependency
"""
from datetime import datetime, timedelta
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from .config import ACCESS_TOKEN_EXPIRE_HOURS, JWT_ALGORITHM, JWT_SECRET_KEY
from .database import get_db
from .models.db_models import OfficerDB, OfficerRole

# Bearer token is optional; gateways may pass the officer id header instead
security = HTTPBearer(auto_error=False)


def create_access_token(officer_id: str, role: str) -> str:
    """Create a JWT access token with role claim."""
    expire = datetime.utcnow() + timedelta(hours=ACCESS_TOKEN_EXPIRE_HOURS)
    to_encode = {
        "sub": officer_id,
        "role": role,
        "exp": expire
    }
    return jwt.encode(to_encode, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)


def decode_token(token: str) -> Optional[dict]:
    """Decode and validate a JWT token."""
    try:
        return jwt.decode(token, JWT_SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except JWTError:
        return None


async def get_current_officer(
    x_officer_id: Optional[str] = Header(None),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> OfficerDB:
    """
    Dependency resolving the acting officer.

    Accepts either an X-Officer-Id header or a bearer token whose subject is
    the officer id. Expiry is enforced by jose on decode.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    officer_id = x_officer_id
    if officer_id is None:
        if credentials is None:
            raise credentials_exception
        payload = decode_token(credentials.credentials)
        if payload is None or payload.get("sub") is None:
            raise credentials_exception
        officer_id = payload["sub"]

    officer = db.get(OfficerDB, officer_id)
    if officer is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Officer not found with id: {officer_id}",
        )
    return officer


ANALYTICS_ROLES = (
    OfficerRole.NATIONAL_ADMIN,
    OfficerRole.PROVINCIAL_ADMIN,
    OfficerRole.DISTRICT_ADMIN,
    OfficerRole.ADMIN,
    OfficerRole.POLICE_OFFICER,
)


async def require_analytics_viewer(officer: OfficerDB = Depends(get_current_officer)) -> OfficerDB:
    """
    Dependency to require an active admin or police officer.
    Use this on the reporting routes.
    """
    if not officer.active or officer.role not in ANALYTICS_ROLES:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Analytics access required"
        )
    return officer
