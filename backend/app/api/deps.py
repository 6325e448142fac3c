from typing import List, Optional
from datetime import date

from fastapi import Depends, HTTPException, Query, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from app.config import get_settings
from app.services.access_scope import Principal, Role
from app.services.aggregation import DateRange

bearer_scheme = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Principal:
    """
    Build the caller's Principal from a bearer token.

    Tokens are issued by the auth service and carry ``sub`` (user id),
    ``role`` and, for managers, ``stores`` (assigned store codes).
    """
    if credentials is None:
        raise _unauthorized("Not authenticated")

    settings = get_settings()
    try:
        payload = jwt.decode(credentials.credentials, settings.secret_key, algorithms=[settings.algorithm])
        user_id = int(payload["sub"])
        role = Role(payload["role"])
    except (JWTError, KeyError, TypeError, ValueError):
        raise _unauthorized("Could not validate credentials")

    stores = payload.get("stores") or []
    return Principal(id=user_id, role=role, assigned_stores=frozenset(str(code) for code in stores))


async def get_store_filter(
    stores: Optional[str] = Query(None, description="Comma-separated store codes"),
) -> Optional[List[str]]:
    if not stores:
        return None
    return [code.strip() for code in stores.split(",") if code.strip()]


async def get_date_range(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
) -> DateRange:
    return DateRange.resolve(start_date, end_date, get_settings().default_report_year)
