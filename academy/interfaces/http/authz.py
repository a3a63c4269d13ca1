from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from ...config import settings

bearer = HTTPBearer()
optional_bearer = HTTPBearer(auto_error=False)

def _decode(token: str) -> dict:
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

def get_claims(creds: HTTPAuthorizationCredentials = Depends(bearer)) -> dict:
    return _decode(creds.credentials)

def get_user_id(claims: dict = Depends(get_claims)) -> str:
    sub = claims.get("sub")
    if not sub:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    return sub

def get_optional_user_id(
    creds: HTTPAuthorizationCredentials | None = Depends(optional_bearer),
) -> str | None:
    # anonymous callers are allowed through; a bad token is still rejected
    if creds is None:
        return None
    sub = _decode(creds.credentials).get("sub")
    if not sub:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    return sub
