"""
verify.py
---------
Purpose:
    Bearer JWT verification against the identity provider's JWKS.

Notes:
    - The JWKS client is created on first use and cached.
    - Provides `auth_dependency` for protected routes and `current_user_id`
      for routes that only need the account key (`sub` claim).
"""

from functools import lru_cache

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jwt import PyJWKClient

from priority_engine.config import settings

_security = HTTPBearer()


@lru_cache(maxsize=1)
def _jwk_client() -> PyJWKClient:
    if not settings.AUTH_JWKS_URL:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Token verification is not configured",
        )
    return PyJWKClient(settings.AUTH_JWKS_URL)


def verify_jwt(token: str) -> dict:
    try:
        signing_key = _jwk_client().get_signing_key_from_jwt(token)
        decoded = jwt.decode(
            token,
            signing_key.key,
            algorithms=settings.AUTH_ALGORITHMS,
            audience=settings.AUTH_AUDIENCE,
            options={"verify_exp": True},
        )
        return decoded
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid authentication token: {e}",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e


def auth_dependency(credentials: HTTPAuthorizationCredentials = Depends(_security)) -> dict:
    token = credentials.credentials
    return verify_jwt(token)


def current_user_id(claims: dict = Depends(auth_dependency)) -> str:
    user_id = claims.get("sub")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has no subject",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return str(user_id)
