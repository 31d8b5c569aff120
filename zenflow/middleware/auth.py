from fastapi import HTTPException, Depends, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
import jwt
from typing import Dict, Any
from zenflow.config import settings
import structlog

logger = structlog.get_logger()

security = HTTPBearer()


def decode_token(token: str) -> Dict[str, Any]:
    """
    Decode and verify a bearer JWT.

    In the development environment a token that fails signature
    verification is still accepted (expiry is checked), so tokens issued by
    a local identity provider work without sharing its key.

    Raises:
        jwt.ExpiredSignatureError: If the token has expired
        jwt.InvalidTokenError: If the token is invalid
    """
    options = {"verify_exp": True, "verify_aud": settings.jwt_audience is not None}
    try:
        return jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
            options=options
        )
    except jwt.ExpiredSignatureError:
        raise
    except jwt.InvalidTokenError:
        if settings.environment != "development":
            raise
        logger.warning("Accepting unverified token in development")
        return jwt.decode(
            token,
            options={"verify_signature": False, "verify_exp": True}
        )


async def verify_token(credentials: HTTPAuthorizationCredentials = Depends(security)) -> Dict[str, Any]:
    """
    Verify the bearer token and return the user claims.

    Args:
        credentials: HTTP Bearer token from Authorization header

    Returns:
        Dict with the user ID, email and names found in the token

    Raises:
        HTTPException: If token is invalid or expired
    """
    try:
        payload = decode_token(credentials.credentials)

        user_id = payload.get("sub")
        if not user_id:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid token: missing user ID"
            )

        logger.info("Token verified successfully", user_id=user_id)

        return {
            "user_id": user_id,
            "email": payload.get("email"),
            "first_name": payload.get("given_name"),
            "last_name": payload.get("family_name"),
        }

    except HTTPException:
        raise
    except jwt.ExpiredSignatureError:
        logger.warning("Token expired")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired"
        )
    except jwt.InvalidTokenError as e:
        logger.warning("Invalid token", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token"
        )


async def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(security)) -> Dict[str, Any]:
    """User claims from the JWT token."""
    return await verify_token(credentials)


async def get_current_user_id(user: Dict[str, Any] = Depends(get_current_user)) -> str:
    """
    Get the current user ID from the JWT token.

    Returns:
        User ID string
    """
    return user["user_id"]
