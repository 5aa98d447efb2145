"""Caller identity for the HTTP edge.

Callers are authenticated upstream. The identity provider hands each caller a
signed bearer token whose ``sub`` claim is the caller's opaque identity; this
module only checks the signature and expiry and extracts that identity.

This module provides:
1. Token verification with a shared secret
2. Token issuing for tooling and tests
3. A FastAPI dependency returning the current caller identity
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional
from fastapi import Request, HTTPException, status, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError, ExpiredSignatureError

logger = logging.getLogger(__name__)

# Constants
TOKEN_EXPIRY_MINUTES = 60
DEFAULT_ALGORITHM = "HS256"

class AuthError(Exception):
    """Base exception for authentication errors."""
    pass

class TokenExpiredError(AuthError):
    """Raised when a token has expired."""
    pass

class InvalidTokenError(AuthError):
    """Raised when a token is malformed or its signature does not verify."""
    pass

class IdentityVerifier:
    """Verifies identity tokens signed by the upstream identity provider."""

    def __init__(self, secret: str, algorithm: str = DEFAULT_ALGORITHM):
        """Initialize the verifier.

        Args:
            secret: Secret shared with the identity provider
            algorithm: JWT signing algorithm
        """
        if not secret:
            raise ValueError("A token secret is required")
        self.secret = secret
        self.algorithm = algorithm

    def create_token(self, identity: str, expires_in: Optional[timedelta] = None) -> str:
        """Issue a token for identity.

        Args:
            identity: Opaque caller identity
            expires_in: Token lifetime, defaults to TOKEN_EXPIRY_MINUTES

        Returns:
            The encoded token
        """
        expires_at = datetime.now(timezone.utc) + (expires_in or timedelta(minutes=TOKEN_EXPIRY_MINUTES))
        return jwt.encode(
            {'sub': identity, 'exp': expires_at},
            self.secret,
            algorithm=self.algorithm
        )

    def verify_token(self, token: str) -> str:
        """Verify a token and return the identity it carries.

        Raises:
            TokenExpiredError: If the token has expired
            InvalidTokenError: If the token is invalid or has no subject
        """
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            raise TokenExpiredError("Token has expired")
        except JWTError as e:
            raise InvalidTokenError(f"Invalid token: {str(e)}")

        identity = payload.get('sub')
        if not identity:
            raise InvalidTokenError("Token has no subject")
        return identity

# FastAPI security scheme
auth_scheme = HTTPBearer(
    auto_error=True,  # Return 401 automatically if token is missing
    description="Identity bearer token required"
)

async def get_current_identity(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(auth_scheme)
) -> str:
    """FastAPI dependency for getting the caller identity.

    Args:
        request: The FastAPI request; its app holds the verifier
        credentials: Bearer token credentials

    Returns:
        The caller identity

    Raises:
        HTTPException: If the token does not verify
    """
    verifier: IdentityVerifier = request.app.state.verifier
    try:
        return verifier.verify_token(credentials.credentials)
    except TokenExpiredError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired"
        )
    except AuthError as e:
        logger.warning(f"Rejected token: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e)
        )

# Export public interface
__all__ = [
    'IdentityVerifier',
    'get_current_identity',
    'auth_scheme',
    'AuthError',
    'TokenExpiredError',
    'InvalidTokenError'
]
