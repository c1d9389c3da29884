"""Authentication module.

This module provides:
- Token issuing and verification (HS256 JWT)
- The auth gate (credential extraction and principal resolution)
- Auth middleware for FastAPI
"""

from relay.auth.gate import AuthGate, Principal, extract_credential
from relay.auth.middleware import AuthMiddleware, get_principal
from relay.auth.tokens import TokenClaims, TokenService

__all__ = [
    "AuthGate",
    "AuthMiddleware",
    "Principal",
    "TokenClaims",
    "TokenService",
    "extract_credential",
    "get_principal",
]
