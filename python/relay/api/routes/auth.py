"""Auth API routes.

Signup and login sit behind the optional gate; logout, me and verify need a
valid credential. Login sets the auth cookie, logout clears it.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Response

from relay.api.deps import get_app_settings, get_token_service, get_user_store
from relay.auth.gate import Principal
from relay.auth.middleware import get_principal
from relay.auth.tokens import TokenService
from relay.config import Settings
from relay.schemas.auth import LoginRequest, SignupRequest
from relay.services import accounts as accounts_service
from relay.services.users import UserStore

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/signup", status_code=201)
def signup(
    body: SignupRequest,
    users: Annotated[UserStore, Depends(get_user_store)],
) -> dict:
    """Create an account. Does not log the user in.

    Errors:
        E_EMAIL_TAKEN (409): Email already registered.
    """
    user = accounts_service.signup(users, body)
    return {
        "message": "User created successfully",
        "user": user.model_dump(mode="json", by_alias=True),
    }


@router.post("/login")
def login(
    body: LoginRequest,
    response: Response,
    users: Annotated[UserStore, Depends(get_user_store)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> dict:
    """Check credentials and set the auth cookie.

    Errors:
        E_INVALID_LOGIN (401): Unknown email or wrong password.
    """
    _, token = accounts_service.login(users, tokens, body)
    response.set_cookie(
        key=settings.cookie_name,
        value=token,
        max_age=tokens.expires_in_s,
        path="/",
        domain=settings.cookie_domain,
        secure=settings.cookie_secure,
        httponly=True,
        samesite=settings.cookie_same_site,
    )
    return {"message": "Login successful"}


@router.post("/logout")
def logout(
    response: Response,
    principal: Annotated[Principal, Depends(get_principal)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> dict:
    """Clear the auth cookie. Tokens stay valid until they expire."""
    response.delete_cookie(
        key=settings.cookie_name,
        path="/",
        domain=settings.cookie_domain,
        secure=settings.cookie_secure,
        httponly=True,
        samesite=settings.cookie_same_site,
    )
    return {"message": "Logout successful"}


@router.get("/me")
def me(
    principal: Annotated[Principal, Depends(get_principal)],
    users: Annotated[UserStore, Depends(get_user_store)],
) -> dict:
    """Current user's profile.

    Errors:
        E_USER_NOT_FOUND (404): User deleted.
    """
    user = accounts_service.get_profile(users, principal.id)
    return {"user": user.model_dump(mode="json", by_alias=True)}


@router.get("/verify")
def verify(principal: Annotated[Principal, Depends(get_principal)]) -> dict:
    return {
        "message": "Token is valid",
        "user": {"id": str(principal.id), "email": principal.email},
    }
