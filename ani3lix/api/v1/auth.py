"""Register/login/refresh routes and auth dependencies (get_current_user, require_role)."""

from collections.abc import Callable
from datetime import timedelta
from functools import lru_cache
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from ani3lix.core.config import get_settings
from ani3lix.core.database import get_db
from ani3lix.schemas.auth import (
    AuthResponse,
    CurrentUserResponse,
    LoginRequest,
    RefreshRequest,
    RefreshResponse,
    RegisterRequest,
    UserPublic,
)
from ani3lix.schemas.roles import Role
from ani3lix.schemas.user import UserRecord
from ani3lix.services import roles
from ani3lix.services.auth import AuthService
from ani3lix.services.errors import (
    CURRENT_PASSWORD_INCORRECT,
    AuthenticationError,
    AuthorizationError,
    AuthServiceError,
    ConflictError,
    InvalidInputError,
    NotFoundError,
)
from ani3lix.services.tokens import TokenIssuer
from ani3lix.services.user_store import SqlAlchemyCredentialStore

router = APIRouter()
security = HTTPBearer(auto_error=False)

_BEARER_HEADERS = {"WWW-Authenticate": "Bearer"}


@lru_cache
def get_token_issuer() -> TokenIssuer:
    """Token issuer built once from settings; the signing secret never changes at runtime."""
    return TokenIssuer.from_settings(get_settings())


def get_auth_service(db: Annotated[Session, Depends(get_db)]) -> AuthService:
    """Dependency: auth service bound to the request's DB session."""
    settings = get_settings()
    return AuthService(
        SqlAlchemyCredentialStore(db),
        get_token_issuer(),
        password_rounds=settings.BCRYPT_ROUNDS,
        username_cooldown=timedelta(days=settings.USERNAME_CHANGE_COOLDOWN_DAYS),
    )


def http_error(exc: AuthServiceError) -> HTTPException:
    """Map a typed auth failure to an HTTP error; messages are already caller-safe."""
    if isinstance(exc, InvalidInputError):
        return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=exc.message)
    if isinstance(exc, ConflictError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=exc.message)
    if isinstance(exc, AuthenticationError):
        if exc.code == CURRENT_PASSWORD_INCORRECT:
            return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message)
        return HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=exc.message,
            headers=_BEARER_HEADERS,
        )
    if isinstance(exc, AuthorizationError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=exc.message)
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.message)
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message)


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> UserRecord:
    """
    Dependency: require a valid Bearer access token and return the live user record.
    Raises 401 with distinct details for missing, expired, invalid and wrong-audience
    tokens, and for tokens whose user no longer exists.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers=_BEARER_HEADERS,
        )
    try:
        return service.authenticate(credentials.credentials)
    except AuthenticationError as e:
        raise http_error(e) from e
    except NotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message,
            headers=_BEARER_HEADERS,
        ) from e


def get_optional_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> UserRecord | None:
    """Dependency for public endpoints: the user when a good token is sent, else None."""
    if credentials is None:
        return None
    try:
        return service.authenticate(credentials.credentials)
    except (AuthenticationError, NotFoundError):
        return None


def require_role(minimum_role: Role) -> Callable[..., UserRecord]:
    """Build a dependency that requires the current user to hold minimum_role or higher."""

    def dependency(
        current_user: Annotated[UserRecord, Depends(get_current_user)],
    ) -> UserRecord:
        if not roles.at_least(current_user.role, minimum_role):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"{minimum_role} role or higher required for this action",
            )
        return current_user

    return dependency


require_moderator = require_role("moderator")
require_admin = require_role("admin")
require_site_owner = require_role("site_owner")


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(
    body: RegisterRequest,
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> AuthResponse:
    """Create an account (role 'user') and return it with an access/refresh token pair."""
    try:
        result = service.register(
            body.username,
            body.email,
            body.password,
            display_name=body.display_name,
            bio=body.bio,
        )
    except AuthServiceError as e:
        raise http_error(e) from e
    return AuthResponse(
        message="User registered successfully",
        user=UserPublic.model_validate(result.user),
        tokens=result.tokens,
    )


@router.post("/login", response_model=AuthResponse)
def login(
    body: LoginRequest,
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> AuthResponse:
    """
    Authenticate with email or username and password.
    Include the access token in the Authorization header as: Bearer <access_token>
    """
    try:
        result = service.login(body.identifier, body.password)
    except AuthServiceError as e:
        raise http_error(e) from e
    return AuthResponse(
        message="Login successful",
        user=UserPublic.model_validate(result.user),
        tokens=result.tokens,
    )


@router.post("/refresh", response_model=RefreshResponse)
def refresh(
    body: RefreshRequest,
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> RefreshResponse:
    """Exchange a refresh token for a new token pair carrying the user's current role."""
    try:
        tokens = service.refresh(body.refresh_token)
    except AuthServiceError as e:
        raise http_error(e) from e
    return RefreshResponse(tokens=tokens)


@router.get("/me", response_model=CurrentUserResponse)
def me(
    current_user: Annotated[UserRecord, Depends(get_current_user)],
) -> CurrentUserResponse:
    return CurrentUserResponse(user=UserPublic.model_validate(current_user))
