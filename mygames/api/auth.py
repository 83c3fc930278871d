"""Authentication endpoints and the current-user dependency."""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

from mygames.config import get_settings
from mygames.gateways.auth import Session, SupabaseAuthGateway, UserIdentity

settings = get_settings()

router = APIRouter(prefix="/auth", tags=["auth"])

bearer_scheme = HTTPBearer(auto_error=False)


async def get_auth_gateway():
    """Dependency yielding an auth gateway with its own HTTP client."""
    async with SupabaseAuthGateway(settings) as gateway:
        yield gateway


async def get_access_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme),
) -> str:
    """Bearer token from the Authorization header."""
    if not credentials or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing access token",
        )
    return credentials.credentials


async def get_current_user(
    access_token: str = Depends(get_access_token),
    auth: SupabaseAuthGateway = Depends(get_auth_gateway),
) -> UserIdentity:
    """Resolve the bearer token to the signed-in user."""
    user = await auth.current_user(access_token)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired session",
        )
    return user


class CredentialsRequest(BaseModel):
    email: str
    password: str


class PasswordResetRequest(BaseModel):
    email: str
    redirect_url: Optional[str] = None


class PasswordUpdateRequest(BaseModel):
    password: str


@router.post("/login", response_model=Session)
async def login(
    request: CredentialsRequest,
    auth: SupabaseAuthGateway = Depends(get_auth_gateway),
):
    """Sign in with email and password."""
    return await auth.sign_in(request.email, request.password)


@router.post("/signup", status_code=status.HTTP_201_CREATED)
async def signup(
    request: CredentialsRequest,
    auth: SupabaseAuthGateway = Depends(get_auth_gateway),
):
    """Create an account. The user has to confirm the email before signing in."""
    await auth.sign_up(request.email, request.password)
    return {"status": "confirmation_sent", "email": request.email}


@router.post("/logout")
async def logout(
    access_token: str = Depends(get_access_token),
    auth: SupabaseAuthGateway = Depends(get_auth_gateway),
):
    await auth.sign_out(access_token)
    return {"status": "signed_out"}


@router.post("/password-reset")
async def request_password_reset(
    request: PasswordResetRequest,
    auth: SupabaseAuthGateway = Depends(get_auth_gateway),
):
    """Email a password reset link pointing at the update-password page."""
    await auth.request_password_reset(
        request.email,
        request.redirect_url or settings.password_reset_redirect_url,
    )
    return {"status": "reset_email_sent"}


@router.post("/password")
async def update_password(
    request: PasswordUpdateRequest,
    access_token: str = Depends(get_access_token),
    auth: SupabaseAuthGateway = Depends(get_auth_gateway),
):
    await auth.update_password(access_token, request.password)
    return {"status": "password_updated"}


@router.get("/me", response_model=UserIdentity)
async def me(user: UserIdentity = Depends(get_current_user)):
    return user
