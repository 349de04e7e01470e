"""Account router - authentication and profile endpoints"""

import logging

from fastapi import APIRouter, Depends

from ...appwrite_client import AppwriteClient, get_appwrite_client
from ...auth import get_current_user
from ...rate_limiter import create_rate_limiter
from ...schemas import CurrentUser, MessageResponse, UserResponse
from .schemas import (
    OAuthCallbackRequest,
    OAuthStartResponse,
    ProfileUpdate,
    RecoveryCompleteRequest,
    RecoveryRequest,
    ResendVerificationRequest,
    SessionResponse,
    SignInRequest,
    SignUpRequest,
    SignUpResponse,
    VerifyEmailRequest,
)
from .service import AccountService, to_user_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])

rate_limit_signin = create_rate_limiter(limit=20, window_seconds=900, key_prefix="signin")
rate_limit_signup = create_rate_limiter(limit=10, window_seconds=3600, key_prefix="signup")
rate_limit_recovery = create_rate_limiter(limit=10, window_seconds=3600, key_prefix="password_reset")


def get_account_service(client: AppwriteClient = Depends(get_appwrite_client)) -> AccountService:
    """Dependency injection for AccountService"""
    return AccountService(client)


@router.post("/signup", response_model=SignUpResponse)
async def sign_up(
    data: SignUpRequest,
    service: AccountService = Depends(get_account_service),
    _: None = Depends(rate_limit_signup),
):
    """Create an account; the user must verify their email before signing in"""
    logger.info(f"🆕 Sign up request for {data.email}")
    return await service.sign_up(data.email, data.password, data.name)


@router.post("/signin", response_model=SessionResponse)
async def sign_in(
    data: SignInRequest,
    service: AccountService = Depends(get_account_service),
    _: None = Depends(rate_limit_signin),
):
    return await service.sign_in(data.email, data.password)


@router.post("/signout", response_model=MessageResponse)
async def sign_out(
    current_user: CurrentUser = Depends(get_current_user),
    service: AccountService = Depends(get_account_service),
):
    await service.sign_out(current_user)
    return MessageResponse(message="Signed out")


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: CurrentUser = Depends(get_current_user)):
    return to_user_response(current_user)


@router.patch("/profile", response_model=UserResponse)
async def update_profile(
    data: ProfileUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    service: AccountService = Depends(get_account_service),
):
    return await service.update_profile(current_user, data.name, data.email, data.password)


@router.post("/verify-email", response_model=MessageResponse)
async def verify_email(
    data: VerifyEmailRequest,
    service: AccountService = Depends(get_account_service),
):
    """Confirm the userId/secret pair from the verification link"""
    await service.verify_email(data.userId, data.secret)
    return MessageResponse(message="Email verified")


@router.post("/resend-verification", response_model=MessageResponse)
async def resend_verification(
    data: ResendVerificationRequest,
    service: AccountService = Depends(get_account_service),
    _: None = Depends(rate_limit_recovery),
):
    await service.resend_verification(data.email, data.password)
    return MessageResponse(message="Verification email sent")


@router.post("/recovery", response_model=MessageResponse)
async def request_recovery(
    data: RecoveryRequest,
    service: AccountService = Depends(get_account_service),
    _: None = Depends(rate_limit_recovery),
):
    await service.request_password_recovery(data.email)
    return MessageResponse(
        message="If an account exists with this email, you will receive a password reset link."
    )


@router.put("/recovery", response_model=MessageResponse)
async def complete_recovery(
    data: RecoveryCompleteRequest,
    service: AccountService = Depends(get_account_service),
):
    await service.complete_password_recovery(data.userId, data.secret, data.password)
    return MessageResponse(message="Password updated")


@router.get("/oauth/{provider}", response_model=OAuthStartResponse)
async def start_oauth(provider: str, service: AccountService = Depends(get_account_service)):
    """URL to send the browser to for Google/Facebook sign-in"""
    return OAuthStartResponse(url=service.oauth_url(provider))


@router.post("/oauth/callback", response_model=SessionResponse)
async def oauth_callback(
    data: OAuthCallbackRequest,
    service: AccountService = Depends(get_account_service),
):
    return await service.complete_oauth(data.userId, data.secret)
