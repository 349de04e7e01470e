"""Account service - sign-up, sign-in and profile management via Appwrite Auth"""

import logging
from typing import Optional

import httpx
from fastapi import HTTPException

from ... import config
from ...appwrite_client import ID, AppwriteClient, AppwriteException
from ...auth import user_from_account
from ...schemas import CurrentUser, UserResponse
from .repository import UserRepository
from .schemas import SessionResponse, SignUpResponse

logger = logging.getLogger(__name__)

OAUTH_PROVIDERS = ("google", "facebook")

PLATFORM_HINT = (
    "Platform not configured. Please add your site as a platform in Appwrite (Auth → Platforms)."
)


def to_user_response(user: CurrentUser) -> UserResponse:
    return UserResponse(
        id=user.id, email=user.email, name=user.name, email_verified=user.email_verified
    )


def friendly_auth_error(err: AppwriteException, default: str, conflict: Optional[str] = None) -> str:
    """Turn common Appwrite auth failures into user-facing messages"""
    if err.type == "general_unauthorized_scope":
        return PLATFORM_HINT
    if err.code == 401:
        return "Invalid email or password"
    if conflict and err.code == 409:
        return conflict
    return err.message or default


class AccountService:
    """Service layer for authentication and profile operations"""

    def __init__(self, client: AppwriteClient):
        self.client = client

    async def sign_up(self, email: str, password: str, name: Optional[str] = None) -> SignUpResponse:
        """
        Create the account, send a verification email and mirror the user into
        the users collection. Verification and mirroring are best-effort.
        """
        try:
            account = await self.client.create_account(ID.unique(), email, password, name)
            session = await self.client.create_email_password_session(email, password)
        except AppwriteException as e:
            logger.error(f"❌ Sign up failed for {email}: {e.message}")
            raise HTTPException(
                status_code=e.code if e.code in (400, 401, 409) else 400,
                detail=friendly_auth_error(
                    e, "Failed to create account", conflict="An account with this email already exists"
                ),
            ) from e

        user_client = self.client.session_client(session.get("secret"))

        try:
            await user_client.create_verification(f"{config.FRONTEND_URL}/verify-email")
            logger.info(f"📧 Verification email requested for {email}")
        except AppwriteException as e:
            logger.error(f"❌ Verification email error for {email}: {e.message}")

        try:
            repo = UserRepository(self.client, config.get_database_config())
            await repo.ensure_user_document(account.get("$id"), email, name)
            logger.info(f"✅ User {email} saved to users collection")
        except Exception as e:
            logger.error(f"❌ Failed to save user to users collection: {e}")

        # The user signs in again after verifying their email
        try:
            await user_client.delete_session("current")
        except AppwriteException as e:
            logger.debug(f"Temporary session cleanup failed: {e.message}")

        return SignUpResponse(user_id=account.get("$id", ""), needs_verification=True)

    async def sign_in(self, email: str, password: str) -> SessionResponse:
        try:
            session = await self.client.create_email_password_session(email, password)
            account = await self.client.session_client(session.get("secret")).get_account()
        except AppwriteException as e:
            logger.info(f"ℹ️ Sign in failed for {email}: {e.message}")
            raise HTTPException(
                status_code=401 if e.code == 401 else 400,
                detail=friendly_auth_error(e, "Invalid email or password"),
            ) from e

        user = user_from_account(account, session.get("secret"))
        if not user.email_verified:
            logger.warning(f"User {email} signed in but email is not verified")

        return SessionResponse(
            session_secret=session.get("secret", ""),
            expires=session.get("expire"),
            user=to_user_response(user),
        )

    async def sign_out(self, user: CurrentUser) -> None:
        try:
            await self.client.session_client(user.session_secret).delete_session("current")
        except AppwriteException as e:
            # Session is gone either way from the caller's point of view
            logger.error(f"Error signing out: {e.message}")

    async def verify_email(self, user_id: str, secret: str) -> None:
        try:
            await self.client.session_client().update_verification(user_id, secret)
        except AppwriteException as e:
            logger.error(f"❌ Email verification error: {e.message}")
            raise HTTPException(
                status_code=400,
                detail=e.message or "Failed to verify email. The link may have expired.",
            ) from e
        logger.info(f"✅ Email verified for user {user_id}")

    async def resend_verification(self, email: str, password: str) -> None:
        try:
            session = await self.client.create_email_password_session(email, password)
            user_client = self.client.session_client(session.get("secret"))
            await user_client.create_verification(f"{config.FRONTEND_URL}/verify-email")
            await user_client.delete_session("current")
        except AppwriteException as e:
            raise HTTPException(
                status_code=401 if e.code == 401 else 400,
                detail=friendly_auth_error(e, "Failed to resend verification email"),
            ) from e

    async def request_password_recovery(self, email: str) -> None:
        try:
            await self.client.session_client().create_recovery(
                email, f"{config.FRONTEND_URL}/reset-password"
            )
        except AppwriteException as e:
            # Unknown addresses are not revealed to the caller
            if e.code == 404:
                logger.info(f"Password recovery requested for unknown email {email}")
                return
            raise HTTPException(
                status_code=400, detail=e.message or "Failed to send password reset email"
            ) from e

    async def complete_password_recovery(self, user_id: str, secret: str, password: str) -> None:
        try:
            await self.client.session_client().update_recovery(user_id, secret, password)
        except AppwriteException as e:
            raise HTTPException(
                status_code=400, detail=e.message or "Failed to reset password"
            ) from e

    async def update_profile(
        self,
        user: CurrentUser,
        name: str,
        email: Optional[str] = None,
        password: Optional[str] = None,
    ) -> UserResponse:
        user_client = self.client.session_client(user.session_secret)
        try:
            await user_client.update_name(name)
            if email and email != user.email:
                if not password:
                    raise HTTPException(
                        status_code=400, detail="Current password is required to change email"
                    )
                await user_client.update_email(email, password)
            account = await user_client.get_account()
        except AppwriteException as e:
            logger.error(f"❌ Update profile error: {e.message}")
            raise HTTPException(
                status_code=400, detail=e.message or "Failed to update profile"
            ) from e

        return to_user_response(user_from_account(account))

    def oauth_url(self, provider: str) -> str:
        if provider not in OAUTH_PROVIDERS:
            raise HTTPException(status_code=404, detail=f"Unsupported OAuth provider: {provider}")
        success = f"{config.FRONTEND_URL}/auth/callback"
        failure = f"{config.FRONTEND_URL}/signin"
        return self.client.oauth2_token_url(provider, success, failure)

    async def complete_oauth(self, user_id: str, secret: str) -> SessionResponse:
        try:
            session = await self.client.create_session(user_id, secret)
            account = await self.client.session_client(session.get("secret")).get_account()
        except AppwriteException as e:
            logger.error(f"❌ OAuth callback error: {e.message}")
            raise HTTPException(status_code=401, detail=e.message or "OAuth sign-in failed") from e

        user = user_from_account(account, session.get("secret"))
        return SessionResponse(
            session_secret=session.get("secret", ""),
            expires=session.get("expire"),
            user=to_user_response(user),
        )

    async def check_connection(self) -> dict:
        """Probe the backend the same way the diagnostics script does"""
        try:
            health = await self.client.health()
            return {"reachable": True, "status": health.get("status", "pass")}
        except AppwriteException as e:
            # 401 means the endpoint answered but the key lacks the health scope
            return {"reachable": e.code == 401, "status": "error", "error": e.message}
        except httpx.HTTPError as e:
            return {"reachable": False, "status": "error", "error": str(e)}
