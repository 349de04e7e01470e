import asyncio
import logging
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from . import config
from .appwrite_client import AppwriteClient, AppwriteException, get_appwrite_client
from .schemas import CurrentUser

logger = logging.getLogger(__name__)

security = HTTPBearer()


def user_from_account(account: dict, session_secret: Optional[str] = None) -> CurrentUser:
    """Map an Appwrite account payload to CurrentUser"""
    return CurrentUser(
        id=account.get("$id", ""),
        email=account.get("email", ""),
        name=account.get("name") or None,
        email_verified=account.get("emailVerification") is True,
        session_secret=session_secret,
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    client: AppwriteClient = Depends(get_appwrite_client),
) -> CurrentUser:
    """Get current user from the Appwrite session secret in the Bearer token"""

    if not credentials or not credentials.credentials:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated. Please provide a valid Bearer token in the Authorization header.",
        )

    session_secret = credentials.credentials

    try:
        account = await asyncio.wait_for(
            client.session_client(session_secret).get_account(),
            timeout=config.SESSION_CHECK_TIMEOUT,
        )
    except asyncio.TimeoutError as e:
        logger.warning(f"⚠️ Session check timed out after {config.SESSION_CHECK_TIMEOUT}s")
        raise HTTPException(status_code=401, detail="Session check timeout") from e
    except AppwriteException as e:
        logger.info(f"ℹ️ Session rejected by Appwrite: {e.message}")
        raise HTTPException(status_code=401, detail="Session expired or invalid. Please sign in again.") from e

    user = user_from_account(account, session_secret)
    if not user.email_verified:
        # Unverified users may still sign in; verification is encouraged, not enforced
        logger.debug(f"User {user.email} has not verified their email")

    logger.debug(f"✅ User authenticated: {user.email}")
    return user
