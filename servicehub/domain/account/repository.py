"""User repository - mirror of auth users in the users collection"""

import logging
from typing import Optional

from ...appwrite_client import ID, AppwriteClient, AppwriteException, permissions_for_user, sanitize_id
from ...config import DatabaseConfig
from ...schema_tolerance import create_first_accepted, is_conflict_error

logger = logging.getLogger(__name__)

# Required by some console-created users collections; real credentials live in Appwrite Auth
PASSWORD_PLACEHOLDER = "TESTPASS"  # noqa: S105


def user_document_candidates(name: str, email: str) -> list[dict]:
    """Payload shapes seen across users collections, most specific first"""
    return [
        {"name": name, "email": email},
        {"Name": name, "Email": email, "Pass": PASSWORD_PLACEHOLDER},
        {"Name": name, "Email": email, "UserEmail": email, "Pass": PASSWORD_PLACEHOLDER},
        {"name": name, "userEmail": email, "Pass": PASSWORD_PLACEHOLDER},
        {"Email": email, "Pass": PASSWORD_PLACEHOLDER},
        {"UserEmail": email, "Pass": PASSWORD_PLACEHOLDER},
        {"userEmail": email, "Pass": PASSWORD_PLACEHOLDER},
    ]


class UserRepository:
    """Repository for the users collection"""

    def __init__(self, client: AppwriteClient, db: DatabaseConfig):
        self.client = client
        self.db = db

    @staticmethod
    def document_id(user_id: str) -> str:
        return f"user_{sanitize_id(user_id)}"[:36]

    async def ensure_user_document(
        self, user_id: Optional[str], email: Optional[str], name: Optional[str]
    ) -> Optional[dict]:
        """
        Create the user's row keyed by their auth ID.
        Returns None when the row already exists.
        """
        if not user_id:
            return None

        email = email or ""
        name = (name or email.split("@")[0] or "").strip()

        try:
            return await create_first_accepted(
                self.client,
                self.db.database_id,
                self.db.users_collection_id,
                user_document_candidates(name, email),
                permissions=permissions_for_user(user_id),
                document_id=ID.custom(self.document_id(user_id)),
            )
        except AppwriteException as e:
            if is_conflict_error(e):
                return None
            raise
