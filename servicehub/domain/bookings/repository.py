"""Booking repository - appointment documents in the appointments collection"""

import logging
from typing import Optional

from ...appwrite_client import AppwriteClient, AppwriteException, Query
from ...config import DatabaseConfig
from ...schema_tolerance import (
    create_dropping_rejected,
    is_missing_query_attribute_error,
    update_first_accepted,
)

logger = logging.getLogger(__name__)

# Owner fallback when the collection has no userId attribute
EMAIL_FIELDS = ("email", "Email", "userEmail", "UserEmail")

# Appwrite returns 25 documents per page unless told otherwise
PAGE_SIZE = 100


class BookingRepository:
    """Repository for appointment documents"""

    def __init__(self, client: AppwriteClient, db: DatabaseConfig):
        self.client = client
        self.db = db

    @property
    def collection_id(self) -> str:
        return self.db.appointments_collection_id

    async def create(
        self, base: dict, optional: dict, permissions: Optional[list[str]] = None
    ) -> tuple[dict, dict]:
        """Create an appointment keeping every optional field the schema accepts"""
        return await create_dropping_rejected(
            self.client, self.db.database_id, self.collection_id, base, optional, permissions
        )

    async def _list(self, queries: list[str]) -> list[dict]:
        """All pages of documents matching the queries"""
        documents: list[dict] = []
        while True:
            response = await self.client.list_documents(
                self.db.database_id,
                self.collection_id,
                [*queries, Query.limit(PAGE_SIZE), Query.offset(len(documents))],
            )
            page = response.get("documents", [])
            documents.extend(page)
            if not page or len(documents) >= response.get("total", 0):
                return documents

    async def list_for_user(self, user_id: str, email: Optional[str]) -> list[dict]:
        """Appointments owned by the user, by userId or else by email"""
        try:
            return await self._list([Query.equal("userId", user_id), Query.order_asc("bookingDate")])
        except AppwriteException as e:
            if not is_missing_query_attribute_error(e) or not email:
                raise
            logger.info("Appointments have no userId attribute, querying by email")

        last_error: Optional[AppwriteException] = None
        for field in EMAIL_FIELDS:
            try:
                return await self._list([Query.equal(field, email), Query.order_asc("bookingDate")])
            except AppwriteException as e:
                if not is_missing_query_attribute_error(e):
                    raise
                last_error = e
        raise last_error

    async def get(self, document_id: str) -> dict:
        return await self.client.get_document(self.db.database_id, self.collection_id, document_id)

    async def update_first_accepted(
        self, document_id: str, candidates: list[dict]
    ) -> Optional[tuple[dict, dict]]:
        return await update_first_accepted(
            self.client, self.db.database_id, self.collection_id, document_id, candidates
        )

    async def delete(self, document_id: str) -> None:
        await self.client.delete_document(self.db.database_id, self.collection_id, document_id)
