"""
Schema-tolerant document writes

The document collections are configured by hand in the Appwrite console and
drift independently of this code, so writes try a preferred payload first and
fall back to reduced/alternate payloads when the remote schema rejects an
attribute. Only structural errors are retried; everything else propagates.
"""

import logging
from typing import Iterable, Optional

from .appwrite_client import ID, AppwriteClient, AppwriteException

logger = logging.getLogger(__name__)


def _message(err: Exception) -> str:
    return (getattr(err, "message", None) or str(err) or "").lower()


def is_invalid_value_error(err: Exception) -> bool:
    """Attribute exists but the value breaks its format/range constraint"""
    msg = _message(err)
    return "invalid format" in msg or "valid range" in msg


def is_unknown_attribute_error(err: Exception) -> bool:
    """Write rejected because the payload doesn't match the collection attributes"""
    msg = _message(err)
    if is_invalid_value_error(err):
        return False
    return "unknown attribute" in msg or "invalid document structure" in msg


def is_missing_query_attribute_error(err: Exception) -> bool:
    """Query rejected because it filters/orders on an attribute the collection lacks"""
    msg = _message(err)
    return "attribute not found in schema" in msg or is_unknown_attribute_error(err)


def is_item_id_range_error(err: Exception) -> bool:
    msg = _message(err)
    return 'attribute "itemid"' in msg and "valid range" in msg


def is_conflict_error(err: Exception) -> bool:
    if isinstance(err, AppwriteException) and err.code == 409:
        return True
    msg = _message(err)
    return "already exists" in msg or "document with the requested id" in msg


def unique_candidates(candidates: Iterable[dict]) -> list[dict]:
    """Drop repeated payload shapes while keeping precedence order"""
    seen: list[dict] = []
    for candidate in candidates:
        if candidate not in seen:
            seen.append(candidate)
    return seen


async def create_first_accepted(
    client: AppwriteClient,
    database_id: str,
    collection_id: str,
    candidates: Iterable[dict],
    permissions: Optional[list[str]] = None,
    document_id: Optional[str] = None,
) -> dict:
    """
    Create a document using the first candidate payload the schema accepts.

    Raises the last structural error when every candidate is rejected, and
    any non-structural error immediately.
    """
    last_error: Optional[AppwriteException] = None
    for candidate in unique_candidates(candidates):
        try:
            return await client.create_document(
                database_id,
                collection_id,
                document_id or ID.unique(),
                candidate,
                permissions,
            )
        except AppwriteException as e:
            if not is_unknown_attribute_error(e):
                raise
            logger.debug(
                f"Schema rejected {sorted(candidate)} for {collection_id}: {e.message}"
            )
            last_error = e

    if last_error is None:
        raise ValueError("No candidate payloads provided")
    raise last_error


async def update_first_accepted(
    client: AppwriteClient,
    database_id: str,
    collection_id: str,
    document_id: str,
    candidates: Iterable[dict],
) -> Optional[tuple[dict, dict]]:
    """
    Update a document with the first candidate payload the schema accepts.

    Returns (document, accepted_payload), or None if no candidate fits.
    """
    for candidate in unique_candidates(candidates):
        try:
            document = await client.update_document(database_id, collection_id, document_id, candidate)
            return document, candidate
        except AppwriteException as e:
            if not is_unknown_attribute_error(e):
                raise
            logger.debug(f"Schema rejected update {sorted(candidate)} for {collection_id}: {e.message}")
    return None


def rejected_fields(err: Exception, fields: Iterable[str]) -> list[str]:
    """Optional fields named in an unknown-attribute error message"""
    msg = _message(err)
    quoted = [f for f in fields if f'"{f.lower()}"' in msg]
    if quoted:
        return quoted
    return [f for f in fields if f.lower() in msg]


async def create_dropping_rejected(
    client: AppwriteClient,
    database_id: str,
    collection_id: str,
    base: dict,
    optional: dict,
    permissions: Optional[list[str]] = None,
) -> tuple[dict, dict]:
    """
    Create a document with as many optional fields as the schema supports.

    Each unknown-attribute rejection drops only the optional fields it names;
    a rejection naming none of them drops all remaining optional fields.
    Returns (document, accepted_payload).
    """
    remaining = dict(optional)
    while True:
        payload = {**base, **remaining}
        try:
            document = await client.create_document(
                database_id, collection_id, ID.unique(), payload, permissions
            )
            return document, payload
        except AppwriteException as e:
            if not remaining or not is_unknown_attribute_error(e):
                raise
            dropped = rejected_fields(e, remaining) or list(remaining)
            logger.info(f"{collection_id} schema rejected {dropped}, retrying without them")
            for field in dropped:
                remaining.pop(field, None)
