"""
Appwrite REST client

Thin async wrapper over the hosted Appwrite auth + database API.
Server calls authenticate with the project API key; account calls made on
behalf of a signed-in user carry that user's session secret instead.
"""

import json
import logging
import re
from typing import Any, Optional
from urllib.parse import urlencode

import httpx

from . import config

logger = logging.getLogger(__name__)


class AppwriteException(Exception):
    """Error response returned by the Appwrite API"""

    def __init__(
        self,
        message: str,
        code: Optional[int] = None,
        type: Optional[str] = None,
        response: Optional[dict] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.type = type
        self.response = response


class ID:
    """Document/user ID helpers"""

    @staticmethod
    def unique() -> str:
        # Appwrite generates the ID server-side for this sentinel
        return "unique()"

    @staticmethod
    def custom(value: str) -> str:
        return value


class Query:
    """Query strings in the JSON format accepted by Appwrite 1.5+"""

    @staticmethod
    def _build(method: str, attribute: Optional[str] = None, values: Optional[list] = None) -> str:
        query: dict[str, Any] = {"method": method}
        if attribute is not None:
            query["attribute"] = attribute
        if values is not None:
            query["values"] = values
        return json.dumps(query)

    @staticmethod
    def equal(attribute: str, value: Any) -> str:
        values = value if isinstance(value, list) else [value]
        return Query._build("equal", attribute, values)

    @staticmethod
    def order_asc(attribute: str) -> str:
        return Query._build("orderAsc", attribute)

    @staticmethod
    def limit(value: int) -> str:
        return Query._build("limit", values=[value])

    @staticmethod
    def offset(value: int) -> str:
        return Query._build("offset", values=[value])


def sanitize_id(value: str) -> str:
    """Appwrite IDs and roles only allow a-z, A-Z, 0-9 and underscore"""
    return re.sub(r"[^a-zA-Z0-9_]", "_", value or "")


def permissions_for_user(user_id: Optional[str]) -> Optional[list[str]]:
    """Read/update/delete permissions for the owning user only"""
    if not user_id:
        return None
    role = f"user:{sanitize_id(user_id)}"
    return [f'read("{role}")', f'update("{role}")', f'delete("{role}")']


class AppwriteClient:
    """Client for the Appwrite REST API"""

    def __init__(
        self,
        endpoint: str,
        project_id: str,
        api_key: Optional[str] = None,
        session: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.endpoint = endpoint.rstrip("/")
        self.project_id = project_id
        self.api_key = api_key
        self.session = session
        self._transport = transport

    def session_client(self, session: Optional[str] = None) -> "AppwriteClient":
        """
        Client acting as the given session (or as a guest when session is None).
        Account endpoints reject API keys, so the key is not carried over.
        """
        return AppwriteClient(
            endpoint=self.endpoint,
            project_id=self.project_id,
            session=session,
            transport=self._transport,
        )

    def _headers(self) -> dict[str, str]:
        headers = {
            "X-Appwrite-Project": self.project_id,
            "X-Appwrite-Response-Format": "1.5.0",
            "Content-Type": "application/json",
        }
        if self.api_key:
            headers["X-Appwrite-Key"] = self.api_key
        if self.session:
            headers["X-Appwrite-Session"] = self.session
        return headers

    async def call(
        self,
        method: str,
        path: str,
        params: Optional[dict] = None,
        body: Optional[dict] = None,
    ) -> dict:
        """Perform an API call and return the decoded JSON body"""
        async with httpx.AsyncClient(transport=self._transport, timeout=30.0) as client:
            response = await client.request(
                method,
                f"{self.endpoint}{path}",
                params=params,
                json=body,
                headers=self._headers(),
            )

        if response.status_code >= 400:
            try:
                data = response.json()
            except ValueError:
                data = {"message": response.text}
            message = data.get("message") or f"HTTP {response.status_code}"
            logger.debug(f"Appwrite {method} {path} failed: {response.status_code} {message}")
            raise AppwriteException(
                message,
                code=data.get("code", response.status_code),
                type=data.get("type"),
                response=data,
            )

        if response.status_code == 204 or not response.content:
            return {}
        return response.json()

    # ------------------------------------------------------------------
    # Databases
    # ------------------------------------------------------------------

    def _documents_path(self, database_id: str, collection_id: str) -> str:
        return f"/databases/{database_id}/collections/{collection_id}/documents"

    async def create_document(
        self,
        database_id: str,
        collection_id: str,
        document_id: str,
        data: dict,
        permissions: Optional[list[str]] = None,
    ) -> dict:
        body: dict[str, Any] = {"documentId": document_id, "data": data}
        if permissions is not None:
            body["permissions"] = permissions
        return await self.call("POST", self._documents_path(database_id, collection_id), body=body)

    async def list_documents(
        self, database_id: str, collection_id: str, queries: Optional[list[str]] = None
    ) -> dict:
        params = {"queries[]": queries} if queries else None
        return await self.call("GET", self._documents_path(database_id, collection_id), params=params)

    async def get_document(self, database_id: str, collection_id: str, document_id: str) -> dict:
        path = f"{self._documents_path(database_id, collection_id)}/{document_id}"
        return await self.call("GET", path)

    async def update_document(
        self, database_id: str, collection_id: str, document_id: str, data: dict
    ) -> dict:
        path = f"{self._documents_path(database_id, collection_id)}/{document_id}"
        return await self.call("PATCH", path, body={"data": data})

    async def delete_document(self, database_id: str, collection_id: str, document_id: str) -> dict:
        path = f"{self._documents_path(database_id, collection_id)}/{document_id}"
        return await self.call("DELETE", path)

    # ------------------------------------------------------------------
    # Account
    # ------------------------------------------------------------------

    async def create_account(
        self, user_id: str, email: str, password: str, name: Optional[str] = None
    ) -> dict:
        body = {"userId": user_id, "email": email, "password": password}
        if name:
            body["name"] = name
        return await self.call("POST", "/account", body=body)

    async def create_email_password_session(self, email: str, password: str) -> dict:
        return await self.call(
            "POST", "/account/sessions/email", body={"email": email, "password": password}
        )

    async def create_session(self, user_id: str, secret: str) -> dict:
        """Exchange a token (e.g. from an OAuth2 callback) for a session"""
        return await self.call(
            "POST", "/account/sessions/token", body={"userId": user_id, "secret": secret}
        )

    async def get_account(self) -> dict:
        return await self.call("GET", "/account")

    async def delete_session(self, session_id: str = "current") -> dict:
        return await self.call("DELETE", f"/account/sessions/{session_id}")

    async def create_verification(self, url: str) -> dict:
        return await self.call("POST", "/account/verification", body={"url": url})

    async def update_verification(self, user_id: str, secret: str) -> dict:
        return await self.call(
            "PUT", "/account/verification", body={"userId": user_id, "secret": secret}
        )

    async def create_recovery(self, email: str, url: str) -> dict:
        return await self.call("POST", "/account/recovery", body={"email": email, "url": url})

    async def update_recovery(self, user_id: str, secret: str, password: str) -> dict:
        return await self.call(
            "PUT",
            "/account/recovery",
            body={"userId": user_id, "secret": secret, "password": password},
        )

    async def update_name(self, name: str) -> dict:
        return await self.call("PATCH", "/account/name", body={"name": name})

    async def update_email(self, email: str, password: str) -> dict:
        return await self.call("PATCH", "/account/email", body={"email": email, "password": password})

    def oauth2_token_url(self, provider: str, success: str, failure: str) -> str:
        """URL the browser is sent to in order to start an OAuth2 sign-in"""
        query = urlencode({"project": self.project_id, "success": success, "failure": failure})
        return f"{self.endpoint}/account/tokens/oauth2/{provider}?{query}"

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------

    async def health(self) -> dict:
        return await self.call("GET", "/health")


def get_appwrite_client() -> AppwriteClient:
    """Dependency injection for the server-side Appwrite client"""
    if not config.APPWRITE_PROJECT_ID:
        logger.warning("⚠️ APPWRITE_PROJECT_ID not configured")
    return AppwriteClient(
        endpoint=config.APPWRITE_ENDPOINT,
        project_id=config.APPWRITE_PROJECT_ID,
        api_key=config.APPWRITE_API_KEY,
    )
