import itertools
import json
import os
from datetime import datetime, timezone
from typing import Optional

import httpx
import pytest

# Must be set before the app (and its rate limiters) are imported
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

from fastapi.testclient import TestClient  # noqa: E402

from servicehub.appwrite_client import AppwriteClient, get_appwrite_client  # noqa: E402
from servicehub.auth import get_current_user  # noqa: E402
from servicehub.cache import cache  # noqa: E402
from servicehub.main import app  # noqa: E402
from servicehub.schemas import CurrentUser  # noqa: E402

ENDPOINT = "https://appwrite.servicehub.io/v1"
DATABASE_ID = "servicehub-db"

APPOINTMENT_ATTRIBUTES = {
    "name",
    "email",
    "city",
    "age",
    "serviceName",
    "serviceNameFull",
    "serviceDescription",
    "servicePrice",
    "serviceDuration",
    "bookingDate",
    "bookingTime",
    "consentForm",
    "userId",
    "status",
    "rescheduleRequestedDate",
    "rescheduleRequestedTime",
}


def error(status: int, message: str, type_: str) -> httpx.Response:
    return httpx.Response(status, json={"message": message, "code": status, "type": type_})


class FakeAppwrite:
    """
    In-process stand-in for the Appwrite REST API.

    Collections with a schema reject unknown attributes and queries on missing
    attributes the way Appwrite does; collections without one accept anything.
    """

    def __init__(self):
        self.schemas: dict[str, Optional[set]] = {
            "sh-purchases": {"purchaseDate", "purchaseType", "item", "userEmail", "userId"},
            "sh-items": {"itemName", "itemID", "itemType", "userEmail", "userId", "purchaseDate"},
            "sh-users": {"name", "email"},
            "appointments": set(APPOINTMENT_ATTRIBUTES),
        }
        self.item_id_range: Optional[tuple[int, int]] = None
        # (status, message, type) returned for every database call when set
        self.database_error: Optional[tuple[int, str, str]] = None
        self.documents: dict[str, dict[str, dict]] = {}
        self.accounts: dict[str, dict] = {}
        self.sessions: dict[str, str] = {}
        self.requests: list[tuple[str, str, Optional[dict]]] = []
        self._ids = itertools.count(1)

    # ------------------------------------------------------------------
    # Test helpers
    # ------------------------------------------------------------------

    def add_account(self, email: str, password: str, name: str = "", verified: bool = True) -> dict:
        account = {
            "$id": f"acct{next(self._ids)}",
            "email": email,
            "name": name,
            "password": password,
            "emailVerification": verified,
        }
        self.accounts[email] = account
        return account

    def add_session(self, email: str) -> str:
        secret = f"secret{next(self._ids)}"
        self.sessions[secret] = email
        return secret

    def add_document(self, collection_id: str, data: dict, document_id: Optional[str] = None) -> dict:
        document_id = document_id or f"doc{next(self._ids)}"
        document = {
            "$id": document_id,
            "$collectionId": collection_id,
            "$createdAt": datetime.now(timezone.utc).isoformat(),
            **data,
        }
        self.documents.setdefault(collection_id, {})[document_id] = document
        return document

    def collection(self, collection_id: str) -> list[dict]:
        return list(self.documents.get(collection_id, {}).values())

    def writes(self, method: str, collection_id: str) -> list[dict]:
        suffix = f"/collections/{collection_id}/documents"
        return [
            body
            for m, path, body in self.requests
            if m == method and (path.endswith(suffix) or f"{suffix}/" in path)
        ]

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path.removeprefix("/v1")
        body = json.loads(request.content) if request.content else None
        self.requests.append((request.method, path, body))

        if path == "/health":
            return httpx.Response(200, json={"status": "pass"})
        if path.startswith("/account"):
            return self._account(request, path, body)
        if path.startswith("/databases/"):
            if self.database_error:
                return error(*self.database_error)
            return self._documents(request, path, body)
        return error(404, "Route not found", "general_route_not_found")

    def _unknown_keys(self, collection_id: str, data: dict) -> list[str]:
        schema = self.schemas.get(collection_id)
        if schema is None:
            return []
        return [key for key in data if key not in schema]

    def _documents(self, request: httpx.Request, path: str, body: Optional[dict]) -> httpx.Response:
        parts = path.strip("/").split("/")
        # databases/{db}/collections/{col}/documents[/{id}]
        collection_id = parts[3]
        document_id = parts[5] if len(parts) > 5 else None
        store = self.documents.setdefault(collection_id, {})

        if request.method == "POST":
            data = body["data"]
            unknown = self._unknown_keys(collection_id, data)
            if unknown:
                return error(
                    400,
                    f'Invalid document structure: Unknown attribute: "{unknown[0]}"',
                    "document_invalid_structure",
                )
            if self.item_id_range and collection_id == "sh-items":
                low, high = self.item_id_range
                if not low <= data.get("itemID", low) <= high:
                    return error(
                        400,
                        f'Invalid document structure: Attribute "itemID" has invalid format. '
                        f"Value must be a valid range between {low} and {high}",
                        "document_invalid_structure",
                    )
            new_id = body["documentId"]
            if new_id == "unique()":
                new_id = None
            elif new_id in store:
                return error(
                    409,
                    "Document with the requested ID already exists.",
                    "document_already_exists",
                )
            document = self.add_document(collection_id, data, new_id)
            return httpx.Response(201, json=document)

        if request.method == "GET" and document_id is None:
            return self._list(collection_id, request.url.params.get_list("queries[]"))

        if document_id not in store:
            return error(
                404, "Document with the requested ID could not be found.", "document_not_found"
            )

        if request.method == "GET":
            return httpx.Response(200, json=store[document_id])

        if request.method == "PATCH":
            data = body["data"]
            unknown = self._unknown_keys(collection_id, data)
            if unknown:
                return error(
                    400,
                    f'Invalid document structure: Unknown attribute: "{unknown[0]}"',
                    "document_invalid_structure",
                )
            store[document_id].update(data)
            return httpx.Response(200, json=store[document_id])

        if request.method == "DELETE":
            del store[document_id]
            return httpx.Response(204)

        return error(405, "Method not allowed", "general_not_implemented")

    def _list(self, collection_id: str, raw_queries: list[str]) -> httpx.Response:
        schema = self.schemas.get(collection_id)
        documents = self.collection(collection_id)
        limit = 25
        offset = 0
        for raw in raw_queries:
            query = json.loads(raw)
            attribute = query.get("attribute")
            if attribute and schema is not None and attribute not in schema:
                return error(
                    400,
                    f"Invalid query: Attribute not found in schema: {attribute}",
                    "general_query_invalid",
                )
            method = query["method"]
            if method == "equal":
                documents = [d for d in documents if d.get(attribute) in query["values"]]
            elif method == "orderAsc":
                documents.sort(key=lambda d: d.get(attribute) or "")
            elif method == "limit":
                limit = query["values"][0]
            elif method == "offset":
                offset = query["values"][0]
        total = len(documents)
        documents = documents[offset : offset + limit]
        return httpx.Response(200, json={"total": total, "documents": documents})

    def _session_account(self, request: httpx.Request) -> Optional[dict]:
        email = self.sessions.get(request.headers.get("X-Appwrite-Session", ""))
        return self.accounts.get(email) if email else None

    @staticmethod
    def _public(account: dict) -> dict:
        return {k: v for k, v in account.items() if k != "password"}

    def _account(self, request: httpx.Request, path: str, body: Optional[dict]) -> httpx.Response:
        method = request.method

        if path == "/account" and method == "POST":
            if body["email"] in self.accounts:
                return error(
                    409,
                    "A user with the same id, email, or phone already exists in this project.",
                    "user_already_exists",
                )
            account = self.add_account(body["email"], body["password"], body.get("name", ""), verified=False)
            return httpx.Response(201, json=self._public(account))

        if path == "/account/sessions/email" and method == "POST":
            account = self.accounts.get(body["email"])
            if not account or account["password"] != body["password"]:
                return error(
                    401,
                    "Invalid credentials. Please check the email and password.",
                    "user_invalid_credentials",
                )
            secret = self.add_session(account["email"])
            return httpx.Response(
                201, json={"$id": secret, "secret": secret, "expire": "2027-01-01T00:00:00.000+00:00"}
            )

        if path == "/account/recovery":
            if method == "POST" and body["email"] not in self.accounts:
                return error(404, "User with the requested ID could not be found.", "user_not_found")
            return httpx.Response(201, json={"$id": "token"})

        if path == "/account/verification" and method == "PUT":
            return httpx.Response(200, json={"$id": "token"})

        account = self._session_account(request)
        if account is None:
            return error(
                401,
                "User (role: guests) missing scope (account)",
                "general_unauthorized_scope",
            )

        if path == "/account" and method == "GET":
            return httpx.Response(200, json=self._public(account))
        if path.startswith("/account/sessions/") and method == "DELETE":
            self.sessions.pop(request.headers["X-Appwrite-Session"], None)
            return httpx.Response(204)
        if path == "/account/verification" and method == "POST":
            return httpx.Response(201, json={"$id": "token"})
        if path == "/account/name" and method == "PATCH":
            account["name"] = body["name"]
            return httpx.Response(200, json=self._public(account))
        return error(404, "Route not found", "general_route_not_found")


@pytest.fixture(autouse=True)
def servicehub_env(monkeypatch):
    monkeypatch.setenv("APPWRITE_DATABASE_ID", DATABASE_ID)
    for name in (
        "APPWRITE_PURCHASES_COLLECTION_ID",
        "APPWRITE_ITEMS_COLLECTION_ID",
        "APPWRITE_USERS_COLLECTION_ID",
        "APPWRITE_APPOINTMENTS_COLLECTION_ID",
        "RESEND_API_KEY",
        "SMTP_HOST",
        "SMTP_PORT",
        "SMTP_USER",
        "SMTP_PASS",
        "REDIS_URL",
        "REDIS_HOST",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(cache, "use_redis", False)
    cache._memory.clear()
    yield
    cache._memory.clear()


@pytest.fixture
def fake_appwrite():
    return FakeAppwrite()


@pytest.fixture
def appwrite_client(fake_appwrite):
    return AppwriteClient(
        endpoint=ENDPOINT,
        project_id="servicehub-test",
        api_key="test-api-key",
        transport=httpx.MockTransport(fake_appwrite.handler),
    )


@pytest.fixture
def current_user():
    return CurrentUser(
        id="user_ann",
        email="ann@servicehub.io",
        name="Ann Lee",
        email_verified=True,
        session_secret="session-ann",
    )


@pytest.fixture
def api(appwrite_client):
    """TestClient talking to the fake backend, with real session checks"""
    app.dependency_overrides[get_appwrite_client] = lambda: appwrite_client
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def client(api, current_user):
    """TestClient with the current user already signed in"""
    app.dependency_overrides[get_current_user] = lambda: current_user
    return api
