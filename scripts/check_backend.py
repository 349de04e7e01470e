#!/usr/bin/env python3
"""
Script to check Appwrite connectivity and database configuration
Usage: python scripts/check_backend.py
"""

import asyncio

from servicehub import config
from servicehub.appwrite_client import AppwriteException, Query, get_appwrite_client
from servicehub.exceptions import ConfigurationError


async def check_backend():
    """Probe the endpoint, the guest account route and each collection"""
    client = get_appwrite_client()

    print("🔍 Checking Appwrite backend...\n")
    print(f"   - Endpoint: {config.APPWRITE_ENDPOINT}")
    print(f"   - Project ID: {config.APPWRITE_PROJECT_ID or '(not set)'}")
    print(f"   - API key: {'set' if config.APPWRITE_API_KEY else '(not set)'}")

    print("\n1️⃣ Checking if Appwrite is reachable...")
    try:
        health = await client.health()
        print(f"   ✅ Appwrite is reachable: {health}")
    except AppwriteException as e:
        if e.code == 401:
            print("   ✅ Appwrite is reachable (API key lacks the health scope)")
        else:
            print(f"   ❌ Health check failed: [{e.code}] {e.message}")
    except Exception as e:
        print(f"   ❌ Cannot reach Appwrite: {e}")
        return

    print("\n2️⃣ Checking the account endpoint as a guest...")
    try:
        await client.session_client().get_account()
        print("   ⚠️ Unexpected success without a session")
    except AppwriteException as e:
        if e.code == 401:
            print("   ✅ Account endpoint answered (401 is expected without a session)")
        else:
            print(f"   ❌ [{e.code}] {e.type}: {e.message}")
            if e.type == "general_unauthorized_scope":
                print("   💡 Add this host as a Web platform in the Appwrite console")

    print("\n3️⃣ Checking database configuration...")
    try:
        db = config.get_database_config()
    except ConfigurationError as e:
        print(f"   ❌ {e}")
        return
    print(f"   ✅ Database ID: {db.database_id}")

    collections = {
        "purchases": db.purchases_collection_id,
        "items": db.items_collection_id,
        "users": db.users_collection_id,
        "appointments": db.appointments_collection_id,
    }
    print("\n4️⃣ Checking collections...")
    for label, collection_id in collections.items():
        try:
            result = await client.list_documents(db.database_id, collection_id, [Query.limit(1)])
            print(f"   ✅ {label} ({collection_id}): {result.get('total', 0)} document(s)")
        except AppwriteException as e:
            print(f"   ❌ {label} ({collection_id}): [{e.code}] {e.message}")

    print("\n✅ Check complete")


if __name__ == "__main__":
    asyncio.run(check_backend())
