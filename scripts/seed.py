#!/usr/bin/env python3
"""
Seed script: creates a demo tenant with API key, one store with a manager,
and an active NPS/CSAT/comment form.
Run after migrations: python scripts/seed.py
"""

import asyncio
import os
import sys
from datetime import datetime, timezone
from uuid import uuid4

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import select

from vibecheck.auth.middleware import hash_api_key
from vibecheck.database import async_session_maker
from vibecheck.storage.repositories import get_tenant_by_api_key_hash
from vibecheck.models import Form, Store, Tenant


API_KEY = "sk_demo_vibecheck_12345"  # Demo API key - print this for user

FORM_FIELDS = [
    {"id": "nps_score", "type": "nps", "label": "How likely are you to recommend us?", "required": True},
    {"id": "csat_score", "type": "csat", "label": "Rate your experience", "required": True},
    {"id": "feedback", "type": "text", "label": "Anything we could do better?", "required": False},
]


async def seed():
    async with async_session_maker() as session:
        api_key_hash = hash_api_key(API_KEY)
        now = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")

        # Check if tenant exists
        tenant = await get_tenant_by_api_key_hash(session, api_key_hash)
        if tenant:
            print("Tenant already exists, using existing.")
        else:
            tenant = Tenant(
                tenant_id=str(uuid4()),
                name="Demo Bistro",
                owner_email="owner@demobistro.test",
                owner_phone="+15550000001",
                api_key_hash=api_key_hash,
                created_at=now,
            )
            session.add(tenant)
            await session.commit()

        result = await session.execute(select(Store).where(Store.tenant_id == tenant.tenant_id))
        store = result.scalars().first()
        if store:
            print("Store already exists.")
        else:
            store = Store(
                store_id=str(uuid4()),
                tenant_id=tenant.tenant_id,
                name="Demo Bistro Downtown",
                manager_email="manager@demobistro.test",
                manager_phone="+15550000002",
            )
            session.add(store)
            await session.commit()

        result = await session.execute(
            select(Form).where(Form.tenant_id == tenant.tenant_id, Form.active.is_(True))
        )
        form = result.scalars().first()
        if form:
            print("Active form already exists.")
        else:
            form = Form(
                form_id=str(uuid4()),
                tenant_id=tenant.tenant_id,
                name="Default Feedback Form",
                active=True,
                fields=FORM_FIELDS,
            )
            session.add(form)
            await session.commit()

    print("Seed complete!")
    print(f"Tenant ID: {tenant.tenant_id}")
    print(f"Store ID: {store.store_id}")
    print(f"API Key: {API_KEY}")
    print(f"Use: Authorization: Bearer {API_KEY}")
    print("Example: curl -X POST http://localhost:8000/v1/submit \\")
    print('  -H "Content-Type: application/json" \\')
    print(
        '  -d \'{"tenant_id":"' + tenant.tenant_id + '","answers":'
        '[{"question_id":"nps_score","value":3},{"question_id":"feedback","value":"Cold food"}],'
        '"metadata":{"store_id":"' + store.store_id + '","order_id":"ORD-1"}}\''
    )


if __name__ == "__main__":
    asyncio.run(seed())
