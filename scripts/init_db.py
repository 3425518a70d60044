"""Script to create the scheduling tables directly from metadata.

Meant for local development; deployed databases go through Alembic
(``scripts/migrate.py``).
"""

import asyncio
import sys

from sqlalchemy import insert

from clinic_scheduler.database import engine
from clinic_scheduler.models import clients, metadata, providers

DEMO_PROVIDERS = [
    {"full_name": "Dr. Maya Levin", "email": "maya.levin@clinic.test", "specialization": "Cardiology"},
    {"full_name": "Dr. Omar Haddad", "email": "omar.haddad@clinic.test", "specialization": "Dermatology"},
]
DEMO_CLIENTS = [
    {"full_name": "Noa Cohen", "email": "noa.cohen@example.test"},
]


async def init_db(seed: bool = False) -> None:
    """Create all tables, optionally with a few demo rows."""
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)

        if seed:
            await conn.execute(insert(providers), DEMO_PROVIDERS)
            await conn.execute(insert(clients), DEMO_CLIENTS)

    await engine.dispose()
    print("✓ Database initialized successfully!")


if __name__ == "__main__":
    asyncio.run(init_db(seed="--seed" in sys.argv[1:]))
