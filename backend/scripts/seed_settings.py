"""
Seed a reconciliation settings row for development.
Run: python -m scripts.seed_settings  (from backend/)
"""

import asyncio
from datetime import time
from decimal import Decimal

from app.db.session import async_session
from app.repositories.settings import create_settings


SEED_SETTINGS = {
    "supplier_names": "Acme Exports, Globex Trading",
    "destination_countries": "US,GB,UK,USA",
    "cutoff_time": time(23, 0),
    "cip_time": time(2, 0),
    "min_value_usd": Decimal("20.00"),
    "usd_to_inr_rate": Decimal("83.0"),
    "max_shipments": 50,
    "admin_emails": "ops@example.com",  # Change in production!
    "email_enabled": False,
}


async def seed():
    """Insert one settings row; the latest row wins at run time."""
    async with async_session() as session:
        row = await create_settings(session, **SEED_SETTINGS)
        await session.commit()
    print(f"Seeded reconciliation settings (id={row.id}).")


if __name__ == "__main__":
    asyncio.run(seed())
