#!/usr/bin/env python3
"""
Run one reconciliation locally without Celery.

Uses the in-process run lock, so do not run it next to a live worker.

Usage:
    cd backend
    python -m scripts.run_reconciliation                 # yesterday
    python -m scripts.run_reconciliation --date 05-03-2025 --flow SINGLE_PASS
"""

import argparse
import asyncio

from app.core.config import settings
from app.core.constants import FlowType
from app.core.logging import setup_logging
from app.db.session import make_session_factory
from app.pipeline.engine import ReconciliationEngine
from app.pipeline.services import build_services


async def main(target_date: str | None, flow_type: str) -> None:
    session_factory, engine = make_session_factory()
    try:
        reconciliation = ReconciliationEngine(build_services(session_factory, distributed_lock=False))
        result = await reconciliation.run(target_date=target_date, flow_type=flow_type)
    finally:
        await engine.dispose()

    print("\n" + "=" * 70)
    print(f"  Reconciliation {result.execution_date}  [{result.status}]")
    print("=" * 70)
    print(f"  Execution ID:  {result.execution_id}")
    print(f"  Flow:          {result.flow_type}")
    print(f"  Listed:        {result.total_listed}")
    print(f"  Valid:         {result.valid_found}")
    print(f"  Processed:     {result.processed}")
    print(f"  Succeeded:     {result.succeeded}")
    print(f"  Skipped:       {result.skipped}")
    print(f"  Success rate:  {result.success_rate}%")
    print(f"  Duration:      {result.total_duration_ms}ms")
    for awb, reason in result.errors:
        print(f"    - {awb}: {reason}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--date", default=None, help="DD-MM-YYYY or YYYY-MM-DD (default: yesterday)")
    parser.add_argument(
        "--flow",
        default=str(settings.MANUAL_RUN_FLOW),
        choices=[str(flow) for flow in FlowType],
    )
    args = parser.parse_args()

    setup_logging("DEBUG" if settings.APP_ENV == "development" else "INFO")
    asyncio.run(main(args.date, args.flow))
