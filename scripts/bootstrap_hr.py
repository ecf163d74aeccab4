#!/usr/bin/env python3
"""Create the first HR account and print a bearer token for it.

Every employee-management endpoint requires an HR caller, so a fresh
database needs one HR employee created out of band.

Usage:
    python scripts/bootstrap_hr.py --name "Asha Rao" --email asha@acme.io \
        --department "People Ops" --joining-date 2023-04-01

Requires JWT_SECRET and DATABASE_URL in the environment or .env.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import date
from pathlib import Path

# ── Path setup ────────────────────────────────────────────────────────
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from dotenv import load_dotenv

load_dotenv(PROJECT_ROOT / ".env")

from leave_manager.auth.tokens import create_access_token
from leave_manager.common.cache import NullCache
from leave_manager.common.clock import Clock
from leave_manager.common.constants import UserRole
from leave_manager.common.exceptions import DuplicateEmployee, ValidationException
from leave_manager.config import settings
from leave_manager.database import build_engine, build_session_factory, create_tables
from leave_manager.employees.schemas import EmployeeCreate
from leave_manager.employees.service import EmployeeService
from leave_manager.logging_config import configure_logging

logger = logging.getLogger("bootstrap_hr")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--name", required=True)
    parser.add_argument("--email", required=True)
    parser.add_argument("--department", required=True)
    parser.add_argument(
        "--joining-date",
        type=date.fromisoformat,
        default=None,
        help="YYYY-MM-DD (default: today, UTC)",
    )
    return parser.parse_args(argv)


async def bootstrap(args: argparse.Namespace) -> str:
    engine = build_engine(settings)
    try:
        await create_tables(engine)
        session_factory = build_session_factory(engine)
        async with session_factory() as db:
            clock = Clock()
            service = EmployeeService(db, NullCache(), clock)
            data = EmployeeCreate(
                name=args.name,
                email=args.email,
                department=args.department,
                joining_date=args.joining_date or clock.today(),
                role=UserRole.hr,
            )
            try:
                employee = await service.create_employee(data, UserRole.hr)
                employee_id = employee.id
            except DuplicateEmployee:
                existing = await service.get_employee_by_email(data.email)
                if existing is None or existing.role != UserRole.hr:
                    raise
                logger.info("HR account %s already exists; issuing a new token", existing.email)
                employee_id = existing.id
    finally:
        await engine.dispose()

    return create_access_token(employee_id)


def main(argv: list[str] | None = None) -> int:
    configure_logging(settings.LOG_LEVEL)
    args = parse_args(argv)
    try:
        token = asyncio.run(bootstrap(args))
    except DuplicateEmployee:
        logger.error("%s is already registered as a non-HR employee.", args.email)
        return 1
    except ValidationException as exc:
        logger.error("%s %s", exc.detail, exc.errors)
        return 1
    print(token)
    return 0


if __name__ == "__main__":
    sys.exit(main())
