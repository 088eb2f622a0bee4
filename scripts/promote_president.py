#!/usr/bin/env python3
"""
Bootstrap the club President.

Promotes an existing account to President, or creates a new verified
President account with --create. Refuses when a different President already
exists; running it again for the sitting President changes nothing.

Usage:
    python scripts/promote_president.py --email EMAIL
    python scripts/promote_president.py --email EMAIL --create --name "Full Name"

Requires:
    - DATABASE_URL pointing at the ClubHub database (default: from environment)
    - The clubhub package importable (pip install -e .)
"""
import argparse
import asyncio
import logging
import sys

from clubhub.core.errors import ServiceError, NotFoundError
from clubhub.db.base import dispose_db
from clubhub.services.audit import AuditNotifier
from clubhub.services.roles import RoleAssignmentService
from clubhub.services.store import SqlAlchemyStore


async def promote(email: str, create: bool, name: str = None) -> int:
    store = SqlAlchemyStore()
    notifier = AuditNotifier()
    service = RoleAssignmentService(store, notifier)

    try:
        if create:
            result = await service.register_president(email, name, None)
        else:
            user = await store.with_transaction(lambda uow: uow.get_user_by_email(email))
            if user is None:
                raise NotFoundError("User", email)
            result = await service.promote_to_president(user.id)
    except ServiceError as e:
        print(f"Failed: {e.message}")
        return 1
    finally:
        await notifier.drain()
        await dispose_db()

    print(f"{result.user.name} <{result.user.email}> is the President (id={result.user.id})")
    return 0


def main():
    parser = argparse.ArgumentParser(description="Promote or register the club President")
    parser.add_argument("--email", required=True, help="Email of the account to promote")
    parser.add_argument(
        "--create",
        action="store_true",
        help="Create a new President account instead of promoting an existing one"
    )
    parser.add_argument("--name", help="Full name (required with --create)")
    args = parser.parse_args()

    if args.create and not args.name:
        parser.error("--name is required with --create")

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    sys.exit(asyncio.run(promote(args.email, args.create, args.name)))


if __name__ == "__main__":
    main()
