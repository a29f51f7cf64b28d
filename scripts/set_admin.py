"""
Promote an existing account to admin.

    python scripts/set_admin.py someone@example.com
"""

import argparse
import asyncio
import sys
from pathlib import Path

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from tulisify.core.database import AsyncSessionLocal, engine
from tulisify.models.user import ROLE_ADMIN
from tulisify.services.user_service import get_user_by_email, set_role
import tulisify.models  # noqa: F401


async def set_admin(email: str) -> int:
    async with AsyncSessionLocal() as db:
        user = await get_user_by_email(db, email)
        if user is None:
            print(f"No account found for {email}. Register it first.")
            return 1
        if user.is_admin:
            print(f"{user.email} is already an admin.")
            return 0

        user = await set_role(db, user.id, ROLE_ADMIN)
        print(f"{user.email} ({user.name}) is now an admin.")
        print(f"   User ID: {user.id}")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("email", help="email of the account to promote")
    args = parser.parse_args()

    async def _run():
        try:
            return await set_admin(args.email)
        finally:
            await engine.dispose()

    return asyncio.run(_run())


if __name__ == "__main__":
    sys.exit(main())
