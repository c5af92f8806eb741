"""
Seed one user per role for development.
Run: python -m scripts.seed_users  (from backend/)
"""

import asyncio

from app.core.security import hash_password
from app.db.session import async_session
from app.repositories.users import create_user, get_user_by_email


SEED_USERS = [
    {
        "email": "admin@projectdesk.dev",
        "password": "admin123",  # Change in production!
        "full_name": "System Admin",
        "role": "admin",
    },
    {
        "email": "pm@projectdesk.dev",
        "password": "pm123456",
        "full_name": "Project Manager",
        "role": "pm",
    },
    {
        "email": "dev@projectdesk.dev",
        "password": "dev123456",
        "full_name": "Developer",
        "role": "dev",
    },
    {
        "email": "advisor@projectdesk.dev",
        "password": "advisor123",
        "full_name": "Finance Advisor",
        "role": "advisor",
    },
]


async def seed():
    """Insert seed users that do not exist yet."""
    created = 0
    async with async_session() as session:
        for data in SEED_USERS:
            if await get_user_by_email(session, data["email"]) is not None:
                print(f"  Skipped existing user: {data['email']}")
                continue
            fields = {k: v for k, v in data.items() if k != "password"}
            user = await create_user(session, hashed_password=hash_password(data["password"]), **fields)
            created += 1
            print(f"  Created user: {user.email} ({user.role})")
        await session.commit()
    print(f"Seeded {created} users.")


if __name__ == "__main__":
    asyncio.run(seed())
